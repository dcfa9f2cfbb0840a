#!/usr/bin/env python3
"""
Dev helper: post a sample contact-form submission to a running backend.

Usage
-----
# Basic submission to localhost:3000
python scripts/send_test_contact.py

# Custom fields
python scripts/send_test_contact.py --name "Ada Lovelace" --email ada@example.com \
    --message "Loved the portfolio"

# Target a deployed backend
python scripts/send_test_contact.py --url https://api.example.com

# Only report which mail settings the local environment / .env provides
python scripts/send_test_contact.py --check-config

Environment / .env
------------------
The --check-config report reads EMAIL_USER, EMAIL_PASS, SITE_NAME and
EMAIL_FROM from the environment or a .env file in the project root or
backend/. Values are never printed, only whether they are set.
"""

import argparse
import json
import os
import sys
import textwrap
from pathlib import Path

import httpx
from dotenv import load_dotenv

REQUIRED_ENV_VARS = ["EMAIL_USER", "EMAIL_PASS", "SITE_NAME", "EMAIL_FROM"]


def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


def _check_config() -> int:
    missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
    for name in REQUIRED_ENV_VARS:
        print(f"- {name}: {'Set' if os.getenv(name) else 'NOT SET'}")
    print(f"- EMAIL_HOST: {os.getenv('EMAIL_HOST') or 'smtp.gmail.com (default)'}")
    print(f"- EMAIL_PORT: {os.getenv('EMAIL_PORT') or '587 (default)'}")
    if missing:
        print(f"\nMissing: {', '.join(missing)}", file=sys.stderr)
        return 1
    print("\nAll required mail settings are present.")
    return 0


def main() -> int:
    # scripts/ lives one level below the project root
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_contact.py",
        description=textwrap.dedent("""\
            Send a test contact-form submission to the portfolio backend.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_contact.py
              python scripts/send_test_contact.py --email not-an-email
              python scripts/send_test_contact.py --url http://localhost:8000
              python scripts/send_test_contact.py --check-config
        """),
    )
    parser.add_argument(
        "--url",
        default=f"http://localhost:{os.getenv('PORT', '3000')}",
        help="Backend base URL (default: http://localhost:$PORT or 3000)",
    )
    parser.add_argument("--name", default="Test Sender", help="fullname field")
    parser.add_argument("--email", default="test.sender@example.com", help="email field")
    parser.add_argument(
        "--message",
        default="Hello! This is a test message from send_test_contact.py.",
        help="message field",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Report which required mail settings are set, then exit.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload JSON without sending it.",
    )

    args = parser.parse_args()

    if args.check_config:
        return _check_config()

    payload = {"fullname": args.name, "email": args.email, "message": args.message}
    endpoint = f"{args.url.rstrip('/')}/api/contact"

    print(f"Endpoint : {endpoint}")
    print(f"Name     : {args.name}")
    print(f"Email    : {args.email}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(payload, indent=2))
        return 0

    try:
        response = httpx.post(endpoint, json=payload, timeout=30)
    except httpx.HTTPError as e:
        print(f"\nERROR: request failed: {e}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
