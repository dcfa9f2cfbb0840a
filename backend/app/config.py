"""
Application settings.

Settings are read once from the environment (a .env file is loaded first if
present) into an immutable ``Settings`` value. Routers receive it through the
``get_settings`` dependency so tests can override it.

Environment variables
---------------------
EMAIL_USER        SMTP account identity; also the address notifications go to.
EMAIL_PASS        SMTP account secret.
SITE_NAME         Display name used in the From header and email bodies.
EMAIL_FROM        From address.
EMAIL_HOST        SMTP host (default: smtp.gmail.com).
EMAIL_PORT        SMTP port (default: 587).
SMTP_TIMEOUT      Socket timeout in seconds (default: 10).
PORT              Port uvicorn listens on (default: 3000).
NODE_ENV          Deployment environment label (ENVIRONMENT also accepted).
FRONTEND_URL      Extra allowed CORS origin.
CORS_ORIGINS      Comma-separated extra allowed CORS origins.
TRUST_PROXY       Use X-Forwarded-For for the client IP (default: false).
RATE_LIMIT_MAX    Contact submissions per IP per window (default: 5).
RATE_LIMIT_WINDOW_SECONDS  Window length (default: 900).
"""

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Env var name -> Settings field, for keys the contact pipeline cannot run without
REQUIRED_KEYS: dict[str, str] = {
    "EMAIL_USER": "email_user",
    "EMAIL_PASS": "email_pass",
    "SITE_NAME": "site_name",
    "EMAIL_FROM": "email_from",
}

DEFAULT_CORS_ORIGINS = [
    "https://portfolio-frontend-tejana.vercel.app",
    "https://tejana-portfolio.vercel.app",
    "http://localhost:3000",
    "http://localhost:5500",
    "http://127.0.0.1:5500",
    "http://127.0.0.1:3000",
]


class Settings(BaseModel):
    """Immutable configuration resolved once at process start."""

    model_config = {"frozen": True}

    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    site_name: Optional[str] = None
    email_from: Optional[str] = None
    email_host: str = "smtp.gmail.com"
    email_port: int = 587
    smtp_timeout: float = 10.0
    port: int = 3000
    environment: str = "development"
    cors_origins: tuple[str, ...] = tuple(DEFAULT_CORS_ORIGINS)
    trust_proxy: bool = False
    rate_limit_max: int = 5
    rate_limit_window_seconds: int = 900

    def missing_required(self) -> list[str]:
        """Return env var names of required keys that are absent or blank."""
        return [
            env_name
            for env_name, field_name in REQUIRED_KEYS.items()
            if not (getattr(self, field_name) or "").strip()
        ]

    @property
    def email_configured(self) -> bool:
        return bool(self.email_user and self.email_pass)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw)
    except ValueError:
        return default


def _bool_env(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def _cors_origins() -> tuple[str, ...]:
    """
    Default origins, then FRONTEND_URL, then CORS_ORIGINS entries.

    Duplicates are removed while preserving order.
    """
    extra: list[str] = []
    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        extra.append(frontend_url)
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if cors_env:
        extra.extend(o.strip() for o in cors_env.split(",") if o.strip())

    seen: set = set()
    origins: list[str] = []
    for origin in DEFAULT_CORS_ORIGINS + extra:
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)
    return tuple(origins)


def load_settings() -> Settings:
    """Build a Settings value from the current environment."""
    load_dotenv()

    return Settings(
        email_user=os.getenv("EMAIL_USER") or None,
        email_pass=os.getenv("EMAIL_PASS") or None,
        site_name=os.getenv("SITE_NAME") or None,
        email_from=os.getenv("EMAIL_FROM") or None,
        email_host=os.getenv("EMAIL_HOST") or "smtp.gmail.com",
        email_port=_int_env("EMAIL_PORT", 587),
        smtp_timeout=_float_env("SMTP_TIMEOUT", 10.0),
        port=_int_env("PORT", 3000),
        environment=os.getenv("NODE_ENV") or os.getenv("ENVIRONMENT") or "development",
        cors_origins=_cors_origins(),
        trust_proxy=_bool_env("TRUST_PROXY"),
        rate_limit_max=_int_env("RATE_LIMIT_MAX", 5),
        rate_limit_window_seconds=_int_env("RATE_LIMIT_WINDOW_SECONDS", 900),
    )


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide Settings."""
    return load_settings()
