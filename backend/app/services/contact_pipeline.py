"""
Contact submission pipeline.

Takes one raw contact-form submission through a fixed sequence of gates and,
if every gate passes, emails it to the site owner. The first failing gate
raises and nothing after it runs.

  1. configuration  all required settings present          (ConfigurationError)
  2. presence       fullname, email and message non-blank  (ValidationError)
  3. email shape    local@domain.tld                        (ValidationError)
  4. sanitize       trim, lower-case email, truncate        (silent)
  5. verify         transport can connect and log in        (TransportUnavailableError)
  6. compose        build the OutboundNotification
  7. dispatch       transport.send                          (TransportAuthError /
                                                               TransportConnectionError /
                                                               UnknownError)

No retries: a failed verify or send ends the request and the caller is told
to try again later.

Public API:
  handle_submission(submission, settings, transport, submitted_at=None) -> ContactResult
  sanitize_submission(submission) -> SanitizedSubmission
  compose_notification(sanitized, settings, submitted_at) -> OutboundNotification
  is_valid_email(value) -> bool
"""

import logging
import re
from datetime import datetime
from typing import Optional, Union

from app.config import Settings
from app.errors import (
    INVALID_EMAIL_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    ConfigurationError,
    ContactError,
    TransportAuthError,
    TransportConnectionError,
    TransportUnavailableError,
    UnknownError,
    ValidationError,
)
from app.models.contact import (
    ContactResult,
    ContactSubmission,
    OutboundNotification,
    SanitizedSubmission,
)
from app.services.email_template import render_html, render_text
from app.services.mail_transport import (
    MailTransport,
    TransportError,
    TransportErrorKind,
    header_value,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SUCCESS_MESSAGE = "Your message has been sent successfully!"
SUBJECT_PREFIX = "New Contact - "

MAX_FULLNAME_LENGTH = 100
MAX_EMAIL_LENGTH = 100
MAX_MESSAGE_LENGTH = 1000

_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# Send failures by kind. Verify failures always map to TransportUnavailableError.
_SEND_ERRORS: dict[TransportErrorKind, type[ContactError]] = {
    TransportErrorKind.AUTH: TransportAuthError,
    TransportErrorKind.CONNECTION: TransportConnectionError,
    TransportErrorKind.UNKNOWN: UnknownError,
}


# ---------------------------------------------------------------------------
# Validation and sanitization
# ---------------------------------------------------------------------------

def is_valid_email(value: str) -> bool:
    """True if value has the basic local@domain.tld shape, whitespace excluded."""
    return _EMAIL_PATTERN.fullmatch(value) is not None


def _clip(value: str, limit: int) -> str:
    # rstrip after slicing so a cut landing on whitespace does not leave a
    # trailing blank that a second pass would remove
    return value.strip()[:limit].rstrip()


def sanitize_submission(
    submission: Union[ContactSubmission, SanitizedSubmission],
) -> SanitizedSubmission:
    """
    Trim every field, lower-case the email and cap lengths.

    Truncation is silent. Sanitizing an already sanitized submission returns
    an equal value.
    """
    return SanitizedSubmission(
        fullname=_clip(submission.fullname or "", MAX_FULLNAME_LENGTH),
        email=_clip((submission.email or "").strip().lower(), MAX_EMAIL_LENGTH),
        message=_clip(submission.message or "", MAX_MESSAGE_LENGTH),
    )


def _check_configuration(settings: Settings) -> None:
    missing = settings.missing_required()
    if missing:
        logger.error(f"Missing environment variables: {missing}")
        raise ConfigurationError(f"missing required settings: {', '.join(missing)}")


def _check_fields(submission: ContactSubmission) -> None:
    for field_name in ("fullname", "email", "message"):
        value = getattr(submission, field_name)
        if not value or not value.strip():
            logger.info(f"Validation failed - missing field '{field_name}'")
            raise ValidationError("missing fields", MISSING_FIELDS_MESSAGE)

    if not is_valid_email(submission.email):
        logger.info("Validation failed - invalid email format")
        raise ValidationError("invalid email", INVALID_EMAIL_MESSAGE)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

def compose_notification(
    sanitized: SanitizedSubmission,
    settings: Settings,
    submitted_at: datetime,
) -> OutboundNotification:
    """
    Build the email the site owner receives.

    Always addressed to the configured mail account, never to the submitter;
    the submitter's address goes in Reply-To.
    """
    return OutboundNotification(
        sender=f'"{settings.site_name} Contact Form" <{settings.email_from}>',
        to=settings.email_user,
        reply_to=sanitized.email,
        subject=header_value(f"{SUBJECT_PREFIX}{sanitized.fullname}"),
        html_body=render_html(sanitized, settings.site_name, submitted_at),
        text_body=render_text(sanitized, submitted_at),
    )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

async def handle_submission(
    submission: ContactSubmission,
    settings: Settings,
    transport: MailTransport,
    submitted_at: Optional[datetime] = None,
) -> ContactResult:
    """
    Validate, sanitize and email one contact submission.

    Args:
        submission:   Raw payload from the caller.
        settings:     Process configuration.
        transport:    Mail transport used for verify and send.
        submitted_at: Timestamp printed in the email (default: now).

    Returns:
        ContactResult with the success message.

    Raises:
        ContactError subclass describing the first gate that failed.
    """
    _check_configuration(settings)
    _check_fields(submission)

    sanitized = sanitize_submission(submission)
    if not is_valid_email(sanitized.email):
        # Only reachable when truncation cut into the address
        logger.info("Validation failed - email too long to keep its shape")
        raise ValidationError("invalid email after truncation", INVALID_EMAIL_MESSAGE)

    try:
        await transport.verify()
    except TransportError as e:
        logger.error(
            f"Email transporter verification failed [{e.kind.value}]: {e.message}"
        )
        raise TransportUnavailableError(f"verify failed ({e.kind.value})") from e
    logger.info("Email transporter verified successfully")

    notification = compose_notification(
        sanitized, settings, submitted_at or datetime.now()
    )

    try:
        message_id = await transport.send(notification)
    except TransportError as e:
        logger.error(f"Email send failed [{e.kind.value}]: {e.message}")
        raise _SEND_ERRORS[e.kind](f"send failed ({e.kind.value})") from e

    logger.info(f"Email sent successfully: {message_id}")
    return ContactResult(message=SUCCESS_MESSAGE)
