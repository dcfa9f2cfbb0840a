"""
Contact API error taxonomy.

Every error carries the HTTP status and the short public message returned to
the caller. The exception's own message is diagnostic detail for the logs and
is never put in a response body.
"""

from typing import Optional

MISSING_FIELDS_MESSAGE = "All fields are required"
INVALID_EMAIL_MESSAGE = "Please provide a valid email address"
INVALID_BODY_MESSAGE = "Invalid request body"


class ContactError(Exception):
    """Base class for failures surfaced to the HTTP caller."""

    status_code: int = 500
    public_message: str = "Failed to send message. Please try again later."

    def __init__(self, message: str = "", public_message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        if public_message is not None:
            self.public_message = public_message


class ConfigurationError(ContactError):
    """Required settings are missing. Operator-fixable."""

    status_code = 500
    public_message = "Server configuration error. Please contact the administrator."


class ValidationError(ContactError):
    """The submission itself is unacceptable. Caller-fixable."""

    status_code = 400
    public_message = MISSING_FIELDS_MESSAGE


class RateLimitError(ContactError):
    """Too many submissions from one client within the window."""

    status_code = 429
    public_message = "Too many contact form submissions, please try again later."

    def __init__(self, message: str = "", retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after


class TransportUnavailableError(ContactError):
    """The mail transport failed its readiness check."""

    public_message = "Email service is currently unavailable. Please try again later."


class TransportAuthError(ContactError):
    public_message = "Email authentication failed. Please contact the administrator."


class TransportConnectionError(ContactError):
    public_message = "Unable to connect to email service. Please try again later."


class UnknownError(ContactError):
    public_message = "Failed to send message. Please try again later."
