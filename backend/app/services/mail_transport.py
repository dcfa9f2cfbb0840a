"""
Outbound mail transport.

The contact pipeline talks to a ``MailTransport``: something that can verify
it is able to reach and authenticate with the mail provider, and send a
composed ``OutboundNotification``. Failures are reported as ``TransportError``
with a closed ``TransportErrorKind`` so callers branch on the kind, never on
provider-specific codes.

SmtpMailTransport
-----------------
Implementation over ``smtplib``. Port 465 uses implicit TLS, every other port
upgrades with STARTTLS. Certificate verification is relaxed to match the
providers this site has been deployed against. ``smtplib`` is blocking, so
both operations run in Starlette's threadpool.
"""

import logging
import re
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from enum import Enum
from typing import Protocol

from fastapi import Depends
from starlette.concurrency import run_in_threadpool

from app.config import Settings, get_settings
from app.models.contact import OutboundNotification

logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465

_LINE_BREAKS = re.compile(r"\s*[\r\n]+\s*")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TransportErrorKind(str, Enum):
    AUTH = "auth"
    CONNECTION = "connection"
    UNKNOWN = "unknown"


class TransportError(Exception):
    """Raised by a MailTransport when verify or send fails."""
    def __init__(self, kind: TransportErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def classify_smtp_error(exc: Exception) -> TransportErrorKind:
    """Map an smtplib / socket exception onto a TransportErrorKind."""
    if isinstance(exc, smtplib.SMTPAuthenticationError):
        return TransportErrorKind.AUTH
    if isinstance(exc, (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected)):
        return TransportErrorKind.CONNECTION
    if isinstance(exc, smtplib.SMTPException):
        return TransportErrorKind.UNKNOWN
    if isinstance(exc, OSError):
        # refused, unreachable, DNS failure, timeout, TLS handshake
        return TransportErrorKind.CONNECTION
    return TransportErrorKind.UNKNOWN


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class MailTransport(Protocol):
    async def verify(self) -> None:
        """Raise TransportError if the provider cannot be reached or logged into."""
        ...

    async def send(self, notification: OutboundNotification) -> str:
        """Deliver the notification and return its message id."""
        ...


# ---------------------------------------------------------------------------
# SMTP implementation
# ---------------------------------------------------------------------------

def _lenient_tls_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def header_value(value: str) -> str:
    """Fold CR/LF runs (and the whitespace around them) into a single space."""
    return _LINE_BREAKS.sub(" ", value).strip()


def build_message(notification: OutboundNotification, message_id: str) -> EmailMessage:
    """Build a multipart/alternative message (text first, HTML preferred)."""
    msg = EmailMessage()
    msg["From"] = header_value(notification.sender)
    msg["To"] = header_value(notification.to)
    if notification.reply_to:
        msg["Reply-To"] = header_value(notification.reply_to)
    msg["Subject"] = header_value(notification.subject)
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = message_id
    msg.set_content(notification.text_body)
    msg.add_alternative(notification.html_body, subtype="html")
    return msg


def _close(server: smtplib.SMTP) -> None:
    """QUIT politely; a server that already hung up is not an error."""
    try:
        server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.debug(f"SMTP QUIT failed, closing socket: {e}")
        server.close()


class SmtpMailTransport:
    """MailTransport backed by an SMTP server with username/password auth."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        """Open an authenticated session. Caller must close it."""
        context = _lenient_tls_context()
        if self.port == IMPLICIT_TLS_PORT:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=context
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            server.ehlo()
            if self.port != IMPLICIT_TLS_PORT:
                server.starttls(context=context)
                server.ehlo()
            server.login(self.username, self.password)
        except Exception:
            server.close()
            raise
        return server

    def _verify_sync(self) -> None:
        server = self._connect()
        try:
            server.noop()
        finally:
            _close(server)

    def _send_sync(self, notification: OutboundNotification) -> str:
        domain = self.username.rsplit("@", 1)[-1] if "@" in self.username else None
        message_id = make_msgid(domain=domain)
        try:
            msg = build_message(notification, message_id)
        except (ValueError, TypeError) as e:
            raise TransportError(
                TransportErrorKind.UNKNOWN, f"could not build message: {e}"
            ) from e
        server = self._connect()
        try:
            server.send_message(msg)
        finally:
            _close(server)
        return message_id

    async def verify(self) -> None:
        try:
            await run_in_threadpool(self._verify_sync)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(classify_smtp_error(e), f"{type(e).__name__}: {e}") from e

    async def send(self, notification: OutboundNotification) -> str:
        try:
            return await run_in_threadpool(self._send_sync, notification)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(classify_smtp_error(e), f"{type(e).__name__}: {e}") from e


def build_transport(settings: Settings = Depends(get_settings)) -> MailTransport:
    """FastAPI dependency: an SMTP transport built from the current settings."""
    return SmtpMailTransport(
        host=settings.email_host,
        port=settings.email_port,
        username=settings.email_user or "",
        password=settings.email_pass or "",
        timeout=settings.smtp_timeout,
    )
