"""
Pydantic models for the contact form.

Models:
  ContactSubmission      raw request body as received
  SanitizedSubmission    trimmed, case-folded, length-capped fields
  OutboundNotification   composed email handed to the mail transport
  ContactResult          pipeline success value
  ContactResponse        API success body
  ErrorResponse          API failure body
"""

from typing import Optional
from pydantic import BaseModel


class ContactSubmission(BaseModel):
    """
    Contact form payload as sent by the frontend.

    Every field is optional here so that missing fields reach the pipeline and
    get the "All fields are required" answer instead of a schema error.
    """
    model_config = {"extra": "ignore"}

    fullname: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


class SanitizedSubmission(BaseModel):
    model_config = {"frozen": True}

    fullname: str
    email: str
    message: str


class OutboundNotification(BaseModel):
    """A fully composed email, ready for the transport."""
    model_config = {"frozen": True}

    sender: str            # formatted From header, e.g. '"Site Contact Form" <noreply@site.dev>'
    to: str
    reply_to: Optional[str] = None
    subject: str
    html_body: str
    text_body: str


class ContactResult(BaseModel):
    message: str


class ContactResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
