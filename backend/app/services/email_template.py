"""
Contact notification email bodies.

Builds the HTML and plain-text bodies of the email the site owner receives
for each contact submission. Sanitized fields are embedded as-is.

Public API:
  render_html(submission, site_name, submitted_at) -> str
  render_text(submission, submitted_at) -> str
"""

from datetime import datetime

from app.models.contact import SanitizedSubmission

# ---------------------------------------------------------------------------
# Shared styles
# ---------------------------------------------------------------------------

_FONT_STACK = "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif"
_ACCENT = "#ffdb70"
_ACCENT_GRADIENT = "linear-gradient(135deg, #ffdb70 0%, #ffd93d 100%)"


def format_long_timestamp(moment: datetime) -> str:
    """e.g. 'Monday, January 6, 2025 at 03:45 PM'."""
    return (
        f"{moment:%A}, {moment:%B} {moment.day}, {moment.year} "
        f"at {moment:%I:%M %p}"
    )


def format_short_timestamp(moment: datetime) -> str:
    """e.g. '1/6/2025, 3:45:12 PM'."""
    hour = moment.hour % 12 or 12
    return (
        f"{moment.month}/{moment.day}/{moment.year}, "
        f"{hour}:{moment:%M:%S %p}"
    )


def _first_name(fullname: str) -> str:
    return fullname.split(" ")[0]


def render_html(
    submission: SanitizedSubmission,
    site_name: str,
    submitted_at: datetime,
) -> str:
    """Return the HTML body for a contact notification."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>New Contact Form Submission</title>
</head>
<body style="margin: 0; padding: 0; background-color: #f7fafc; font-family: {_FONT_STACK}; line-height: 1.6;">
  <div style="max-width: 600px; margin: 32px auto; background-color: #ffffff; border-radius: 16px; box-shadow: 0 10px 40px rgba(0, 0, 0, 0.06); overflow: hidden; border: 1px solid #e2e8f0;">

    <!-- Header -->
    <div style="background: {_ACCENT_GRADIENT}; padding: 40px; text-align: center; border-left: 6px solid #f59e0b;">
      <h1 style="margin: 0; color: #1a202c; font-size: 28px; font-weight: 700; letter-spacing: -0.8px; line-height: 1.2;">
        New Contact
      </h1>
      <p style="margin: 12px 0 0 0; color: #2d3748; font-size: 15px; font-weight: 500; opacity: 0.8;">
        {site_name}
      </p>
    </div>

    <!-- Content -->
    <div style="padding: 40px;">

      <!-- Contact info -->
      <div style="background: linear-gradient(135deg, #fffbf0 0%, #fef7e0 100%); border: 1px solid #fed7aa; border-radius: 16px; padding: 32px; margin-bottom: 32px; border-left: 5px solid {_ACCENT};">
        <h2 style="margin: 0 0 12px 0; color: #1a202c; font-size: 24px; font-weight: 700; line-height: 1.2;">
          {submission.fullname}
        </h2>
        <a href="mailto:{submission.email}" style="color: #3182ce; text-decoration: none; font-size: 15px; font-weight: 500;">
          {submission.email}
        </a>
      </div>

      <!-- Message -->
      <div style="margin-bottom: 36px;">
        <h3 style="margin: 0 0 16px 0; color: #1a202c; font-size: 18px; font-weight: 600;">
          Message
        </h3>
        <div style="background-color: #f8fafc; border: 1px solid #e2e8f0; border-left: 4px solid {_ACCENT}; border-radius: 12px; padding: 28px;">
          <p style="margin: 0; color: #2d3748; font-size: 16px; line-height: 1.7; word-wrap: break-word; white-space: pre-wrap;">{submission.message}</p>
        </div>
      </div>

      <!-- Quick actions -->
      <div style="text-align: center; margin-bottom: 32px;">
        <a href="mailto:{submission.email}?subject=Re: Your message to {site_name}"
           style="display: inline-block; background: {_ACCENT_GRADIENT}; color: #1a202c; text-decoration: none; padding: 14px 28px; border-radius: 8px; font-weight: 600; font-size: 15px; border: 1px solid #fed7aa;">
          Reply to {_first_name(submission.fullname)}
        </a>
      </div>

    </div>

    <!-- Footer -->
    <div style="background: #f8fafc; padding: 24px 40px; border-top: 1px solid #e2e8f0; text-align: center;">
      <p style="margin: 0 0 8px 0; color: #4a5568; font-size: 13px; font-weight: 500;">
        {format_long_timestamp(submitted_at)}
      </p>
      <p style="margin: 0; color: #718096; font-size: 12px;">
        Sent via {site_name} Contact Form
      </p>
    </div>

  </div>
</body>
</html>
"""


def render_text(submission: SanitizedSubmission, submitted_at: datetime) -> str:
    """Return the plain-text alternative body."""
    return (
        "New Contact Form Submission\n"
        "\n"
        f"Name: {submission.fullname}\n"
        f"Email: {submission.email}\n"
        "\n"
        "Message:\n"
        f"{submission.message}\n"
        "\n"
        f"Submitted on: {format_short_timestamp(submitted_at)}\n"
    )
