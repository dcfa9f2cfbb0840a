"""
Contact form router.

Endpoints:
  POST /api/contact   validate a submission and email it to the site owner
                      (rate limited per client IP)

Failures are raised as ContactError subclasses and rendered by the handler
registered in app.main as ``{"success": false, "error": "..."}``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from app.config import Settings, get_settings
from app.errors import ContactError, UnknownError
from app.models.contact import ContactResponse, ContactSubmission
from app.services.contact_pipeline import handle_submission
from app.services.mail_transport import MailTransport, build_transport
from app.services.rate_limiter import enforce_contact_rate_limit, get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/api/contact",
    response_model=ContactResponse,
    dependencies=[Depends(enforce_contact_rate_limit)],
)
async def submit_contact(
    request: Request,
    submission: Optional[ContactSubmission] = None,
    settings: Settings = Depends(get_settings),
    transport: MailTransport = Depends(build_transport),
):
    """
    Accept a contact form submission.

    An empty body is treated like a body with every field missing.
    """
    logger.info(
        f"Contact form submission received from: "
        f"{get_client_ip(request, settings.trust_proxy)}"
    )

    try:
        result = await handle_submission(
            submission or ContactSubmission(), settings, transport
        )
    except ContactError:
        raise
    except Exception as e:
        logger.exception(f"Error in contact API: {e}")
        raise UnknownError(f"unexpected {type(e).__name__}") from e

    return ContactResponse(success=True, message=result.message)
