"""
Portfolio Backend API
FastAPI application serving health probes and the contact form endpoint.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.errors import INVALID_BODY_MESSAGE, ContactError, RateLimitError
from app.models.contact import ErrorResponse
from app.routers import contact, health
from app.security_headers import add_security_headers
from app.services.rate_limiter import SlidingWindowRateLimiter, rate_limit_headers

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

settings = get_settings()


def log_startup_configuration() -> None:
    """Log where the API listens and which settings are present (never their values)."""
    def _state(value) -> str:
        return "Set" if value else "Not set"

    logger.info(
        "Portfolio Backend API running on port %s\n"
        "  Health check: http://localhost:%s/api/health\n"
        "  Environment: %s\n"
        "  Allowed CORS origins: %s\n"
        "Configuration:\n"
        "  - EMAIL_HOST: %s\n"
        "  - EMAIL_PORT: %s\n"
        "  - EMAIL_USER: %s\n"
        "  - EMAIL_PASS: %s\n"
        "  - SITE_NAME: %s",
        settings.port,
        settings.port,
        settings.environment,
        ", ".join(settings.cors_origins),
        settings.email_host,
        settings.email_port,
        _state(settings.email_user),
        _state(settings.email_pass),
        settings.site_name or "Not set",
    )

    missing = settings.missing_required()
    if missing:
        logger.warning(
            f"Missing environment variables: {missing}; contact submissions "
            "will be rejected until they are set"
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_startup_configuration()
    yield


app = FastAPI(
    title="Portfolio Backend API",
    description="Contact form relay for the portfolio website",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.rate_limiter = SlidingWindowRateLimiter(
    max_requests=settings.rate_limit_max,
    window_seconds=settings.rate_limit_window_seconds,
)

# Security headers first so CORS (added last, outermost) sees the final response
app.middleware("http")(add_security_headers)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(contact.router, tags=["contact"])


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(ContactError)
async def contact_error_handler(request: Request, exc: ContactError) -> JSONResponse:
    logger.warning(
        f"{request.method} {request.url.path} failed with "
        f"{type(exc).__name__} ({exc.status_code}): {exc.message}"
    )
    headers = rate_limit_headers(request)
    if isinstance(exc, RateLimitError):
        headers["Retry-After"] = str(exc.retry_after)
    return _error(exc.status_code, exc.public_message, headers or None)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info(f"Rejected malformed body on {request.url.path}: {exc.errors()}")
    return _error(400, INVALID_BODY_MESSAGE, rate_limit_headers(request) or None)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code in (404, 405):
        return _error(404, "Endpoint not found")
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Global error handler: {exc}", exc_info=exc)
    return _error(500, "Internal server error")


# ---------------------------------------------------------------------------
# Preflight
# ---------------------------------------------------------------------------

@app.options("/{full_path:path}", include_in_schema=False)
async def preflight(full_path: str) -> Response:
    """Acknowledge OPTIONS requests the CORS middleware did not answer itself."""
    return Response(status_code=200)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port)
