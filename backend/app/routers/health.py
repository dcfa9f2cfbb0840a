"""
Liveness and readiness probes.

Endpoints:
  GET /             service is up
  GET /api/health   contact API is up; reports whether mail credentials are set
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from app.config import Settings, get_settings
from app.services.rate_limiter import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter()

_STARTED_AT = time.monotonic()


def _uptime() -> float:
    return round(time.monotonic() - _STARTED_AT, 3)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/")
async def root(request: Request, settings: Settings = Depends(get_settings)):
    logger.info(f"Health check requested from: {get_client_ip(request, settings.trust_proxy)}")
    return {
        "status": "OK",
        "message": "Portfolio Backend API is running",
        "timestamp": _timestamp(),
        "uptime": _uptime(),
        "environment": settings.environment,
    }


@router.get("/api/health")
async def health(request: Request, settings: Settings = Depends(get_settings)):
    logger.info(f"API health check requested from: {get_client_ip(request, settings.trust_proxy)}")
    return {
        "status": "OK",
        "message": "Contact form API is ready",
        "timestamp": _timestamp(),
        "uptime": _uptime(),
        "emailConfigured": settings.email_configured,
    }
