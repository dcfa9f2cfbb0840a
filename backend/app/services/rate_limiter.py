"""
Per-client rate limiting for the contact form.

A sliding-window limiter keyed by client IP, held in process memory on
``app.state.rate_limiter``. The ``enforce_contact_rate_limit`` dependency
admits or refuses each POST /api/contact before the handler runs and reports
the IETF draft ``RateLimit-*`` headers on admitted responses.
"""

import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Request, Response

from app.config import Settings, get_settings
from app.errors import RateLimitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float        # seconds until the oldest counted hit leaves the window


class SlidingWindowRateLimiter:
    """
    Admit at most ``max_requests`` hits per key in any ``window_seconds`` span.

    Refused hits are not recorded, so a client that keeps retrying is let
    back in as soon as its oldest admitted hit ages out. Keys with no hit
    left in the window are dropped: the hit key on every call, all keys in
    a sweep that runs at most once per window.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        """Number of clients held; idle ones linger until the next sweep."""
        with self._lock:
            return len(self._hits)

    def _sweep(self, cutoff: float) -> None:
        # newest hit is last; a key whose newest hit is outside the window is idle
        expired = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in expired:
            del self._hits[key]
        if expired:
            logger.debug(f"Rate limiter dropped {len(expired)} idle client(s)")

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        cutoff = now - self.window_seconds

        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            hits = self._hits.get(key) or deque()
            while hits and hits[0] <= cutoff:
                hits.popleft()

            allowed = len(hits) < self.max_requests
            if allowed:
                hits.append(now)

            if hits:
                self._hits[key] = hits
            else:
                self._hits.pop(key, None)

            reset_after = (hits[0] + self.window_seconds - now) if hits else 0.0
            return RateLimitDecision(
                allowed=allowed,
                limit=self.max_requests,
                remaining=max(self.max_requests - len(hits), 0),
                reset_after=reset_after,
            )

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)


def get_client_ip(request: Request, trust_proxy: bool = False) -> str:
    """Client IP, taken from the first X-Forwarded-For hop when behind a trusted proxy."""
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_contact_rate_limit(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> None:
    """
    FastAPI dependency guarding the contact endpoint.

    The RateLimit-* headers go on the route's response and are kept on
    ``request.state`` so the error handlers can repeat them when the route
    fails or the client is refused.

    Raises:
        RateLimitError: 429 once the client has used up its window.
    """
    limiter: SlidingWindowRateLimiter = request.app.state.rate_limiter
    client_ip = get_client_ip(request, settings.trust_proxy)
    decision = limiter.hit(client_ip)
    reset_seconds = max(math.ceil(decision.reset_after), 0)

    headers = {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(reset_seconds),
    }
    request.state.rate_limit_headers = headers

    if not decision.allowed:
        logger.warning(f"Rate limit exceeded for {client_ip}")
        raise RateLimitError(
            f"{client_ip} exceeded {decision.limit} submissions per "
            f"{limiter.window_seconds}s",
            retry_after=reset_seconds,
        )

    response.headers.update(headers)


def rate_limit_headers(request: Request) -> dict[str, str]:
    """RateLimit-* headers recorded for this request, if the limiter ran."""
    return dict(getattr(request.state, "rate_limit_headers", None) or {})
