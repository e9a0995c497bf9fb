# =============================================================================
# app/rate_limit.py - Per-Client Rate Limiting
# =============================================================================
# Fixed-window request limiter keyed by client IP, mounted as middleware in
# front of the property endpoints. Health checks and docs are not limited.
#
# Usage:
#   app.add_middleware(
#       RateLimitMiddleware,
#       limiter=FixedWindowRateLimiter(max_requests=60, window_seconds=60),
#   )
# =============================================================================

import logging
import math
import threading
import time
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Expired windows are purged once the table grows past this many clients
PURGE_THRESHOLD = 10_000


class FixedWindowRateLimiter:
    """
    Count requests per key in fixed windows.

    A key's window starts at its first request and lasts window_seconds;
    the count resets when the window ends.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> float | None:
        """
        Record one request for key.

        Returns:
            None if the request is allowed, otherwise the seconds until the
            key's window resets
        """
        with self._lock:
            now = self._clock()
            count, reset_at = self._windows.get(key, (0, 0.0))
            if now >= reset_at:
                count, reset_at = 0, now + self.window_seconds
            count += 1
            self._windows[key] = (count, reset_at)

            if len(self._windows) > PURGE_THRESHOLD:
                self._purge(now)

        if count > self.max_requests:
            return reset_at - now
        return None

    def _purge(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._windows.items() if now >= reset_at]
        for key in expired:
            del self._windows[key]


def client_key(request: Request) -> str:
    """
    Identify the caller behind one trusted proxy hop.

    Only the last X-Forwarded-For entry is used: it is the address the proxy
    saw. Earlier entries are supplied by the client and can be anything.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        hop = forwarded.split(",")[-1].strip()
        if hop:
            return hop
    if request.client:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests under path_prefix once a client exceeds its limit."""

    def __init__(self, app, limiter: FixedWindowRateLimiter, path_prefix: str = "/api/v1/properties"):
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        key = client_key(request)
        retry_after = self.limiter.hit(key)
        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for {key} on {request.url.path}")
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests", "code": "RATE_LIMITED"},
                headers={"Retry-After": str(max(1, math.ceil(retry_after)))},
            )

        return await call_next(request)
