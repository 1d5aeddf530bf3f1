"""Per-IP fixed-window rate limiting.

State is process-local and lost on restart.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorResponse
from core.errors import ErrorCodes

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP. Please try again later."

# Expired windows are purged once this many clients are tracked
MAX_TRACKED_CLIENTS = 10_000


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@dataclass
class Window:
    """Requests counted since a window opened."""

    started: float
    count: int = 0


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_seconds),
        }


class RateLimiter:
    """Allow at most max_requests per client within each window."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: dict[str, Window] = {}

    def _purge(self, now: float) -> None:
        expired = [
            client
            for client, window in self._windows.items()
            if now - window.started >= self.window_seconds
        ]
        for client in expired:
            del self._windows[client]

    def hit(self, client: str) -> RateLimitResult:
        """Count one request from client and report whether it is allowed."""
        now = self.clock()
        if len(self._windows) >= MAX_TRACKED_CLIENTS:
            self._purge(now)

        window = self._windows.get(client)
        if window is None or now - window.started >= self.window_seconds:
            window = Window(started=now)
            self._windows[client] = window

        window.count += 1
        reset = max(0, math.ceil(window.started + self.window_seconds - now))
        return RateLimitResult(
            allowed=window.count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - window.count),
            reset_seconds=reset,
        )

    def reset(self) -> None:
        self._windows.clear()


async def rate_limit_middleware(request: Request, call_next):
    """Reject requests over the per-IP limit with 429 and RateLimit-* headers."""
    limiter: RateLimiter | None = request.app.state.rate_limiter
    if limiter is None:
        return await call_next(request)

    client_ip = get_client_ip(request)
    result = limiter.hit(client_ip)
    if not result.allowed:
        logger.warning(
            "Rate limit exceeded", extra={"client_ip": client_ip, "path": request.url.path}
        )
        return JSONResponse(
            status_code=429,
            content=ErrorResponse(
                error=RATE_LIMIT_MESSAGE, code=ErrorCodes.RATE_LIMITED
            ).model_dump(exclude_none=True),
            headers=result.headers(),
        )

    response = await call_next(request)
    response.headers.update(result.headers())
    return response
