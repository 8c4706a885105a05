"""In-memory fixed-window rate limiting.

The limiter is process-scoped: created at startup, kept on ``app.state``
and only touched from the event loop. Counters are not shared between
instances, so a multi-instance deployment needs an external counter store.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

READ_METHODS = {"GET", "HEAD", "OPTIONS"}


@dataclass
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: float  # epoch seconds when the window ends

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset)),
        }


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window counter keyed by identifier and request class.

    Expired windows are pruned from ``check`` once per ``cleanup_interval``
    seconds (one window length by default).
    """

    def __init__(
        self,
        window_seconds: int = 60,
        read_max: int = 100,
        mutation_max: int = 20,
        cleanup_interval: Optional[float] = None,
        trust_forwarded_for: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        self.window_seconds = window_seconds
        self.read_max = read_max
        self.mutation_max = mutation_max
        self.cleanup_interval = cleanup_interval or window_seconds
        self.trust_forwarded_for = trust_forwarded_for
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._next_cleanup = clock() + self.cleanup_interval

    @property
    def window_count(self) -> int:
        return len(self._windows)

    def check(self, identifier: str, mutation: bool = False) -> RateLimitResult:
        limit = self.mutation_max if mutation else self.read_max
        key = f"{'mutation' if mutation else 'read'}:{identifier}"
        now = self._clock()

        if now >= self._next_cleanup:
            self.cleanup()

        window = self._windows.get(key)
        if window is None or window.reset_at <= now:
            window = _Window(count=1, reset_at=now + self.window_seconds)
            self._windows[key] = window
            return RateLimitResult(True, limit, limit - 1, window.reset_at)

        if window.count >= limit:
            return RateLimitResult(False, limit, 0, window.reset_at)

        window.count += 1
        return RateLimitResult(True, limit, limit - window.count, window.reset_at)

    def cleanup(self) -> int:
        """Drop expired windows; returns how many were removed"""
        now = self._clock()
        expired = [k for k, w in self._windows.items() if w.reset_at <= now]
        for key in expired:
            del self._windows[key]
        self._next_cleanup = now + self.cleanup_interval
        return len(expired)

    def reset(self) -> None:
        self._windows.clear()


def client_identifier(request: Request, trust_forwarded_for: bool = False) -> str:
    """Rate-limit key for a request.

    ``X-Forwarded-For`` is client-controlled, so its first entry is only
    used when the service runs behind a proxy that overwrites it.
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies the app's RateLimiter to every /v1 request"""

    def __init__(self, app, prefix: str = "/v1"):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next):
        limiter: Optional[RateLimiter] = getattr(request.app.state, "rate_limiter", None)
        if limiter is None or not request.url.path.startswith(self.prefix):
            return await call_next(request)

        result = limiter.check(
            client_identifier(request, limiter.trust_forwarded_for),
            mutation=request.method not in READ_METHODS,
        )
        if not result.success:
            retry_after = max(0, math.ceil(result.reset - time.time()))
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Too many requests",
                    "message": "Request limit exceeded. Try again later.",
                },
                headers={**result.headers(), "Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers.update(result.headers())
        return response
