"""
app/middleware/rate_limit.py — Sliding-window per-IP limit on audit submissions.
Each audit fans out to the audited site and PageSpeed, so only POST /api/audit
is limited. Limit configurable via .env RATE_LIMIT_PER_MINUTE.
"""
import time
from collections import deque
from typing import Callable, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from app.utils.deps import error_response

LIMITED_PATHS = {"/api/audit"}


class SlidingWindowLimiter:
    def __init__(self, window_seconds: float = 60.0):
        self.window = window_seconds
        self._hits: Dict[str, deque] = {}
        self._last_sweep = 0.0

    def _sweep(self, now: float) -> None:
        """Drop keys whose newest hit has left the window."""
        stale = [k for k, hits in self._hits.items() if not hits or now - hits[-1] > self.window]
        for k in stale:
            del self._hits[k]
        self._last_sweep = now

    def hit(self, key: str, limit: int, now: Optional[float] = None) -> Optional[int]:
        """Record a hit for key. Returns seconds to wait if over limit, else None."""
        now = time.monotonic() if now is None else now
        if now - self._last_sweep > self.window:
            self._sweep(now)
        hits = self._hits.setdefault(key, deque())
        while hits and now - hits[0] > self.window:
            hits.popleft()
        if len(hits) >= limit:
            return int(self.window - (now - hits[0])) + 1
        hits.append(now)
        return None

    def reset(self) -> None:
        self._hits.clear()


limiter = SlidingWindowLimiter()


def reset_rate_limits() -> None:
    limiter.reset()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "POST" and request.url.path in LIMITED_PATHS:
            limit = get_settings().rate_limit_per_minute
            retry = limiter.hit(client_ip(request), limit)
            if retry is not None:
                print(f"⚠️  Rate limit hit for {client_ip(request)} on {request.url.path}")
                response = error_response(
                    429,
                    f"Too many audit requests. Max {limit} per minute.",
                    retryAfterSeconds=retry,
                )
                response.headers["Retry-After"] = str(retry)
                return response
        return await call_next(request)
