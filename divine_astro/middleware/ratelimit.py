import os
import threading
import time
from typing import Dict, List

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

WINDOW_SECONDS = 60.0

# bucket key -> request timestamps inside the current window
_counters: Dict[str, List[float]] = {}
_lock = threading.Lock()


def bucket_key(request: Request) -> str:
    """Authenticated clients get their own bucket; everyone else shares one per IP.

    Relies on APIKeyMiddleware running first and setting ``request.state.api_key``.
    """

    api_key = getattr(request.state, "api_key", None)
    if api_key:
        return f"key:{api_key}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


def _prune(now: float) -> None:
    # drop buckets whose window has emptied so idle clients do not accumulate
    cutoff = now - WINDOW_SECONDS
    for key in [k for k, stamps in _counters.items() if not stamps or stamps[-1] <= cutoff]:
        del _counters[key]


def hit(key: str, limit: int, now: float | None = None) -> bool:
    """Record a request for ``key``; False when it exceeds ``limit`` per window."""

    now = time.time() if now is None else now
    with _lock:
        _prune(now)
        window = [t for t in _counters.get(key, []) if t > now - WINDOW_SECONDS]
        window.append(now)
        _counters[key] = window
        return len(window) <= limit


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if os.getenv("RATE_LIMIT_ENABLED", "false").lower() != "true":
            return await call_next(request)

        limit = int(os.getenv("RATE_LIMIT_PER_MINUTE", "10"))
        if not hit(bucket_key(request), limit):
            return JSONResponse({"detail": "Rate limit exceeded"}, status_code=429)

        return await call_next(request)
