"""
In-memory sliding-window rate limiter for admin and analytics beacon paths.

Each (client IP, path prefix) pair gets its own window, so a burst of
beacons from one browser does not lock the same IP out of the admin API.
State is per process.
"""

import logging
import time
from collections import defaultdict
from collections.abc import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

logger = logging.getLogger(__name__)

# {(client_ip, prefix): [request timestamps]}
_request_log: dict[tuple[str, str], list[float]] = defaultdict(list)


def reset_rate_limits() -> None:
    """Forget all recorded requests."""
    _request_log.clear()


def _hit(bucket: tuple[str, str], now: float) -> bool:
    """Record a request in the bucket; return True when the bucket is already full."""
    cutoff = now - settings.rate_limit_window_seconds
    recent = [ts for ts in _request_log[bucket] if ts > cutoff]
    if len(recent) >= settings.rate_limit_requests:
        _request_log[bucket] = recent
        return True
    recent.append(now)
    _request_log[bucket] = recent
    return False


def get_client_ip(request: Request) -> str:
    """Client IP, preferring the first X-Forwarded-For hop, then X-Real-IP."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    if request.client:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limit requests whose path starts with one of rate_limited_paths."""

    def __init__(self, app, rate_limited_paths: list[str]):
        super().__init__(app)
        self.rate_limited_paths = rate_limited_paths

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not settings.rate_limit_enabled:
            return await call_next(request)

        path = request.url.path
        prefix = next((p for p in self.rate_limited_paths if path.startswith(p)), None)
        if prefix is None:
            return await call_next(request)

        client_ip = get_client_ip(request)
        if _hit((client_ip, prefix), time.time()):
            window = settings.rate_limit_window_seconds
            logger.warning(
                f"Rate limit exceeded for {client_ip} on {path} "
                f"({settings.rate_limit_requests} requests per {window}s)"
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "success": False,
                    "error": "rate_limited",
                    "message": f"Too many requests. Limit: {settings.rate_limit_requests} "
                    f"requests per {window} seconds.",
                    "retry_after": window,
                },
                headers={"Retry-After": str(window)},
            )

        return await call_next(request)
