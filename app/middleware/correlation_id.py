"""
Correlation ID middleware.

Every request gets an id (from X-Correlation-ID when the caller sends a sane
one, otherwise a new UUID). It is stored on request.state and in a contextvar
so system events written anywhere during the request carry it, and it is
echoed back on the response.
"""

import logging
import re
import uuid
from collections.abc import Callable
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

HEADER_CORRELATION_ID = "X-Correlation-ID"
MAX_CORRELATION_ID_LENGTH = 128

# Printable, no whitespace; anything else is replaced by a generated id
_ACCEPTABLE_ID = re.compile(r"^[A-Za-z0-9._:\-]+$")

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id(request: Request | None = None) -> str | None:
    """Correlation id from request.state, else from the contextvar; None outside a request."""
    if request is not None and getattr(request.state, "correlation_id", None):
        return request.state.correlation_id
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def _choose_correlation_id(incoming: str | None) -> str:
    if incoming:
        candidate = incoming.strip()
        if len(candidate) <= MAX_CORRELATION_ID_LENGTH and _ACCEPTABLE_ID.match(candidate):
            return candidate
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        cid = _choose_correlation_id(request.headers.get(HEADER_CORRELATION_ID))
        request.state.correlation_id = cid
        token = _correlation_id_var.set(cid)
        try:
            response = await call_next(request)
        finally:
            _correlation_id_var.reset(token)
        response.headers[HEADER_CORRELATION_ID] = cid
        return response
