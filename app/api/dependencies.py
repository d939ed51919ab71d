"""FastAPI dependencies for API routes."""

import json
from typing import Any

from fastapi import HTTPException, Query, Request

from app.core.config import settings


def get_subdomain(subdomain: str | None = Query(default=None, max_length=100)) -> str:
    """Tenant key from ?subdomain=, defaulting to DEFAULT_SUBDOMAIN."""
    cleaned = (subdomain or "").strip().lower()
    return cleaned or settings.default_subdomain


async def read_json_body(request: Request) -> Any:
    """
    Parse the request body as JSON whatever the Content-Type.

    Beacon requests (navigator.sendBeacon) arrive as text/plain.

    Raises:
        HTTPException: 400 when the body is not valid JSON
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise HTTPException(status_code=400, detail="Request body must be valid JSON") from None
