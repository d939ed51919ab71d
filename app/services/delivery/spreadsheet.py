"""
Spreadsheet webhook delivery (Apps Script receiver).

One POST per submission, single attempt, bounded timeout. The receiver
appends a row and adds columns for keys it has not seen.
"""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from app.constants.delivery import CHANNEL_SPREADSHEET, RATE_LIMIT_PHRASES
from app.core.config import settings
from app.services.delivery.outcomes import DeliveryOutcome
from app.services.integrations.http_client import create_httpx_client, post_with_deadline

logger = logging.getLogger(__name__)


def resolve_spreadsheet_url(tenant_webhook_url: str | None) -> str | None:
    """Tenant's configured URL, falling back to SPREADSHEET_WEBHOOK_URL."""
    return tenant_webhook_url or settings.spreadsheet_webhook_url or None


def build_spreadsheet_payload(trace: dict[str, Any], submitted_at: datetime | None = None) -> dict[str, Any]:
    """Full trace plus data_cadastro (ISO timestamp) and origem."""
    submitted_at = submitted_at or datetime.now(UTC)
    return {
        **trace,
        "data_cadastro": submitted_at.isoformat(),
        "origem": trace.get("origem") or settings.spreadsheet_origem,
    }


def is_rate_limited(body: str) -> bool:
    lowered = (body or "").lower()
    return any(phrase in lowered for phrase in RATE_LIMIT_PHRASES)


async def deliver_to_spreadsheet(url: str, payload: dict[str, Any]) -> DeliveryOutcome:
    """
    POST the payload to the spreadsheet webhook.

    Returns:
        DeliveryOutcome; ok only for a 2xx response. Timeouts, network errors,
        non-2xx and rate-limit responses come back as failed outcomes, never raised.
    """
    try:
        async with create_httpx_client(settings.spreadsheet_timeout_seconds) as client:
            response = await post_with_deadline(
                client, url, settings.spreadsheet_timeout_seconds, json=payload
            )
    except (httpx.TimeoutException, TimeoutError):
        logger.warning(f"Spreadsheet webhook timed out after {settings.spreadsheet_timeout_seconds}s")
        return DeliveryOutcome.failed(CHANNEL_SPREADSHEET, "timeout")
    except httpx.HTTPError as e:
        logger.warning(f"Spreadsheet webhook request failed: {e}")
        return DeliveryOutcome.failed(CHANNEL_SPREADSHEET, f"network error: {type(e).__name__}")

    if response.is_success:
        logger.info(f"Spreadsheet webhook accepted {len(payload)} fields")
        return DeliveryOutcome(channel=CHANNEL_SPREADSHEET, ok=True, status_code=response.status_code)

    body = response.text[:500]
    rate_limited = is_rate_limited(body)
    logger.warning(
        f"Spreadsheet webhook returned {response.status_code}"
        f"{' (rate limited)' if rate_limited else ''}: {body[:200]}"
    )
    return DeliveryOutcome.failed(
        CHANNEL_SPREADSHEET,
        f"HTTP {response.status_code}",
        status_code=response.status_code,
        rate_limited=rate_limited,
    )
