"""
CRM webhook delivery.

Payload: {manager_id, slug, nome, telefone (digits), email, origem, produto?,
campanha?, ...dynamic fields, ...UTM params}. Dynamic fields are every trace
key except the fixed ones and tracking keys, which are only sent when
include_utm_params is on.
"""

import logging
import re
from typing import Any

import httpx

from app.constants.delivery import CHANNEL_CRM, CRM_FIXED_KEYS, UTM_KEYS
from app.core.config import settings
from app.db.models import CrmIntegration
from app.services.delivery.outcomes import DeliveryOutcome
from app.services.delivery.payload import extract_fixed_fields
from app.services.integrations.http_client import create_httpx_client, post_with_deadline

logger = logging.getLogger(__name__)


def build_crm_payload(integration: CrmIntegration, trace: dict[str, Any]) -> dict[str, Any]:
    fixed = extract_fixed_fields(trace)
    payload: dict[str, Any] = {
        "manager_id": integration.manager_id or "",
        "slug": integration.slug or "",
        "nome": fixed.nome or "",
        "telefone": str(fixed.telefone) if fixed.telefone is not None else "",
        "email": fixed.email or "",
        "origem": integration.origem or settings.crm_default_origem,
    }
    if integration.produto:
        payload["produto"] = integration.produto
    if integration.campanha:
        payload["campanha"] = integration.campanha

    if integration.include_dynamic_fields:
        for key, value in trace.items():
            if key in CRM_FIXED_KEYS or key in UTM_KEYS or key in payload:
                continue
            payload[key] = value

    if integration.include_utm_params:
        for key in UTM_KEYS:
            if trace.get(key):
                payload[key] = trace[key]

    return payload


def build_crm_headers(integration: CrmIntegration) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if integration.bearer_token:
        headers["Authorization"] = f"Bearer {integration.bearer_token}"
    return headers


def _redact(url: str) -> str:
    # Keep scheme and host only; webhook paths often carry secrets
    match = re.match(r"^(https?://[^/]+)", url or "")
    return f"{match.group(1)}/..." if match else "<invalid url>"


async def deliver_to_crm(integration: CrmIntegration, payload: dict[str, Any]) -> DeliveryOutcome:
    """
    POST the payload to the CRM webhook (single attempt, CRM_TIMEOUT_SECONDS).

    Returns:
        DeliveryOutcome; ok only for a 2xx response. Failures are returned, never raised.
    """
    if not integration.webhook_url:
        return DeliveryOutcome.not_configured(CHANNEL_CRM, "webhook_url is empty")

    try:
        async with create_httpx_client(settings.crm_timeout_seconds) as client:
            response = await post_with_deadline(
                client,
                integration.webhook_url,
                settings.crm_timeout_seconds,
                json=payload,
                headers=build_crm_headers(integration),
            )
    except (httpx.TimeoutException, TimeoutError):
        logger.warning(
            f"CRM webhook {_redact(integration.webhook_url)} timed out after {settings.crm_timeout_seconds}s"
        )
        return DeliveryOutcome.failed(CHANNEL_CRM, "timeout")
    except httpx.HTTPError as e:
        logger.warning(f"CRM webhook {_redact(integration.webhook_url)} request failed: {e}")
        return DeliveryOutcome.failed(CHANNEL_CRM, f"network error: {type(e).__name__}")

    if response.is_success:
        logger.info(f"CRM '{integration.crm_name}' accepted lead ({response.status_code})")
        return DeliveryOutcome(channel=CHANNEL_CRM, ok=True, status_code=response.status_code)

    logger.warning(
        f"CRM '{integration.crm_name}' returned {response.status_code}: {response.text[:200]}"
    )
    return DeliveryOutcome.failed(
        CHANNEL_CRM, f"HTTP {response.status_code}", status_code=response.status_code
    )
