"""
CRM integration configuration (at most one per tenant).
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ConfigurationError
from app.db.helpers import commit_and_refresh
from app.db.models import CrmIntegration
from app.services.delivery.crm import build_crm_payload, deliver_to_crm
from app.services.delivery.outcomes import DeliveryOutcome

logger = logging.getLogger(__name__)

CRM_EDITABLE_FIELDS = (
    "crm_name",
    "webhook_url",
    "bearer_token",
    "manager_id",
    "slug",
    "is_active",
    "include_dynamic_fields",
    "exclusive_mode",
    "include_utm_params",
    "origem",
    "campanha",
    "produto",
)

# Sample lead used by the admin "test webhook" action
SAMPLE_TRACE = {
    "nome": "Maria Santos",
    "telefone": "31999887766",
    "email": "maria@empresa.com",
    "mensagem": "Gostaria de saber mais sobre o plano empresarial",
    "utm_source": "google",
    "utm_medium": "cpc",
    "utm_campaign": "black_friday_2025",
}


def get_crm_integration(db: Session, subdomain: str) -> CrmIntegration | None:
    return db.execute(
        select(CrmIntegration).where(CrmIntegration.subdomain == subdomain)
    ).scalar_one_or_none()


def get_active_crm_integration(db: Session, subdomain: str) -> CrmIntegration | None:
    """The tenant's integration when it is active and has a webhook URL."""
    integration = get_crm_integration(db, subdomain)
    if integration is None or not integration.is_active:
        return None
    if not integration.webhook_url:
        logger.warning(f"CRM integration for '{subdomain}' is active but has no webhook_url")
        return None
    return integration


def upsert_crm_integration(db: Session, subdomain: str, values: dict) -> CrmIntegration:
    """
    Create or update the tenant's CRM integration.

    Raises:
        ConfigurationError: Active integration without an http(s) webhook_url
    """
    integration = get_crm_integration(db, subdomain)
    merged = {key: getattr(integration, key) for key in CRM_EDITABLE_FIELDS} if integration else {}
    merged.update({k: v for k, v in values.items() if k in CRM_EDITABLE_FIELDS})

    webhook_url = (merged.get("webhook_url") or "").strip()
    if webhook_url and not webhook_url.startswith(("http://", "https://")):
        raise ConfigurationError("Invalid CRM integration", fields={"webhook_url": "Must be an http(s) URL"})
    if merged.get("is_active") and not webhook_url:
        raise ConfigurationError(
            "Invalid CRM integration",
            fields={"webhook_url": "Required when the integration is active"},
        )

    if integration is None:
        integration = CrmIntegration(subdomain=subdomain)
        db.add(integration)
    for key in CRM_EDITABLE_FIELDS:
        if key in values:
            setattr(integration, key, values[key])
    integration.webhook_url = webhook_url
    commit_and_refresh(db, integration)

    mode = "exclusive" if integration.exclusive_mode else "parallel"
    logger.info(
        f"Saved CRM integration '{integration.crm_name}' for '{subdomain}' "
        f"(active={integration.is_active}, mode={mode})"
    )
    return integration


async def send_test_lead(db: Session, subdomain: str) -> DeliveryOutcome:
    """Send a sample lead (flagged _teste) to the configured webhook, active or not."""
    integration = get_crm_integration(db, subdomain)
    if integration is None or not integration.webhook_url:
        raise ConfigurationError("Configure the CRM webhook URL first", fields={"webhook_url": "missing"})

    payload = build_crm_payload(integration, SAMPLE_TRACE)
    payload["_teste"] = True
    payload["timestamp"] = datetime.now(UTC).isoformat()
    return await deliver_to_crm(integration, payload)
