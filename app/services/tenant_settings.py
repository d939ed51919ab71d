"""
Tenant settings and success variants.

Settings are a lazily created singleton per tenant; they are never deleted.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.constants.forms import DEFAULT_VARIANT
from app.db.helpers import commit_and_refresh
from app.db.models import SuccessVariant, TenantSettings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "whatsapp_enabled": True,
    "whatsapp_on_submit": False,
    "whatsapp_number": "",
    "whatsapp_message": "Olá! Acabei de enviar meus dados no formulário.",
    "success_title": "Obrigado",
    "success_subtitle": "Em breve entraremos em contato.",
    "success_description": "Recebemos suas informações com sucesso!",
    "cover_enabled": False,
    "cover_title": "",
    "cover_subtitle": "",
    "cover_cta_text": "Começar",
}

EDITABLE_SETTINGS_FIELDS = set(DEFAULT_SETTINGS) | {"form_name", "webhook_url"}


@dataclass
class SuccessCopy:
    """Resolved terminal screen: variant copy, or the tenant defaults."""

    variant: str
    title: str
    subtitle: str
    description: str
    whatsapp_enabled: bool
    whatsapp_number: str
    whatsapp_message: str
    uses_tenant_number: bool = True


def get_settings(db: Session, subdomain: str) -> TenantSettings | None:
    return db.execute(
        select(TenantSettings).where(TenantSettings.subdomain == subdomain)
    ).scalar_one_or_none()


def get_or_create_settings(db: Session, subdomain: str) -> TenantSettings:
    """
    Load tenant settings, creating them with defaults on first access.

    A concurrent first access may lose the insert race on the unique subdomain;
    in that case the winner's row is returned.
    """
    existing = get_settings(db, subdomain)
    if existing:
        return existing

    tenant_settings = TenantSettings(subdomain=subdomain, form_name=subdomain, **DEFAULT_SETTINGS)
    db.add(tenant_settings)
    try:
        commit_and_refresh(db, tenant_settings)
    except IntegrityError:
        db.rollback()
        existing = get_settings(db, subdomain)
        if existing is None:
            raise
        return existing

    logger.info(f"Created default settings for tenant '{subdomain}'")
    return tenant_settings


def update_settings(db: Session, subdomain: str, updates: dict) -> TenantSettings:
    """Apply admin updates (unknown keys are ignored)."""
    tenant_settings = get_or_create_settings(db, subdomain)
    for key, value in updates.items():
        if key in EDITABLE_SETTINGS_FIELDS:
            setattr(tenant_settings, key, value)
    commit_and_refresh(db, tenant_settings)
    return tenant_settings


def list_variants(db: Session, subdomain: str) -> list[SuccessVariant]:
    stmt = select(SuccessVariant).where(SuccessVariant.subdomain == subdomain).order_by(SuccessVariant.page_key)
    return list(db.execute(stmt).scalars().all())


def get_variant(db: Session, subdomain: str, page_key: str) -> SuccessVariant | None:
    return db.execute(
        select(SuccessVariant)
        .where(SuccessVariant.subdomain == subdomain)
        .where(SuccessVariant.page_key == page_key)
    ).scalar_one_or_none()


def upsert_variant(db: Session, subdomain: str, page_key: str, values: dict) -> SuccessVariant:
    variant = get_variant(db, subdomain, page_key)
    if variant is None:
        variant = SuccessVariant(subdomain=subdomain, page_key=page_key)
        db.add(variant)
    for key in ("title", "subtitle", "description", "whatsapp_enabled", "whatsapp_number", "whatsapp_message"):
        if key in values and values[key] is not None:
            setattr(variant, key, values[key])
    commit_and_refresh(db, variant)
    return variant


def resolve_success_copy(db: Session, subdomain: str, variant_key: str | None) -> SuccessCopy:
    """
    Resolve the success screen for a variant key.

    Unknown or default keys fall back to the tenant defaults. A variant without
    its own WhatsApp number inherits the tenant's number and message.
    """
    tenant_settings = get_or_create_settings(db, subdomain)
    default_copy = SuccessCopy(
        variant=DEFAULT_VARIANT,
        title=tenant_settings.success_title,
        subtitle=tenant_settings.success_subtitle,
        description=tenant_settings.success_description,
        whatsapp_enabled=tenant_settings.whatsapp_enabled,
        whatsapp_number=tenant_settings.whatsapp_number,
        whatsapp_message=tenant_settings.whatsapp_message,
    )
    if not variant_key or variant_key == DEFAULT_VARIANT:
        return default_copy

    variant = get_variant(db, subdomain, variant_key)
    if variant is None:
        logger.warning(f"Success variant '{variant_key}' not found for '{subdomain}'; using defaults")
        return default_copy

    has_own_number = bool(variant.whatsapp_number)
    return SuccessCopy(
        variant=variant.page_key,
        title=variant.title or default_copy.title,
        subtitle=variant.subtitle or default_copy.subtitle,
        description=variant.description or default_copy.description,
        whatsapp_enabled=variant.whatsapp_enabled,
        whatsapp_number=variant.whatsapp_number if has_own_number else default_copy.whatsapp_number,
        whatsapp_message=variant.whatsapp_message if has_own_number else default_copy.whatsapp_message,
        uses_tenant_number=not has_own_number,
    )
