"""
Tests for tenant settings defaults and success screen resolution.
"""

from app.db.models import TenantSettings
from app.services.tenant_settings import (
    get_or_create_settings,
    resolve_success_copy,
    update_settings,
)
from tests.helpers.forms import TENANT, add_variant


def test_settings_created_once_with_defaults(db):
    first = get_or_create_settings(db, TENANT)
    second = get_or_create_settings(db, TENANT)

    assert first.id == second.id
    assert first.form_name == TENANT
    assert first.whatsapp_enabled is True
    assert db.query(TenantSettings).count() == 1


def test_update_ignores_unknown_keys(db):
    settings = update_settings(db, TENANT, {"success_title": "Valeu", "subdomain": "outra", "id": 99})

    assert settings.success_title == "Valeu"
    assert settings.subdomain == TENANT


def test_default_key_resolves_tenant_copy(db):
    update_settings(db, TENANT, {"success_title": "Obrigado!", "whatsapp_number": "5531900000000"})

    copy = resolve_success_copy(db, TENANT, "default")

    assert copy.variant == "default"
    assert copy.title == "Obrigado!"
    assert copy.whatsapp_number == "5531900000000"
    assert copy.uses_tenant_number is True


def test_unknown_variant_falls_back_to_defaults(db):
    copy = resolve_success_copy(db, TENANT, "nao_existe")
    assert copy.variant == "default"


def test_variant_without_number_inherits_tenant_number(db):
    update_settings(db, TENANT, {"whatsapp_number": "5531900000000", "whatsapp_message": "Oi {nome}"})
    add_variant(db, "vip", whatsapp_enabled=True)

    copy = resolve_success_copy(db, TENANT, "vip")

    assert copy.variant == "vip"
    assert copy.title == "Tela vip"
    assert copy.whatsapp_number == "5531900000000"
    assert copy.whatsapp_message == "Oi {nome}"
    assert copy.uses_tenant_number is True


def test_variant_with_own_number(db):
    add_variant(db, "vip", whatsapp_enabled=True, whatsapp_number="5531955554444", whatsapp_message="VIP")

    copy = resolve_success_copy(db, TENANT, "vip")

    assert copy.whatsapp_number == "5531955554444"
    assert copy.whatsapp_message == "VIP"
    assert copy.uses_tenant_number is False
