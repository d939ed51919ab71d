"""
Tests for wa.me link building and success-variant WhatsApp resolution.
"""

from urllib.parse import unquote

from app.services.tenant_settings import update_settings
from app.services.whatsapp import build_whatsapp_link, resolve_whatsapp_link
from app.services.whatsapp.links import interpolate_message
from tests.helpers.forms import TENANT, add_variant


def test_interpolates_fields_from_trace():
    message = interpolate_message("Olá, sou {nome} e quero o curso {Curso}", {"nome": "Ana", "Curso": "A"})
    assert message == "Olá, sou Ana e quero o curso A"


def test_missing_placeholders_are_left_untouched():
    assert interpolate_message("Oi {nome}, {cidade}", {"nome": "Ana"}) == "Oi Ana, {cidade}"


def test_empty_values_become_empty_strings():
    assert interpolate_message("[{nome}]", {"nome": None}) == "[]"
    assert interpolate_message("[{nome}]", {"nome": ""}) == "[]"


def test_list_values_are_joined():
    assert interpolate_message("{interesses}", {"interesses": ["a", "b"]}) == "a, b"


def test_build_link_strips_number_and_encodes_message():
    link = build_whatsapp_link("+55 (31) 99999-0000", "Olá {nome} & cia", {"nome": "Ana"})

    assert link.startswith("https://wa.me/5531999990000?text=")
    encoded = link.split("?text=", 1)[1]
    assert " " not in encoded
    assert "&" not in encoded
    assert unquote(encoded) == "Olá Ana & cia"


def test_build_link_without_digits_returns_none():
    assert build_whatsapp_link("", "Oi") is None
    assert build_whatsapp_link("sem numero", "Oi") is None


def test_build_link_uses_default_message():
    link = build_whatsapp_link("5531999990000", None)
    assert unquote(link.split("?text=", 1)[1]) == "Olá! Preenchi o formulário."


def test_resolve_uses_tenant_defaults(db):
    update_settings(db, TENANT, {"whatsapp_number": "5531988887777", "whatsapp_message": "Sou {nome}"})

    link = resolve_whatsapp_link(db, TENANT, None, {"nome": "Ana"})

    assert link == "https://wa.me/5531988887777?text=Sou%20Ana"


def test_resolve_returns_none_when_disabled(db):
    update_settings(db, TENANT, {"whatsapp_enabled": False, "whatsapp_number": "5531988887777"})

    assert resolve_whatsapp_link(db, TENANT, "default", {}) is None


def test_agent_number_replaces_tenant_number(db):
    update_settings(db, TENANT, {"whatsapp_number": "5531988887777", "whatsapp_message": "Oi"})

    link = resolve_whatsapp_link(db, TENANT, None, {}, agent_number="5531911112222")

    assert link.startswith("https://wa.me/5531911112222?")


def test_variant_with_own_number_wins_over_agent(db):
    update_settings(db, TENANT, {"whatsapp_number": "5531988887777"})
    add_variant(db, "vip", whatsapp_enabled=True, whatsapp_number="5531955554444", whatsapp_message="VIP {nome}")

    link = resolve_whatsapp_link(db, TENANT, "vip", {"nome": "Ana"}, agent_number="5531911112222")

    assert link == "https://wa.me/5531955554444?text=VIP%20Ana"


def test_variant_without_number_inherits_tenant_config(db):
    update_settings(db, TENANT, {"whatsapp_number": "5531988887777", "whatsapp_message": "Padrão"})
    add_variant(db, "vip", whatsapp_enabled=True)

    link = resolve_whatsapp_link(db, TENANT, "vip", {}, agent_number="5531911112222")

    assert link == "https://wa.me/5531911112222?text=Padr%C3%A3o"


def test_disabled_variant_has_no_link(db):
    update_settings(db, TENANT, {"whatsapp_number": "5531988887777"})
    add_variant(db, "sem_interesse", whatsapp_enabled=False)

    assert resolve_whatsapp_link(db, TENANT, "sem_interesse", {}) is None


def test_unknown_variant_falls_back_to_defaults(db):
    update_settings(db, TENANT, {"whatsapp_number": "5531988887777", "whatsapp_message": "Oi"})

    assert resolve_whatsapp_link(db, TENANT, "nao-existe", {}) == "https://wa.me/5531988887777?text=Oi"
