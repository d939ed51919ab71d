"""
Tests for the public form endpoints.
"""

from tests.helpers.forms import TENANT, add_question, course_branching_model


def test_public_settings_returns_model_in_step_order(client, db):
    add_question(db, 20, "email", subdomain=TENANT)
    add_question(db, 10, "nome", subdomain=TENANT)

    response = client.get("/public/settings", params={"subdomain": TENANT})

    assert response.status_code == 200
    data = response.json()
    assert data["settings"]["subdomain"] == TENANT
    assert [q["field_name"] for q in data["questions"]] == ["nome", "email"]
    assert data["successPages"] == []
    # Public payload never exposes numbers or webhook URLs
    assert "whatsapp_number" not in data["settings"]
    assert "webhook_url" not in data["settings"]


def test_public_settings_creates_tenant_defaults(client):
    response = client.get("/public/settings", params={"subdomain": "  NovaLoja "})

    assert response.status_code == 200
    settings = response.json()["settings"]
    assert settings["subdomain"] == "novaloja"
    assert settings["whatsapp_enabled"] is True
    assert settings["success_title"] == "Obrigado"


def test_public_settings_lists_success_pages(client, db):
    course_branching_model(db)

    response = client.get("/public/settings", params={"subdomain": TENANT})

    pages = response.json()["successPages"]
    assert [p["page_key"] for p in pages] == ["sem_interesse"]
    assert "whatsapp_number" not in pages[0]


def test_public_settings_without_subdomain_uses_default_tenant(client):
    response = client.get("/public/settings")
    assert response.json()["settings"]["subdomain"] == "default"


def test_validate_field(client, db):
    add_question(db, 1, "whatsapp", subdomain=TENANT)

    response = client.post(
        "/forms/validate-field",
        json={"subdomain": TENANT, "fieldName": "whatsapp", "value": "55 (31) 99876-5432"},
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True, "errors": {}}

    response = client.post(
        "/forms/validate-field",
        json={"subdomain": TENANT, "fieldName": "whatsapp", "value": "123"},
    )
    body = response.json()
    assert body["ok"] is False
    assert "whatsapp" in body["errors"]


def test_validate_unknown_field_is_404(client, db):
    response = client.post("/forms/validate-field", json={"subdomain": TENANT, "fieldName": "nada", "value": "x"})
    assert response.status_code == 404


def test_next_step_advance_returns_next_step_value(client, db):
    add_question(db, 10, "nome")
    add_question(db, 20, "email")

    response = client.post("/forms/next-step", json={"subdomain": TENANT, "fieldName": "nome", "value": "Ana"})

    assert response.status_code == 200
    assert response.json() == {
        "kind": "advance",
        "target_step": 20,
        "variant": None,
        "suppress_submission": False,
    }


def test_next_step_terminate_on_suppressing_variant(client, db):
    course_branching_model(db)

    response = client.post("/forms/next-step", json={"subdomain": TENANT, "fieldName": "Curso", "value": "B"})

    body = response.json()
    assert body["kind"] == "terminate"
    assert body["variant"] == "sem_interesse"
    assert body["suppress_submission"] is True


def test_next_step_after_last_question(client, db):
    course_branching_model(db)

    response = client.post(
        "/forms/next-step", json={"subdomain": TENANT, "fieldName": "whatsapp", "value": "55 (31) 99876-5432"}
    )

    assert response.json()["kind"] == "terminate"
    assert response.json()["variant"] == "default"


def test_whatsapp_link_endpoint(client, db):
    client.put(
        "/admin/settings",
        params={"subdomain": TENANT},
        json={"whatsapp_number": "5531988887777", "whatsapp_message": "Sou {nome}"},
    )

    response = client.post("/whatsapp/link", json={"subdomain": TENANT, "formData": {"nome": "Ana"}})

    assert response.status_code == 200
    assert response.json() == {"enabled": True, "url": "https://wa.me/5531988887777?text=Sou%20Ana"}


def test_whatsapp_link_disabled(client, db):
    client.put("/admin/settings", params={"subdomain": TENANT}, json={"whatsapp_enabled": False})

    response = client.post("/whatsapp/link", json={"subdomain": TENANT, "formData": {}})

    assert response.json() == {"enabled": False}
