"""
Tests for the structured error envelope.
"""

from fastapi.testclient import TestClient

from app.db.models import SystemEvent
from app.main import app


def test_unhandled_error_returns_envelope_and_records_event(client, db, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr("app.api.public.get_or_create_settings", explode)

    with TestClient(app, raise_server_exceptions=False) as failing_client:
        response = failing_client.get(
            "/public/settings", params={"subdomain": "loja"}, headers={"X-Correlation-ID": "boom-1"}
        )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "internal_error", "correlation_id": "boom-1"}

    event = db.query(SystemEvent).filter_by(event_type="api.unhandled_error").one()
    assert event.level == "ERROR"
    assert event.subdomain == "loja"
    assert event.payload["error"]["type"] == "RuntimeError"
    assert event.payload["path"] == "/public/settings"


def test_configuration_error_envelope(client):
    response = client.put("/admin/crm", json={"webhook_url": "not-a-url"})

    assert response.status_code == 400
    body = response.json()
    assert body == {
        "success": False,
        "error": "configuration_error",
        "message": "Invalid CRM integration",
        "fields": {"webhook_url": "Must be an http(s) URL"},
    }
