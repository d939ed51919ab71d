"""
Tests for admin authentication.
"""

from unittest.mock import patch

import pytest

ADMIN_ENDPOINTS = [
    ("get", "/admin/settings"),
    ("get", "/admin/success-pages"),
    ("get", "/admin/questions"),
    ("get", "/admin/whatsapp-queue"),
    ("get", "/admin/leads"),
    ("get", "/admin/report"),
    ("get", "/admin/events"),
]


def test_admin_endpoint_without_api_key_works_in_dev_mode(client):
    """Without ADMIN_API_KEY configured, admin endpoints are open (dev mode)."""
    response = client.get("/admin/leads")
    assert response.status_code == 200


def test_admin_endpoint_with_correct_api_key(client):
    with patch("app.api.auth.settings.admin_api_key", "test-secret-key-123"):
        response = client.get("/admin/leads")
        assert response.status_code == 401

        response = client.get("/admin/leads", headers={"X-Admin-API-Key": "test-secret-key-123"})
        assert response.status_code == 200


def test_admin_endpoint_with_wrong_api_key(client):
    with patch("app.api.auth.settings.admin_api_key", "test-secret-key-123"):
        response = client.get("/admin/leads", headers={"X-Admin-API-Key": "wrong-key"})
        assert response.status_code == 403
        assert "Invalid" in response.json()["detail"]


def test_admin_endpoint_missing_api_key_when_required(client):
    with patch("app.api.auth.settings.admin_api_key", "required-key"):
        response = client.get("/admin/leads")
        assert response.status_code == 401
        assert "Missing" in response.json()["detail"]


@pytest.mark.parametrize("method,path", ADMIN_ENDPOINTS)
def test_all_admin_endpoints_protected(client, method, path):
    with patch("app.api.auth.settings.admin_api_key", "test-key"):
        response = getattr(client, method)(path)
        assert response.status_code == 401

        response = getattr(client, method)(path, headers={"X-Admin-API-Key": "test-key"})
        assert response.status_code == 200


def test_write_endpoints_protected(client):
    with patch("app.api.auth.settings.admin_api_key", "test-key"):
        assert client.put("/admin/settings", json={"form_name": "x"}).status_code == 401
        assert client.put("/admin/whatsapp-queue", json={"entries": []}).status_code == 401
        assert client.put("/admin/crm", json={}).status_code == 401
        assert client.post("/admin/crm/test").status_code == 401
        assert client.post("/admin/events/retention-cleanup").status_code == 401


def test_public_endpoints_do_not_need_api_key(client):
    with patch("app.api.auth.settings.admin_api_key", "test-key"):
        assert client.get("/public/settings").status_code == 200
        assert client.get("/health").status_code == 200


def test_production_without_api_key_refuses_admin_access():
    from app.api.auth import get_admin_auth

    with (
        patch("app.api.auth.settings.app_env", "production"),
        patch("app.api.auth.settings.admin_api_key", None),
    ):
        with pytest.raises(RuntimeError):
            get_admin_auth(api_key=None)
