"""
Tests for the admin / analytics rate limiter.
"""

import pytest

from app.core.config import settings


@pytest.fixture
def rate_limited(monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_enabled", True)
    monkeypatch.setattr(settings, "rate_limit_requests", 3)
    monkeypatch.setattr(settings, "rate_limit_window_seconds", 60)


def test_admin_requests_over_limit_get_429(client, rate_limited):
    for _ in range(3):
        assert client.get("/admin/leads").status_code == 200

    response = client.get("/admin/leads")

    assert response.status_code == 429
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "rate_limited"
    assert body["retry_after"] == 60
    assert response.headers["Retry-After"] == "60"


def test_buckets_are_per_prefix(client, rate_limited):
    for _ in range(3):
        client.get("/admin/leads")

    response = client.post("/analytics/events", json={"sessionId": "s", "eventType": "form_started"})
    assert response.status_code == 200


def test_buckets_are_per_client_ip(client, rate_limited):
    for _ in range(3):
        client.get("/admin/leads", headers={"X-Forwarded-For": "10.0.0.1"})

    assert client.get("/admin/leads", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
    assert client.get("/admin/leads", headers={"X-Forwarded-For": "10.0.0.2, 10.0.0.1"}).status_code == 200


def test_public_form_endpoints_are_not_limited(client, rate_limited):
    for _ in range(5):
        assert client.get("/public/settings").status_code == 200


def test_disabled_limiter_lets_everything_through(client):
    for _ in range(40):
        assert client.get("/admin/leads").status_code == 200
