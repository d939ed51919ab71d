"""
Test that all httpx.AsyncClient instances use explicit timeouts.

This ensures a slow webhook receiver can't keep a submission request open indefinitely.
"""

import asyncio
from pathlib import Path

import httpx
import pytest

from app.core.config import settings
from app.services.integrations.http_client import create_httpx_client, get_httpx_timeout, post_with_deadline


async def slow_receiver(request: httpx.Request) -> httpx.Response:
    await asyncio.sleep(1)
    return httpx.Response(200, json={"ok": True})


def test_http_client_helper_returns_timeout():
    """Test that get_httpx_timeout() returns a proper timeout object."""
    timeout = get_httpx_timeout()
    assert isinstance(timeout, httpx.Timeout)
    assert timeout.connect == 5.0
    assert timeout.read == 10.0
    assert timeout.write == 5.0
    assert timeout.pool == 5.0


def test_crm_timeout_is_longer():
    timeout = get_httpx_timeout(15.0)
    assert timeout.read == 15.0
    assert timeout.connect == 5.0


def test_short_timeouts_cap_connect():
    timeout = get_httpx_timeout(2.0)
    assert timeout.connect == 2.0
    assert timeout.read == 2.0


def test_create_httpx_client_uses_timeout():
    """Test that create_httpx_client() creates a client with timeout."""
    client = create_httpx_client()
    assert isinstance(client, httpx.AsyncClient)
    assert isinstance(client.timeout, httpx.Timeout)
    assert client.timeout.read == 10.0


@pytest.mark.asyncio
async def test_spreadsheet_and_crm_use_configured_timeouts(webhooks):
    from app.db.models import CrmIntegration
    from app.services.delivery.crm import deliver_to_crm
    from app.services.delivery.spreadsheet import deliver_to_spreadsheet

    await deliver_to_spreadsheet("https://planilha.example.com/exec", {"nome": "Ana"})
    await deliver_to_crm(CrmIntegration(crm_name="Pipe", webhook_url="https://crm.example.com/hook"), {})

    assert webhooks.timeouts == [10.0, 15.0]


@pytest.mark.asyncio
async def test_post_with_deadline_caps_the_whole_call():
    async with create_httpx_client(transport=httpx.MockTransport(slow_receiver)) as client:
        with pytest.raises(TimeoutError):
            await post_with_deadline(client, "https://planilha.example.com/exec", 0.05, json={})


@pytest.mark.asyncio
async def test_slow_spreadsheet_receiver_counts_as_timeout(monkeypatch):
    from app.services.delivery.spreadsheet import deliver_to_spreadsheet

    monkeypatch.setattr(settings, "spreadsheet_timeout_seconds", 0.05)
    monkeypatch.setattr(
        "app.services.delivery.spreadsheet.create_httpx_client",
        lambda timeout_seconds: create_httpx_client(timeout_seconds, transport=httpx.MockTransport(slow_receiver)),
    )

    outcome = await deliver_to_spreadsheet("https://planilha.example.com/exec", {"nome": "Ana"})

    assert outcome.ok is False
    assert outcome.detail == "timeout"


@pytest.mark.parametrize("module", ["delivery/spreadsheet.py", "delivery/crm.py"])
def test_webhook_senders_use_timeout_helper(module):
    content = (Path(__file__).parent.parent / "app" / "services" / module).read_text(encoding="utf-8")
    assert "create_httpx_client" in content


def test_no_direct_httpx_client_creation_in_app():
    """Test that app/ code doesn't create httpx.AsyncClient() outside the helper."""
    app_dir = Path(__file__).parent.parent / "app"
    assert app_dir.exists(), "app/ directory not found"

    helper = app_dir / "services" / "integrations" / "http_client.py"
    issues = []

    for py_file in app_dir.rglob("*.py"):
        if "__pycache__" in str(py_file) or py_file == helper:
            continue

        lines = py_file.read_text(encoding="utf-8").split("\n")
        for i, line in enumerate(lines, start=1):
            if "httpx.AsyncClient(" in line and not line.strip().startswith("#"):
                rel_path = py_file.relative_to(app_dir.parent)
                issues.append(f"{rel_path}:{i}: {line.strip()}")

    if issues:
        error_msg = (
            "Found httpx.AsyncClient() calls outside the helper. "
            "Use create_httpx_client() from app.services.integrations.http_client instead:\n\n"
            + "\n".join(f"  - {issue}" for issue in issues)
        )
        raise AssertionError(error_msg)
