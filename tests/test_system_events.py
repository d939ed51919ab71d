"""
Tests for SystemEvent logging and retention.
"""

from datetime import UTC, datetime, timedelta

from app.db.models import SystemEvent
from app.services.system_event_service import (
    cleanup_old_events,
    count_old_events,
    error,
    info,
    log_event,
    warn,
)


def test_log_event_levels(db):
    info(db, "a.info", subdomain="loja")
    warn(db, "a.warn")
    error(db, "a.error")

    levels = {e.event_type: e.level for e in db.query(SystemEvent).all()}
    assert levels == {"a.info": "INFO", "a.warn": "WARN", "a.error": "ERROR"}


def test_payload_is_copied_and_exception_summarized(db):
    payload = {"detail": "timeout"}

    event = error(db, "spreadsheet.delivery_failure", payload=payload, exc=ValueError("boom"))

    assert event.payload["detail"] == "timeout"
    assert event.payload["error"] == {"type": "ValueError", "message": "boom"}
    assert "error" not in payload


def test_explicit_correlation_id(db):
    event = log_event(db, "warn", "x.y", correlation_id="cid-1")
    assert event.level == "WARN"
    assert event.payload == {"correlation_id": "cid-1"}


def test_event_without_payload_stores_null(db):
    event = info(db, "bare.event")
    assert event.payload is None


def test_logging_failure_does_not_raise(db, monkeypatch):
    def broken_commit():
        raise RuntimeError("database gone")

    monkeypatch.setattr(db, "commit", broken_commit)

    assert warn(db, "x.y") is None


def _old_event(db, days_ago, event_type="old.event"):
    db.add(SystemEvent(level="INFO", event_type=event_type, created_at=datetime.now(UTC) - timedelta(days=days_ago)))
    db.commit()


def test_cleanup_old_events(db):
    _old_event(db, 100)
    _old_event(db, 95)
    _old_event(db, 10, "recent.event")

    assert count_old_events(db, retention_days=90) == 2
    assert cleanup_old_events(db, retention_days=90) == 2
    assert [e.event_type for e in db.query(SystemEvent).all()] == ["recent.event"]


def test_cleanup_with_explicit_cutoff(db):
    _old_event(db, 5)

    assert cleanup_old_events(db, cutoff=datetime.now(UTC) - timedelta(days=1)) == 1
