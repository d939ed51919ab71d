"""
System event logging service.

Provides structured logging of delivery failures, configuration gaps and
rotation conflicts to the database. All SystemEvent creation should go through
log_event (or info/warn/error) to keep payload shape consistent.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.db.models import SystemEvent

logger = logging.getLogger(__name__)

# Default retention: delete events older than this many days
DEFAULT_RETENTION_DAYS = 90


def _resolve_correlation_id(correlation_id: str | None) -> str | None:
    """Use request-scoped contextvar when not explicitly passed."""
    if correlation_id is not None:
        return correlation_id
    from app.middleware.correlation_id import get_correlation_id

    return get_correlation_id(None)


def log_event(
    db: Session,
    level: str,
    event_type: str,
    subdomain: str | None = None,
    lead_record_id: int | None = None,
    payload: dict | None = None,
    exc: BaseException | None = None,
    correlation_id: str | None = None,
) -> SystemEvent | None:
    """
    Log a system event to the database.

    Args:
        db: Database session
        level: Event level (INFO, WARN, ERROR)
        event_type: Type of event (e.g., "spreadsheet.delivery_failure")
        subdomain: Tenant the event belongs to
        lead_record_id: Optional lead record associated with the event
        payload: Optional additional event data (dict). Will be copied.
        exc: Optional exception; if provided, error type and message are added to payload.
        correlation_id: Optional correlation ID for request tracing.

    Returns:
        Created SystemEvent, or None if the event could not be stored
    """
    normalized: dict = dict(payload) if payload else {}
    if exc is not None:
        normalized["error"] = {
            "type": type(exc).__name__,
            "message": str(exc)[:500],  # Truncate to avoid huge payloads
        }
    resolved_cid = _resolve_correlation_id(correlation_id)
    if resolved_cid is not None:
        normalized["correlation_id"] = resolved_cid

    event = SystemEvent(
        level=level.upper(),
        event_type=event_type,
        subdomain=subdomain,
        lead_record_id=lead_record_id,
        payload=normalized if normalized else None,
    )
    try:
        db.add(event)
        db.commit()
        db.refresh(event)
    except Exception as e:
        # Event logging must never break the flow that is reporting a failure
        db.rollback()
        logger.error(f"Failed to store system event {event_type}: {e}")
        return None
    return event


def info(db: Session, event_type: str, **kwargs) -> SystemEvent | None:
    """Log an INFO-level system event."""
    return log_event(db, level="INFO", event_type=event_type, **kwargs)


def warn(db: Session, event_type: str, **kwargs) -> SystemEvent | None:
    """Log a WARN-level system event."""
    return log_event(db, level="WARN", event_type=event_type, **kwargs)


def error(db: Session, event_type: str, **kwargs) -> SystemEvent | None:
    """Log an ERROR-level system event."""
    return log_event(db, level="ERROR", event_type=event_type, **kwargs)


def cleanup_old_events(
    db: Session,
    *,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    cutoff: datetime | None = None,
) -> int:
    """
    Delete SystemEvents older than retention_days (or before cutoff if provided).

    Returns:
        Number of rows deleted
    """
    if cutoff is None:
        cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    if cutoff.tzinfo is None:
        cutoff = cutoff.replace(tzinfo=UTC)
    stmt = delete(SystemEvent).where(SystemEvent.created_at < cutoff)
    result = db.execute(stmt)
    db.commit()
    deleted = result.rowcount
    logger.info(f"SystemEvent retention: deleted {deleted} events older than {cutoff.isoformat()}")
    return deleted


def count_old_events(db: Session, *, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
    """Number of SystemEvents cleanup_old_events would delete."""
    cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    return db.execute(
        select(func.count(SystemEvent.id)).where(SystemEvent.created_at < cutoff)
    ).scalar_one()
