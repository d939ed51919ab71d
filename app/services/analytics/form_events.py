"""
Form analytics events and raw report counts.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.constants.forms import (
    EVENT_FORM_COMPLETED,
    EVENT_FORM_STARTED,
    EVENT_WHATSAPP_CLICKED,
    FORM_EVENT_TYPES,
)
from app.db.models import FormAnalyticsEvent, LeadRecord

logger = logging.getLogger(__name__)

DEFAULT_REPORT_DAYS = 30


def record_form_event(
    db: Session,
    session_id: str,
    subdomain: str,
    event_type: str,
    step_reached: int | None = None,
) -> FormAnalyticsEvent:
    """
    Insert one analytics event.

    Raises:
        ValueError: Unknown event_type
    """
    if event_type not in FORM_EVENT_TYPES:
        raise ValueError(f"Unknown analytics event type '{event_type}'")

    event = FormAnalyticsEvent(
        session_id=session_id,
        subdomain=subdomain,
        event_type=event_type,
        step_reached=step_reached or 1,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def _percent(part: int, whole: int) -> int:
    return round(part * 100 / whole) if whole > 0 else 0


def get_event_counts(db: Session, subdomain: str, days: int = DEFAULT_REPORT_DAYS) -> dict:
    """
    Raw counts per event type and lead records created in the last `days` days.

    Returns:
        {"since", "days", "events": {event_type: count}, "leads", "fill_rate", "whatsapp_rate"}
    """
    since = datetime.now(UTC) - timedelta(days=days)

    rows = db.execute(
        select(FormAnalyticsEvent.event_type, func.count(FormAnalyticsEvent.id))
        .where(FormAnalyticsEvent.subdomain == subdomain)
        .where(FormAnalyticsEvent.created_at >= since)
        .group_by(FormAnalyticsEvent.event_type)
    ).all()
    events = {event_type: 0 for event_type in sorted(FORM_EVENT_TYPES)}
    for event_type, count in rows:
        events[event_type] = count

    leads = db.execute(
        select(func.count(LeadRecord.id))
        .where(LeadRecord.subdomain == subdomain)
        .where(LeadRecord.submitted_at >= since)
    ).scalar_one()

    started = events[EVENT_FORM_STARTED]
    completed = events[EVENT_FORM_COMPLETED]
    return {
        "since": since.isoformat(),
        "days": days,
        "events": events,
        "leads": leads,
        "fill_rate": _percent(completed, started),
        "whatsapp_rate": _percent(events[EVENT_WHATSAPP_CLICKED], completed),
    }
