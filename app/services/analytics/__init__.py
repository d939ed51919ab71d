"""Form analytics: partial progress snapshots and event counts."""

from app.services.analytics.form_events import get_event_counts, record_form_event
from app.services.analytics.partial_progress import record_partial

__all__ = ["get_event_counts", "record_form_event", "record_partial"]
