"""
Partial progress recorder.

Called from the page-unload beacon with the answers collected so far. One
snapshot per (session_id, subdomain): the existing analytics row is
overwritten, or a form_abandoned row is inserted when the session has none.
"""

import logging
from typing import Any

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.constants.forms import EVENT_FORM_ABANDONED
from app.db.models import FormAnalyticsEvent

logger = logging.getLogger(__name__)


def record_partial(
    db: Session,
    session_id: str,
    subdomain: str,
    step_reached: int | None,
    partial_data: dict[str, Any] | None,
) -> bool:
    """
    Upsert the in-progress snapshot for a session.

    Args:
        session_id: Client-generated session id (required)
        subdomain: Tenant key
        step_reached: Last step the user reached (defaults to 1)
        partial_data: Answers collected so far (defaults to {})

    Returns:
        True when an existing row was updated, False when a new row was inserted
    """
    step = step_reached or 1
    data = partial_data or {}

    stmt = (
        update(FormAnalyticsEvent)
        .where(FormAnalyticsEvent.session_id == session_id)
        .where(FormAnalyticsEvent.subdomain == subdomain)
        .values(step_reached=step, partial_data=data, updated_at=func.now())
    )
    result = db.execute(stmt)
    if getattr(result, "rowcount", 0) > 0:
        db.commit()
        logger.debug(f"Updated partial progress for session {session_id} ('{subdomain}', step {step})")
        return True

    db.add(
        FormAnalyticsEvent(
            session_id=session_id,
            subdomain=subdomain,
            event_type=EVENT_FORM_ABANDONED,
            step_reached=step,
            partial_data=data,
        )
    )
    db.commit()
    logger.debug(f"Recorded new partial progress for session {session_id} ('{subdomain}', step {step})")
    return False
