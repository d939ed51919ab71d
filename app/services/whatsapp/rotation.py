"""
WhatsApp rotation allocator.

Round-robin over the *active* queue entries of a tenant. The cursor
(whatsapp_queue_state.current_position) is explicit state: select_agent is a
pure function of (entries, cursor), and allocate advances the stored cursor
with a compare-and-set UPDATE so two concurrent submissions cannot both
advance from the same observed value.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.constants.event_types import (
    EVENT_ROTATION_CURSOR_CONFLICT,
    EVENT_ROTATION_NO_ACTIVE_AGENT,
)
from app.core.config import settings
from app.db.models import WhatsAppQueueEntry, WhatsAppQueueState
from app.services.system_event_service import info, warn

logger = logging.getLogger(__name__)

INITIAL_CURSOR = 1


@dataclass
class Allocation:
    """Agent picked for a submission. advances_state is False when the cursor was not moved."""

    agent: WhatsAppQueueEntry | None = None
    advances_state: bool = False


def select_agent(
    active_entries: list[WhatsAppQueueEntry], cursor: int
) -> tuple[WhatsAppQueueEntry | None, int]:
    """
    Pick the agent for a cursor value and compute the next cursor.

    Args:
        active_entries: Active entries sorted by position ascending
        cursor: Current cursor position

    Returns:
        (agent, next_cursor). The agent is the first entry with position >= cursor,
        wrapping to the lowest position. next_cursor is the position of the entry
        after it, wrapping to the first. (None, cursor) when there are no entries.
    """
    if not active_entries:
        return None, cursor

    index = next((i for i, entry in enumerate(active_entries) if entry.position >= cursor), 0)
    agent = active_entries[index]
    following = active_entries[(index + 1) % len(active_entries)]
    return agent, following.position


def load_active_entries(db: Session, subdomain: str) -> list[WhatsAppQueueEntry]:
    stmt = (
        select(WhatsAppQueueEntry)
        .where(WhatsAppQueueEntry.subdomain == subdomain)
        .where(WhatsAppQueueEntry.is_active.is_(True))
        .order_by(WhatsAppQueueEntry.position)
    )
    return list(db.execute(stmt).scalars().all())


def read_cursor(db: Session, subdomain: str) -> int | None:
    # Column select so a concurrent commit is seen instead of the identity-map copy
    return db.execute(
        select(WhatsAppQueueState.current_position).where(WhatsAppQueueState.subdomain == subdomain)
    ).scalar_one_or_none()


def get_or_create_cursor(db: Session, subdomain: str) -> int:
    """Read the tenant's cursor, creating the state row at position 1 on first use."""
    cursor = read_cursor(db, subdomain)
    if cursor is not None:
        return cursor

    db.add(WhatsAppQueueState(subdomain=subdomain, current_position=INITIAL_CURSOR))
    try:
        db.commit()
    except IntegrityError:
        # Another submission created it first
        db.rollback()
        cursor = read_cursor(db, subdomain)
        if cursor is None:
            raise
        return cursor
    return INITIAL_CURSOR


def _compare_and_set_cursor(db: Session, subdomain: str, observed: int, new_cursor: int) -> bool:
    stmt = (
        update(WhatsAppQueueState)
        .where(WhatsAppQueueState.subdomain == subdomain)
        .where(WhatsAppQueueState.current_position == observed)
        .values(current_position=new_cursor)
    )
    result = db.execute(stmt)
    db.commit()
    return getattr(result, "rowcount", 0) == 1


def allocate(db: Session, subdomain: str, max_retries: int | None = None) -> Allocation:
    """
    Allocate the next WhatsApp agent for a tenant and advance the cursor.

    On a lost compare-and-set the cursor is re-read and selection retried up
    to max_retries times. If it is still contended, the last selection is
    returned without advancing (fairness is eventual under contention).

    Returns:
        Allocation(agent, advances_state); Allocation(None, False) when the queue
        has no active entries (callers fall back to the tenant's fixed number)
    """
    entries = load_active_entries(db, subdomain)
    if not entries:
        logger.info(f"No active WhatsApp agents for '{subdomain}'; using fixed number")
        info(db, EVENT_ROTATION_NO_ACTIVE_AGENT, subdomain=subdomain)
        return Allocation()

    attempts = max_retries if max_retries is not None else settings.rotation_max_retries
    attempts = max(1, attempts)

    observed = get_or_create_cursor(db, subdomain)
    agent = None
    for attempt in range(1, attempts + 1):
        agent, next_cursor = select_agent(entries, observed)
        if _compare_and_set_cursor(db, subdomain, observed, next_cursor):
            logger.debug(
                f"Allocated agent at position {agent.position} for '{subdomain}' "
                f"(cursor {observed} -> {next_cursor})"
            )
            return Allocation(agent=agent, advances_state=True)

        logger.info(
            f"Rotation cursor for '{subdomain}' moved under us (attempt {attempt}/{attempts}); re-reading"
        )
        observed = get_or_create_cursor(db, subdomain)

    logger.warning(f"Rotation cursor for '{subdomain}' still contended after {attempts} attempts")
    warn(
        db,
        EVENT_ROTATION_CURSOR_CONFLICT,
        subdomain=subdomain,
        payload={"attempts": attempts, "observed_cursor": observed, "agent_position": agent.position},
    )
    return Allocation(agent=agent, advances_state=False)
