"""
Admin operations on a tenant's WhatsApp queue.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.db.models import WhatsAppQueueEntry
from app.services.whatsapp.links import digits_only
from app.services.whatsapp.rotation import load_active_entries, read_cursor, select_agent

logger = logging.getLogger(__name__)


def list_queue(db: Session, subdomain: str) -> list[WhatsAppQueueEntry]:
    stmt = (
        select(WhatsAppQueueEntry)
        .where(WhatsAppQueueEntry.subdomain == subdomain)
        .order_by(WhatsAppQueueEntry.position)
    )
    return list(db.execute(stmt).scalars().all())


def replace_queue(db: Session, subdomain: str, entries: list[dict]) -> list[WhatsAppQueueEntry]:
    """
    Replace the whole queue. Positions are reassigned densely (1..n) in list order.

    Args:
        entries: [{phone_number, display_name?, is_active?}, ...]

    Raises:
        ConfigurationError: Too many entries or a phone number without digits
    """
    max_entries = settings.whatsapp_queue_max_entries
    if len(entries) > max_entries:
        raise ConfigurationError(
            f"A queue holds at most {max_entries} agents",
            fields={"entries": f"{len(entries)} given, maximum is {max_entries}"},
        )

    errors = {}
    cleaned = []
    for index, entry in enumerate(entries):
        phone_number = digits_only(entry.get("phone_number"))
        if not phone_number:
            errors[f"entries[{index}].phone_number"] = "Phone number must contain digits"
            continue
        cleaned.append(
            WhatsAppQueueEntry(
                subdomain=subdomain,
                phone_number=phone_number,
                display_name=(entry.get("display_name") or None),
                position=index + 1,
                is_active=entry.get("is_active", True) is not False,
            )
        )
    if errors:
        raise ConfigurationError("Invalid queue", fields=errors)

    try:
        db.execute(delete(WhatsAppQueueEntry).where(WhatsAppQueueEntry.subdomain == subdomain))
        db.add_all(cleaned)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to replace WhatsApp queue for '{subdomain}'")
        raise

    logger.info(f"Replaced WhatsApp queue for '{subdomain}' with {len(cleaned)} agents")
    return list_queue(db, subdomain)


def queue_status(db: Session, subdomain: str) -> dict:
    """Queue entries, the stored cursor and the agent the next allocation would pick."""
    entries = list_queue(db, subdomain)
    cursor = read_cursor(db, subdomain) or 1
    next_agent, _ = select_agent(load_active_entries(db, subdomain), cursor)
    return {
        "entries": entries,
        "current_position": cursor,
        "next_agent": next_agent,
    }
