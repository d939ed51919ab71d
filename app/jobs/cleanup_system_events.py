"""
SystemEvent retention job.

Run via: python -m app.jobs.cleanup_system_events [--retention-days 90] [--dry-run]
"""

import argparse
import logging
import sys

from app.db import session as db_session
from app.services.system_event_service import (
    DEFAULT_RETENTION_DAYS,
    cleanup_old_events,
    count_old_events,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Delete SystemEvents older than the retention window")
    parser.add_argument(
        "--retention-days",
        type=int,
        default=DEFAULT_RETENTION_DAYS,
        help=f"Delete events older than this many days (default: {DEFAULT_RETENTION_DAYS})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report how many events would be deleted",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.retention_days < 1:
        logger.error("--retention-days must be at least 1")
        return 2

    db = db_session.SessionLocal()
    try:
        if args.dry_run:
            pending = count_old_events(db, retention_days=args.retention_days)
            logger.info(f"Dry run: {pending} events older than {args.retention_days} days would be deleted")
        else:
            deleted = cleanup_old_events(db, retention_days=args.retention_days)
            logger.info(f"Retention cleanup completed: deleted {deleted} events")
    except Exception as e:
        logger.error(f"Retention cleanup failed: {e}", exc_info=True)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
