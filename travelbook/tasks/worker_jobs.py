import logging
from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError, ProgrammingError

from travelbook.db.session import SessionLocal
from travelbook.services.booking_service import sweep_expired_bookings

logger = logging.getLogger(__name__)


def mark_expired_bookings(session_factory=SessionLocal, now: datetime | None = None, notify: bool | None = None) -> dict:
    db: Session = session_factory()
    try:
        try:
            result = sweep_expired_bookings(db, now=now, notify=notify)
        except (ProgrammingError, OperationalError):
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            logger.warning("bookings table not available; skipping expiry sweep")
            return {"skipped": True, "reason": "missing_tables"}
        return result.as_dict()
    finally:
        db.close()
