"""
Recalculation Service - Rebuilds the stored sessions of a user-day from its events
"""
import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timecard.core.exceptions import PersistenceError
from timecard.core.locks import KeyedLock, day_locks
from timecard.models.work_session import WorkSession
from timecard.repositories.attendance_event_repository import AttendanceEventRepository
from timecard.repositories.work_session_repository import WorkSessionRepository
from timecard.services.session_builder import reconstruct_sessions

logger = logging.getLogger(__name__)


class RecalculationService:
    def __init__(self, locks: Optional[KeyedLock] = None, utc_offset: Optional[timedelta] = None) -> None:
        self.locks = locks or day_locks
        self.utc_offset = utc_offset
        self.event_repo = AttendanceEventRepository()
        self.session_repo = WorkSessionRepository()

    def recalculate(self, db: Session, user_id: int, day: date) -> List[WorkSession]:
        """
        Replace every stored session of (user_id, day).

        Delete, fetch, rebuild and insert run in one transaction while the
        (user_id, day) lock is held, so a failure leaves the previous
        sessions in place and concurrent rebuilds of the same day queue up.

        Raises:
            PersistenceError: the store failed; nothing was changed
        """
        with self.locks.hold((user_id, day)):
            try:
                removed = self.session_repo.delete_sessions(db, user_id, day)
                events = self.event_repo.list_events(db, user_id, day, self.utc_offset)
                sessions = reconstruct_sessions(events, self.utc_offset)
                rows = self.session_repo.insert_sessions(db, user_id, day, sessions)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("Session recalculation failed: user_id=%s date=%s", user_id, day)
                raise PersistenceError("Failed to recalculate work sessions") from e

        logger.info(
            "Recalculated sessions: user_id=%s date=%s events=%d removed=%d stored=%d",
            user_id, day, len(events), removed, len(rows)
        )
        return rows

    def recalculate_many(self, db: Session, user_id: int, days: Iterable[date]) -> Dict[date, List[WorkSession]]:
        """Recalculate several days of one user, locking them all in a fixed order"""
        distinct = sorted(set(days))
        with self.locks.hold_many((user_id, day) for day in distinct):
            return {day: self.recalculate(db, user_id, day) for day in distinct}
