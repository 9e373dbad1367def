"""
Attendance Event Repository - Event Store for clock-in / clock-out events
"""
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.orm import Session

from timecard.core.timeutil import day_bounds
from timecard.models.attendance_event import AttendanceEvent, EventKind
from timecard.repositories.base import BaseRepository


class AttendanceEventRepository(BaseRepository[AttendanceEvent]):
    def __init__(self):
        super().__init__(AttendanceEvent)

    def _day_filter(self, user_id: int, day: date, utc_offset: Optional[timedelta]):
        start, end = day_bounds(day, utc_offset)
        return and_(
            AttendanceEvent.ae_user_id == user_id,
            AttendanceEvent.ae_occurred_at >= start,
            AttendanceEvent.ae_occurred_at < end
        )

    def list_events(
        self,
        db: Session,
        user_id: int,
        day: date,
        utc_offset: Optional[timedelta] = None
    ) -> List[AttendanceEvent]:
        """User's events for one local calendar day, oldest first"""
        stmt = (
            select(AttendanceEvent)
            .where(self._day_filter(user_id, day, utc_offset))
            .order_by(AttendanceEvent.ae_occurred_at.asc(), AttendanceEvent.ae_id.asc())
        )
        return list(db.scalars(stmt).all())

    def get_by_id(self, db: Session, event_id: int, for_update: bool = False) -> Optional[AttendanceEvent]:
        """
        With for_update, bypass the identity map and read the current row
        (locked on backends that support SELECT ... FOR UPDATE).
        """
        if not for_update:
            return self.get(db, event_id)
        return db.get(AttendanceEvent, event_id, populate_existing=True, with_for_update=True)

    def insert_event(self, db: Session, user_id: int, kind: EventKind, instant: datetime) -> AttendanceEvent:
        return self.create(db, {
            "ae_user_id": user_id,
            "ae_kind": kind,
            "ae_occurred_at": instant,
            "ae_is_modified": False
        })

    def edit_event_instant(self, db: Session, event: AttendanceEvent, new_instant: datetime) -> AttendanceEvent:
        """
        Move an event to a new instant.

        The original instant is captured on the first edit only; later
        edits keep pointing at what was recorded initially.
        """
        data = {"ae_occurred_at": new_instant, "ae_is_modified": True}
        if not event.ae_is_modified:
            data["ae_original_occurred_at"] = event.ae_occurred_at
        return self.update(db, event, data)

    def delete_event(self, db: Session, event: AttendanceEvent) -> None:
        self.delete(db, event)

    def delete_all_events(self, db: Session, user_id: int, day: date, utc_offset: Optional[timedelta] = None) -> int:
        """Delete every event of the user-day and return how many were removed"""
        result = db.execute(
            delete(AttendanceEvent)
            .where(self._day_filter(user_id, day, utc_offset))
            .execution_options(synchronize_session=False)
        )
        db.flush()
        return result.rowcount
