"""
Work Session Repository - Session Store for derived work sessions
"""
from datetime import date
from typing import List, Sequence

from sqlalchemy import and_, delete, select
from sqlalchemy.orm import Session

from timecard.models.work_session import WorkSession
from timecard.repositories.base import BaseRepository
from timecard.schemas.attendance import WorkSessionData


class WorkSessionRepository(BaseRepository[WorkSession]):
    def __init__(self):
        super().__init__(WorkSession)

    def delete_sessions(self, db: Session, user_id: int, day: date) -> int:
        result = db.execute(
            delete(WorkSession)
            .where(and_(WorkSession.ws_user_id == user_id, WorkSession.ws_work_date == day))
            .execution_options(synchronize_session=False)
        )
        db.flush()
        return result.rowcount

    def insert_sessions(
        self,
        db: Session,
        user_id: int,
        day: date,
        sessions: Sequence[WorkSessionData]
    ) -> List[WorkSession]:
        """Store sessions filed under the given day"""
        rows = [
            WorkSession(
                ws_user_id=user_id,
                ws_start_at=s.ws_start_at,
                ws_end_at=s.ws_end_at,
                ws_duration_minutes=s.ws_duration_minutes,
                ws_is_completed=s.ws_is_completed,
                ws_work_date=day
            )
            for s in sessions
        ]
        db.add_all(rows)
        db.flush()
        return rows

    def list_sessions(self, db: Session, user_id: int, day: date) -> List[WorkSession]:
        return self.list_sessions_between(db, user_id, day, day)

    def list_sessions_between(self, db: Session, user_id: int, date_from: date, date_to: date) -> List[WorkSession]:
        """Sessions filed between two days inclusive, by day then start"""
        stmt = (
            select(WorkSession)
            .where(
                and_(
                    WorkSession.ws_user_id == user_id,
                    WorkSession.ws_work_date >= date_from,
                    WorkSession.ws_work_date <= date_to
                )
            )
            .order_by(WorkSession.ws_work_date.asc(), WorkSession.ws_start_at.asc())
        )
        return list(db.scalars(stmt).all())
