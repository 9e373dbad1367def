"""
Attendance Service - Main business logic for clock events and work sessions
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timecard.core.exceptions import NotFoundException, PersistenceError
from timecard.core.locks import KeyedLock, day_locks
from timecard.core.timeutil import ParsedTime, combine, day_of, now_utc, parse_time, today
from timecard.models.attendance_event import AttendanceEvent as AttendanceEventModel, EventKind
from timecard.repositories.attendance_event_repository import AttendanceEventRepository
from timecard.repositories.work_session_repository import WorkSessionRepository
from timecard.schemas.attendance import (
    AttendanceEvent,
    WorkSession,
    ManualEventRequest,
    EditEventRequest,
    EventMutationResponse,
    DeleteAllResponse,
    DayStatusResponse,
    ReportResponse
)
from timecard.services.recalculation_service import RecalculationService
from timecard.services.session_builder import total_minutes
from timecard.services.validation_service import ReasonablenessPolicy, validate_event

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        policy: Optional[ReasonablenessPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
        utc_offset: Optional[timedelta] = None,
        locks: Optional[KeyedLock] = None
    ) -> None:
        self.policy = policy
        self.clock = clock or now_utc
        self.utc_offset = utc_offset
        self.locks = locks or day_locks
        self.event_repo = AttendanceEventRepository()
        self.session_repo = WorkSessionRepository()
        self.recalculation = RecalculationService(locks=self.locks, utc_offset=utc_offset)

    def _policy(self) -> ReasonablenessPolicy:
        return self.policy or ReasonablenessPolicy.from_settings()

    def _today(self) -> date:
        return today(self.utc_offset, self.clock())

    def _exempt_from_late_night(self, parsed: ParsedTime) -> bool:
        return parsed.is_night_shift and self._policy().night_shift_exempt

    def _get_owned_event(
        self, db: Session, user_id: int, event_id: int, for_update: bool = False
    ) -> AttendanceEventModel:
        event = self.event_repo.get_by_id(db, event_id, for_update=for_update)
        if event is None or event.ae_user_id != user_id:
            raise NotFoundException("Attendance event not found")
        return event

    @contextmanager
    def _hold_event(
        self,
        db: Session,
        user_id: int,
        event_id: int,
        days_of: Callable[[AttendanceEventModel], List[date]]
    ) -> Iterator[Tuple[AttendanceEventModel, List[date]]]:
        """
        Lock the user-days an existing event touches and yield the event as
        re-read under those locks.

        The first read happens unlocked, so another request may move or
        delete the event before the locks are taken. If the re-read event
        maps to other days, the locks are released and taken again for the
        new ones.
        """
        while True:
            days = days_of(self._get_owned_event(db, user_id, event_id))
            with self.locks.hold_many((user_id, d) for d in days):
                event = self._get_owned_event(db, user_id, event_id, for_update=True)
                if days_of(event) == days:
                    yield event, days
                    return
            logger.info("Attendance event moved while waiting for its lock: user_id=%s event_id=%s", user_id, event_id)

    def _commit(self, db: Session, action: str, user_id: int) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Failed to %s: user_id=%s", action, user_id)
            raise PersistenceError() from e

    def _recalculate_after_write(self, db: Session, user_id: int, days: Iterable[date]) -> bool:
        """
        Rebuild sessions once the event write is committed.

        A failure here does not undo the event write; it is logged and
        reported back so the day can be rebuilt later.
        """
        days = list(days)
        try:
            self.recalculation.recalculate_many(db, user_id, days)
        except PersistenceError:
            logger.error(
                "Stored sessions are stale until the next recalculation: user_id=%s dates=%s",
                user_id, [d.isoformat() for d in days]
            )
            return False
        return True

    def _record(
        self,
        db: Session,
        user_id: int,
        kind: EventKind,
        instant: datetime,
        now: datetime,
        exempt_late_night: bool
    ) -> EventMutationResponse:
        day = day_of(instant, self.utc_offset)

        with self.locks.hold((user_id, day)):
            existing = self.event_repo.list_events(db, user_id, day, self.utc_offset)
            validate_event(
                existing, kind, instant, day,
                now=now,
                policy=self._policy(),
                utc_offset=self.utc_offset,
                exempt_late_night=exempt_late_night
            )
            try:
                event = self.event_repo.insert_event(db, user_id, kind, instant)
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("Failed to insert attendance event: user_id=%s", user_id)
                raise PersistenceError() from e
            self._commit(db, "insert attendance event", user_id)
            logger.info(
                "Attendance event recorded: user_id=%s event_id=%s kind=%s occurred_at=%s",
                user_id, event.ae_id, kind.value, instant.isoformat()
            )
            recalculated = self._recalculate_after_write(db, user_id, [day])

        return EventMutationResponse(
            event=AttendanceEvent.model_validate(event),
            affected_dates=[day],
            sessions_recalculated=recalculated
        )

    def clock_in(self, db: Session, user_id: int) -> EventMutationResponse:
        """Record a ClockIn at the current instant"""
        now = self.clock()
        return self._record(db, user_id, EventKind.CLOCK_IN, now, now, exempt_late_night=True)

    def clock_out(self, db: Session, user_id: int) -> EventMutationResponse:
        """Record a ClockOut at the current instant"""
        now = self.clock()
        return self._record(db, user_id, EventKind.CLOCK_OUT, now, now, exempt_late_night=True)

    def add_event(self, db: Session, user_id: int, request: ManualEventRequest) -> EventMutationResponse:
        """
        Insert a back-dated event from user input

        Args:
            db: Database session
            user_id: Owner of the event
            request: kind, time text (HH:MM, HH:MM:SS or 24:00-47:59) and optional date

        Raises:
            TimeParseError: malformed time
            ValidationError: rejected by the validation engine
            PersistenceError: the store failed
        """
        parsed = parse_time(request.time)
        base_day = request.work_date or self._today()
        instant = combine(base_day, parsed.time_of_day, parsed.day_offset, self.utc_offset)
        return self._record(
            db, user_id, request.kind, instant, self.clock(),
            exempt_late_night=self._exempt_from_late_night(parsed)
        )

    def edit_event_time(
        self,
        db: Session,
        user_id: int,
        event_id: int,
        request: EditEventRequest
    ) -> EventMutationResponse:
        """
        Move an existing event to a new time.

        The time is applied to request.work_date, or to the day the event
        currently belongs to. If the new instant falls on another day, both
        days are recalculated.
        """
        parsed = parse_time(request.time)

        def target(event: AttendanceEventModel) -> Tuple[date, datetime, date]:
            old_day = day_of(event.ae_occurred_at, self.utc_offset)
            base_day = request.work_date or old_day
            new_instant = combine(base_day, parsed.time_of_day, parsed.day_offset, self.utc_offset)
            return old_day, new_instant, day_of(new_instant, self.utc_offset)

        def touched_days(event: AttendanceEventModel) -> List[date]:
            old_day, _, new_day = target(event)
            return sorted({old_day, new_day})

        with self._hold_event(db, user_id, event_id, touched_days) as (event, affected):
            _, new_instant, new_day = target(event)
            existing = self.event_repo.list_events(db, user_id, new_day, self.utc_offset)
            validate_event(
                existing, EventKind(event.ae_kind), new_instant, new_day,
                exclude_event_id=event.ae_id,
                now=self.clock(),
                policy=self._policy(),
                utc_offset=self.utc_offset,
                exempt_late_night=self._exempt_from_late_night(parsed)
            )
            previous = event.ae_occurred_at
            try:
                self.event_repo.edit_event_instant(db, event, new_instant)
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("Failed to edit attendance event: user_id=%s event_id=%s", user_id, event_id)
                raise PersistenceError() from e
            self._commit(db, "edit attendance event", user_id)
            logger.info(
                "Attendance event edited: user_id=%s event_id=%s from=%s to=%s",
                user_id, event_id, previous.isoformat(), new_instant.isoformat()
            )
            recalculated = self._recalculate_after_write(db, user_id, affected)

        return EventMutationResponse(
            event=AttendanceEvent.model_validate(event),
            affected_dates=affected,
            sessions_recalculated=recalculated
        )

    def delete_event(self, db: Session, user_id: int, event_id: int) -> EventMutationResponse:
        """Delete one event and rebuild its day"""
        def own_day(event: AttendanceEventModel) -> List[date]:
            return [day_of(event.ae_occurred_at, self.utc_offset)]

        with self._hold_event(db, user_id, event_id, own_day) as (event, affected):
            try:
                self.event_repo.delete_event(db, event)
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("Failed to delete attendance event: user_id=%s event_id=%s", user_id, event_id)
                raise PersistenceError() from e
            self._commit(db, "delete attendance event", user_id)
            logger.info("Attendance event deleted: user_id=%s event_id=%s date=%s", user_id, event_id, affected[0])
            recalculated = self._recalculate_after_write(db, user_id, affected)

        return EventMutationResponse(affected_dates=affected, sessions_recalculated=recalculated)

    def delete_all_events(self, db: Session, user_id: int, work_date: Optional[date] = None) -> DeleteAllResponse:
        """Delete every event of a user-day (default today) and rebuild it"""
        day = work_date or self._today()

        with self.locks.hold((user_id, day)):
            try:
                deleted = self.event_repo.delete_all_events(db, user_id, day, self.utc_offset)
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("Failed to delete attendance events: user_id=%s date=%s", user_id, day)
                raise PersistenceError() from e
            self._commit(db, "delete attendance events", user_id)
            logger.info("Attendance events deleted: user_id=%s date=%s count=%d", user_id, day, deleted)
            recalculated = self._recalculate_after_write(db, user_id, [day])

        return DeleteAllResponse(work_date=day, deleted_count=deleted, sessions_recalculated=recalculated)

    def recalculate_day(self, db: Session, user_id: int, work_date: Optional[date] = None) -> List[WorkSession]:
        """Rebuild a user-day on request, e.g. after a failed automatic rebuild"""
        day = work_date or self._today()
        rows = self.recalculation.recalculate(db, user_id, day)
        return [WorkSession.model_validate(r) for r in rows]

    def get_day_status(self, db: Session, user_id: int, work_date: Optional[date] = None) -> DayStatusResponse:
        """Events, stored sessions and worked minutes of one user-day"""
        day = work_date or self._today()
        events = self.event_repo.list_events(db, user_id, day, self.utc_offset)
        sessions = [WorkSession.model_validate(s) for s in self.session_repo.list_sessions(db, user_id, day)]

        return DayStatusResponse(
            work_date=day,
            events=[AttendanceEvent.model_validate(e) for e in events],
            sessions=sessions,
            total_minutes=total_minutes(sessions),
            is_working=bool(sessions) and not sessions[-1].ws_is_completed
        )

    def get_report(self, db: Session, user_id: int, period: str = "daily") -> ReportResponse:
        """Sessions and totals for the current day, week (from Monday) or month"""
        current = self._today()
        if period == "weekly":
            date_from = current - timedelta(days=current.weekday())
        elif period == "monthly":
            date_from = current.replace(day=1)
        else:
            period = "daily"
            date_from = current

        sessions = [
            WorkSession.model_validate(s)
            for s in self.session_repo.list_sessions_between(db, user_id, date_from, current)
        ]

        return ReportResponse(
            period=period,
            date_from=date_from,
            date_to=current,
            sessions=sessions,
            total_minutes=total_minutes(sessions),
            completed_sessions=sum(1 for s in sessions if s.ws_is_completed),
            days_worked=len({s.ws_work_date for s in sessions})
        )
