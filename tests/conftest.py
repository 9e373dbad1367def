"""
Test configuration - in-memory SQLite per test and a fixed clock.

Environment defaults are set before any timecard import so the module-level
engine never points at a file on disk.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UTC_OFFSET_HOURS", "9")
os.environ.setdefault("LOG_TO_FILE", "false")

from datetime import date, datetime, time, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from timecard.core.locks import KeyedLock
from timecard.core.timeutil import combine
from timecard.db.base import Base
from timecard import models  # noqa: F401
from timecard.models.attendance_event import EventKind
from timecard.schemas.attendance import AttendanceEvent
from timecard.services.attendance_service import AttendanceService
from timecard.services.validation_service import ReasonablenessPolicy

JST = timedelta(hours=9)

# Wednesday 2024-01-10 12:00 JST
NOW = datetime(2024, 1, 10, 3, 0, tzinfo=timezone.utc)
TODAY = date(2024, 1, 10)
YESTERDAY = date(2024, 1, 9)

IN = EventKind.CLOCK_IN
OUT = EventKind.CLOCK_OUT


def at(day: date, hhmm: str) -> datetime:
    """UTC instant of a local JST wall-clock time"""
    hour, minute = (int(p) for p in hhmm.split(":"))
    return combine(day, time(hour, minute), 0, JST)


class FixedClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set_local(self, day: date, hhmm: str) -> None:
        self.now = at(day, hhmm)


@pytest.fixture
def make_events():
    """Build detached events from (HH:MM, kind) pairs on one day"""
    def _make(day, entries, user_id=1, first_id=1):
        return [
            AttendanceEvent(ae_id=first_id + i, ae_user_id=user_id, ae_kind=kind, ae_occurred_at=at(day, hhmm))
            for i, (hhmm, kind) in enumerate(entries)
        ]
    return _make


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def policy():
    return ReasonablenessPolicy()


@pytest.fixture
def service(clock, policy):
    return AttendanceService(policy=policy, clock=clock, utc_offset=JST, locks=KeyedLock())
