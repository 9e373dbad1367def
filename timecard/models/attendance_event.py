"""
Attendance Event Model - Source of truth for every clock-in / clock-out
"""
from enum import Enum

from sqlalchemy import Column, BigInteger, Boolean, Integer, Index, Enum as SAEnum
from sqlalchemy.sql import func

from timecard.db.base import Base
from timecard.db.types import UTCDateTime

# SQLite only autoincrements INTEGER PRIMARY KEY
Identifier = BigInteger().with_variant(Integer(), "sqlite")


class EventKind(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"

    @property
    def label(self) -> str:
        return "ClockIn" if self is EventKind.CLOCK_IN else "ClockOut"


class AttendanceEvent(Base):
    """Attendance Event model - Table: attendance_events"""
    __tablename__ = "attendance_events"
    __table_args__ = (
        Index("ix_attendance_events_user_occurred", "ae_user_id", "ae_occurred_at"),
    )

    ae_id = Column(Identifier, primary_key=True, autoincrement=True)
    ae_user_id = Column(BigInteger, nullable=False, index=True)  # Owner, resolved by the command layer
    ae_kind = Column(
        SAEnum(EventKind, name="event_kind", native_enum=False, length=10,
               values_callable=lambda kinds: [k.value for k in kinds]),
        nullable=False
    )
    ae_occurred_at = Column(UTCDateTime, nullable=False)
    ae_is_modified = Column(Boolean, nullable=False, default=False)
    ae_original_occurred_at = Column(UTCDateTime, nullable=True)  # Set on first edit only
    ae_created_at = Column(UTCDateTime, server_default=func.now(), nullable=False)
    ae_updated_at = Column(UTCDateTime, onupdate=func.now(), nullable=True)
