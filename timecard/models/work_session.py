"""
Work Session Model - Derived from attendance events, rebuilt per user-day
"""
from sqlalchemy import Column, BigInteger, Boolean, Date, Integer, Index
from sqlalchemy.sql import func

from timecard.db.base import Base
from timecard.db.types import UTCDateTime
from timecard.models.attendance_event import Identifier


class WorkSession(Base):
    """Work Session model - Table: work_sessions"""
    __tablename__ = "work_sessions"
    __table_args__ = (
        Index("ix_work_sessions_user_date", "ws_user_id", "ws_work_date"),
    )

    ws_id = Column(Identifier, primary_key=True, autoincrement=True)
    ws_user_id = Column(BigInteger, nullable=False, index=True)
    ws_start_at = Column(UTCDateTime, nullable=False)
    ws_end_at = Column(UTCDateTime, nullable=True)
    ws_duration_minutes = Column(Integer, nullable=True)  # Present iff ws_end_at is
    ws_is_completed = Column(Boolean, nullable=False, default=False)
    ws_work_date = Column(Date, nullable=False)  # Local calendar day
    ws_created_at = Column(UTCDateTime, server_default=func.now(), nullable=False)
