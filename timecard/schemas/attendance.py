"""
Attendance Schemas for events, sessions and command requests/responses
"""
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from timecard.core.timeutil import ensure_utc
from timecard.models.attendance_event import EventKind


class AttendanceEventBase(BaseModel):
    ae_user_id: int
    ae_kind: EventKind
    ae_occurred_at: datetime
    ae_is_modified: bool = False
    ae_original_occurred_at: Optional[datetime] = None


class AttendanceEvent(AttendanceEventBase):
    model_config = ConfigDict(from_attributes=True)

    ae_id: int

    @field_validator('ae_occurred_at', 'ae_original_occurred_at')
    @classmethod
    def as_utc(cls, v):
        """Instants are always compared as aware UTC"""
        if v is None:
            return None
        return ensure_utc(v)


class WorkSessionBase(BaseModel):
    ws_start_at: datetime
    ws_end_at: Optional[datetime] = None
    ws_duration_minutes: Optional[int] = None
    ws_is_completed: bool = False
    ws_work_date: date


class WorkSessionData(WorkSessionBase):
    """A session produced by the reconstructor, not yet stored"""
    pass


class WorkSession(WorkSessionBase):
    model_config = ConfigDict(from_attributes=True)

    ws_id: int
    ws_user_id: int


# Request/Response schemas for API endpoints
class ManualEventRequest(BaseModel):
    """Back-dated insertion. time accepts HH:MM, HH:MM:SS or 24:00-47:59"""
    kind: EventKind
    time: str
    work_date: Optional[date] = None  # default: today in the local offset


class EditEventRequest(BaseModel):
    time: str
    work_date: Optional[date] = None  # default: the event's current day


class EventMutationResponse(BaseModel):
    event: Optional[AttendanceEvent] = None
    affected_dates: List[date]
    sessions_recalculated: bool


class DeleteAllResponse(BaseModel):
    work_date: date
    deleted_count: int
    sessions_recalculated: bool


class DayStatusResponse(BaseModel):
    work_date: date
    events: List[AttendanceEvent]
    sessions: List[WorkSession]
    total_minutes: int
    is_working: bool


class ReportResponse(BaseModel):
    period: Literal["daily", "weekly", "monthly"]
    date_from: date
    date_to: date
    sessions: List[WorkSession]
    total_minutes: int
    completed_sessions: int
    days_worked: int
