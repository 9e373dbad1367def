from .attendance import (
    AttendanceEvent,
    WorkSession,
    WorkSessionData,
    ManualEventRequest,
    EditEventRequest,
    EventMutationResponse,
    DeleteAllResponse,
    DayStatusResponse,
    ReportResponse
)
from .common import DataResponse, ErrorResponse

__all__ = [
    # Attendance schemas
    "AttendanceEvent",
    "WorkSession",
    "WorkSessionData",
    "ManualEventRequest",
    "EditEventRequest",
    "EventMutationResponse",
    "DeleteAllResponse",
    "DayStatusResponse",
    "ReportResponse",
    # Common schemas
    "DataResponse",
    "ErrorResponse"
]
