from .attendance_event import AttendanceEvent, EventKind
from .work_session import WorkSession

__all__ = [
    "AttendanceEvent",
    "EventKind",
    "WorkSession"
]
