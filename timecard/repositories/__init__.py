from .attendance_event_repository import AttendanceEventRepository
from .work_session_repository import WorkSessionRepository

__all__ = [
    "AttendanceEventRepository",
    "WorkSessionRepository"
]
