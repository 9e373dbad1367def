from .attendance_service import AttendanceService
from .recalculation_service import RecalculationService

__all__ = [
    "AttendanceService",
    "RecalculationService"
]
