"""
Application exceptions - rendered by the handlers registered in timecard.main
"""
from enum import Enum
from typing import Any, Dict, Optional


class AppException(Exception):
    """Base class for errors that are reported to the client"""
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BadRequestException(AppException):
    status_code = 400
    error_code = "BAD_REQUEST"


class NotFoundException(AppException):
    status_code = 404
    error_code = "NOT_FOUND"


class TimeParseError(BadRequestException):
    """Malformed time-of-day input. The message is shown to the user as is."""
    error_code = "INVALID_TIME"


class ValidationReason(str, Enum):
    FUTURE_DATE = "future_date"
    FUTURE_TIME_TODAY = "future_time_today"
    TOO_FAR_IN_PAST = "too_far_in_past"
    IMPLAUSIBLE_HOUR = "implausible_hour"
    DUPLICATE_INSTANT = "duplicate_instant"
    BROKEN_ALTERNATION = "broken_alternation"


class ValidationError(AppException):
    """A candidate event was rejected by the validation engine"""
    status_code = 422
    error_code = "VALIDATION_FAILED"

    def __init__(self, reason: ValidationReason, message: str, position: Optional[int] = None) -> None:
        details: Dict[str, Any] = {"reason": reason.value}
        if position is not None:
            details["position"] = position
        super().__init__(message, details)
        self.reason = reason
        self.position = position


class PersistenceError(AppException):
    """
    Event/Session store failure.

    The client only ever sees the generic message; the underlying error is
    chained via __cause__ and logged.
    """
    status_code = 500
    error_code = "PERSISTENCE_ERROR"

    def __init__(self, message: str = "Failed to save attendance data") -> None:
        super().__init__(message)
