"""
Attendance Endpoints - Clock in/out, manual corrections, day status and reports
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from timecard.api.deps import get_current_user_id
from timecard.core.exceptions import BadRequestException
from timecard.db.session import get_db
from timecard.schemas import (
    DataResponse,
    DayStatusResponse,
    DeleteAllResponse,
    EditEventRequest,
    EventMutationResponse,
    ManualEventRequest,
    ReportResponse,
    WorkSession
)
from timecard.services.attendance_service import AttendanceService

router = APIRouter()
attendance_service = AttendanceService()


def get_attendance_service() -> AttendanceService:
    return attendance_service


def _parse_date(value: Optional[str], name: str = "date") -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise BadRequestException(f"Invalid {name} format. Use YYYY-MM-DD")


def _mutation_message(action: str, result: EventMutationResponse) -> str:
    if result.sessions_recalculated:
        return action
    return f"{action}; work sessions will be updated on the next recalculation"


@router.post(
    "/clock-in",
    response_model=DataResponse[EventMutationResponse],
    status_code=status.HTTP_201_CREATED
)
def clock_in(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    service: AttendanceService = Depends(get_attendance_service)
):
    """
    Start working now

    **Errors:**
    - 422: already clocked in (broken_alternation)
    """
    result = service.clock_in(db, user_id)
    return DataResponse(success=True, message=_mutation_message("Clocked in", result), data=result)


@router.post(
    "/clock-out",
    response_model=DataResponse[EventMutationResponse],
    status_code=status.HTTP_201_CREATED
)
def clock_out(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    service: AttendanceService = Depends(get_attendance_service)
):
    """
    Stop working now

    **Errors:**
    - 422: no open clock-in today (broken_alternation)
    """
    result = service.clock_out(db, user_id)
    return DataResponse(success=True, message=_mutation_message("Clocked out", result), data=result)


@router.post(
    "/events",
    response_model=DataResponse[EventMutationResponse],
    status_code=status.HTTP_201_CREATED
)
def add_event(
    request: ManualEventRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    service: AttendanceService = Depends(get_attendance_service)
):
    """
    Add a back-dated clock event

    **Body:**
    - kind: clock_in or clock_out
    - time: HH:MM, HH:MM:SS, or 24:00-47:59 for times after midnight
    - work_date: YYYY-MM-DD (optional, default today)

    **Errors:**
    - 400: malformed time
    - 422: rejected (future, too old, duplicate instant, broken order)
    """
    result = service.add_event(db, user_id, request)
    return DataResponse(success=True, message=_mutation_message("Event added", result), data=result)


@router.patch(
    "/events/{event_id}",
    response_model=DataResponse[EventMutationResponse],
    status_code=status.HTTP_200_OK
)
def edit_event(
    event_id: int,
    request: EditEventRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    service: AttendanceService = Depends(get_attendance_service)
):
    """
    Change the time of an existing event

    The original time is kept the first time an event is edited.
    """
    result = service.edit_event_time(db, user_id, event_id, request)
    return DataResponse(success=True, message=_mutation_message("Event time updated", result), data=result)


@router.delete(
    "/events/{event_id}",
    response_model=DataResponse[EventMutationResponse],
    status_code=status.HTTP_200_OK
)
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    service: AttendanceService = Depends(get_attendance_service)
):
    result = service.delete_event(db, user_id, event_id)
    return DataResponse(success=True, message=_mutation_message("Event deleted", result), data=result)


@router.delete(
    "/events",
    response_model=DataResponse[DeleteAllResponse],
    status_code=status.HTTP_200_OK
)
def delete_all_events(
    date: Optional[str] = Query(None, description="Date in YYYY-MM-DD format (default: today)"),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Delete every event of one day"""
    result = service.delete_all_events(db, user_id, _parse_date(date))
    return DataResponse(success=True, message=f"Deleted {result.deleted_count} events", data=result)


@router.get(
    "/status",
    response_model=DataResponse[DayStatusResponse],
    status_code=status.HTTP_200_OK
)
def get_status(
    date: Optional[str] = Query(None, description="Date in YYYY-MM-DD format (default: today)"),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Events, sessions and worked minutes for one day"""
    result = service.get_day_status(db, user_id, _parse_date(date))
    return DataResponse(success=True, message="Status retrieved successfully", data=result)


@router.get(
    "/report",
    response_model=DataResponse[ReportResponse],
    status_code=status.HTTP_200_OK
)
def get_report(
    period: str = Query("daily", pattern="^(daily|weekly|monthly)$", description="daily, weekly or monthly"),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Work sessions and total minutes for today, this week (from Monday) or this month"""
    result = service.get_report(db, user_id, period)
    return DataResponse(success=True, message="Report retrieved successfully", data=result)


@router.post(
    "/recalculate",
    response_model=DataResponse[List[WorkSession]],
    status_code=status.HTTP_200_OK
)
def recalculate(
    date: Optional[str] = Query(None, description="Date in YYYY-MM-DD format (default: today)"),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Rebuild the stored sessions of one day from its events"""
    sessions = service.recalculate_day(db, user_id, _parse_date(date))
    return DataResponse(success=True, message="Sessions recalculated", data=sessions)
