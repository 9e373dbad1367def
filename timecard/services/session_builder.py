"""
Session Builder - Pairs a user-day's events into work sessions

reconstruct_sessions() never raises on malformed event lists. Edits made
outside the validation engine can leave two ClockIns in a row or a
ClockOut with nothing to close; those are logged as warnings and the
scan carries on.
"""
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence

from timecard.core.timeutil import day_of, ensure_utc, minutes_between
from timecard.models.attendance_event import EventKind
from timecard.schemas.attendance import WorkSessionData

logger = logging.getLogger(__name__)


class ReconstructionAnomaly(str, Enum):
    DUPLICATE_OPEN_CLOCK_IN = "duplicate_open_clock_in"
    ORPHAN_CLOCK_OUT = "orphan_clock_out"


def _report(anomaly: ReconstructionAnomaly, event) -> None:
    logger.warning(
        "Session reconstruction anomaly %s: user_id=%s event_id=%s occurred_at=%s",
        anomaly.value, event.ae_user_id, event.ae_id, event.ae_occurred_at
    )


def reconstruct_sessions(events: Sequence, utc_offset: Optional[timedelta] = None) -> List[WorkSessionData]:
    """
    Build the canonical session list for one user-day.

    ClockIn opens a session (a second ClockIn replaces the open start),
    ClockOut closes the open one. A start still open at the end becomes
    the single incomplete session, which is always last.
    """
    sessions: List[WorkSessionData] = []
    open_start: Optional[datetime] = None

    ordered = sorted(events, key=lambda e: ensure_utc(e.ae_occurred_at))
    for event in ordered:
        occurred_at = ensure_utc(event.ae_occurred_at)
        kind = EventKind(event.ae_kind)

        if kind is EventKind.CLOCK_IN:
            if open_start is not None:
                _report(ReconstructionAnomaly.DUPLICATE_OPEN_CLOCK_IN, event)
            open_start = occurred_at
        elif kind is EventKind.CLOCK_OUT:
            if open_start is None:
                _report(ReconstructionAnomaly.ORPHAN_CLOCK_OUT, event)
                continue
            sessions.append(WorkSessionData(
                ws_start_at=open_start,
                ws_end_at=occurred_at,
                ws_duration_minutes=minutes_between(open_start, occurred_at),
                ws_is_completed=True,
                ws_work_date=day_of(open_start, utc_offset)
            ))
            open_start = None

    if open_start is not None:
        sessions.append(WorkSessionData(
            ws_start_at=open_start,
            ws_work_date=day_of(open_start, utc_offset)
        ))

    return sessions


def total_minutes(sessions: Sequence) -> int:
    """Sum of completed durations; open sessions count as zero"""
    return sum(s.ws_duration_minutes or 0 for s in sessions)
