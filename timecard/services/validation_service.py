"""
Validation Service - Decides whether a new or edited event may be stored

Everything here is a pure function of its arguments: the existing events,
the candidate, "now" and the policy. Nothing reads the database or the clock
unless the caller leaves `now` out.
"""
from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from timecard.core.config import settings
from timecard.core.exceptions import ValidationError, ValidationReason
from timecard.core.timeutil import ensure_utc, local_time_of, now_utc, today
from timecard.models.attendance_event import EventKind


@dataclass(frozen=True)
class ReasonablenessPolicy:
    max_past_days: int = 7
    reject_late_night: bool = False
    late_night_start_hour: int = 2
    late_night_end_hour: int = 5
    night_shift_exempt: bool = True

    @classmethod
    def from_settings(cls) -> "ReasonablenessPolicy":
        return cls(
            max_past_days=settings.MAX_PAST_DAYS,
            reject_late_night=settings.REJECT_LATE_NIGHT,
            late_night_start_hour=settings.LATE_NIGHT_START_HOUR,
            late_night_end_hour=settings.LATE_NIGHT_END_HOUR,
            night_shift_exempt=settings.NIGHT_SHIFT_EXEMPT,
        )


def check_reasonable_time(
    instant: datetime,
    day: date,
    *,
    now: datetime,
    policy: ReasonablenessPolicy,
    utc_offset: Optional[timedelta] = None,
    exempt_late_night: bool = False
) -> None:
    current_day = today(utc_offset, now)

    if day > current_day:
        raise ValidationError(
            ValidationReason.FUTURE_DATE,
            f"Cannot record on a future date ({day.isoformat()})"
        )

    candidate_time = local_time_of(instant, utc_offset)
    if day == current_day:
        current_time = local_time_of(now, utc_offset)
        if candidate_time > current_time:
            raise ValidationError(
                ValidationReason.FUTURE_TIME_TODAY,
                f"Cannot record a time later than now ({current_time.strftime('%H:%M')})"
            )

    if (current_day - day).days > policy.max_past_days:
        raise ValidationError(
            ValidationReason.TOO_FAR_IN_PAST,
            f"Cannot record more than {policy.max_past_days} days in the past"
        )

    if policy.reject_late_night and not exempt_late_night:
        if policy.late_night_start_hour <= candidate_time.hour < policy.late_night_end_hour:
            raise ValidationError(
                ValidationReason.IMPLAUSIBLE_HOUR,
                f"Times between {policy.late_night_start_hour:02d}:00 and "
                f"{policy.late_night_end_hour:02d}:00 are not accepted"
            )


def check_no_duplicate_instant(
    existing: Sequence,
    instant: datetime,
    exclude_event_id: Optional[int] = None,
    utc_offset: Optional[timedelta] = None
) -> None:
    candidate = ensure_utc(instant)
    for event in existing:
        if exclude_event_id is not None and event.ae_id == exclude_event_id:
            continue
        if ensure_utc(event.ae_occurred_at) == candidate:
            raise ValidationError(
                ValidationReason.DUPLICATE_INSTANT,
                f"A record already exists at {local_time_of(candidate, utc_offset).strftime('%H:%M:%S')}"
            )


def merged_sequence(
    existing: Sequence,
    kind: EventKind,
    instant: datetime,
    exclude_event_id: Optional[int] = None
) -> List[Tuple[datetime, EventKind]]:
    """Existing events plus the candidate, in time order; the candidate goes after equal instants"""
    timeline = sorted(
        (
            (ensure_utc(e.ae_occurred_at), EventKind(e.ae_kind))
            for e in existing
            if exclude_event_id is None or e.ae_id != exclude_event_id
        ),
        key=lambda item: item[0]
    )
    candidate = ensure_utc(instant)
    position = bisect_right([at for at, _ in timeline], candidate)
    timeline.insert(position, (candidate, kind))
    return timeline


def check_alternation(
    existing: Sequence,
    kind: EventKind,
    instant: datetime,
    exclude_event_id: Optional[int] = None
) -> None:
    """The day must read ClockIn, ClockOut, ClockIn, ... from its first event"""
    previous: Optional[EventKind] = None
    for position, (_, current) in enumerate(merged_sequence(existing, kind, instant, exclude_event_id), start=1):
        if previous is None:
            if current is EventKind.CLOCK_OUT:
                raise ValidationError(
                    ValidationReason.BROKEN_ALTERNATION,
                    f"Invalid order: position {position} is a ClockOut with no preceding ClockIn",
                    position=position
                )
        elif current is previous:
            raise ValidationError(
                ValidationReason.BROKEN_ALTERNATION,
                f"Invalid order: position {position} is a {current.label} "
                f"immediately after another {previous.label}",
                position=position
            )
        previous = current


def validate_event(
    existing: Sequence,
    kind: EventKind,
    instant: datetime,
    day: date,
    exclude_event_id: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
    policy: Optional[ReasonablenessPolicy] = None,
    utc_offset: Optional[timedelta] = None,
    exempt_late_night: bool = False
) -> None:
    """
    Run all checks against a candidate event, stopping at the first failure.

    Args:
        existing: events already stored for the candidate's user-day
        kind: candidate kind
        instant: candidate instant
        day: local calendar day the candidate is filed under
        exclude_event_id: id of the event being edited, ignored by the
            duplicate and ordering checks
        now: current instant (defaults to the clock)
        policy: reasonableness policy (defaults to settings)
        exempt_late_night: skip the late-night window check

    Raises:
        ValidationError: with the reason of the first failed check
    """
    check_reasonable_time(
        instant,
        day,
        now=now or now_utc(),
        policy=policy or ReasonablenessPolicy.from_settings(),
        utc_offset=utc_offset,
        exempt_late_night=exempt_late_night
    )
    check_no_duplicate_instant(existing, instant, exclude_event_id, utc_offset)
    check_alternation(existing, kind, instant, exclude_event_id)
