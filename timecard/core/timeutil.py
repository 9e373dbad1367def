"""
Time normalization in the fixed local offset.

Every decision about which calendar day an instant belongs to goes through
day_of(); query ranges are built from combine() so both agree.
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple, Optional, Tuple

from timecard.core.config import settings
from timecard.core.exceptions import TimeParseError

TIME_FORMAT_MESSAGE = "Invalid time format. Use HH:MM (supports 00:00-47:59 for night shifts)"

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class ParsedTime(NamedTuple):
    time_of_day: time
    day_offset: int

    @property
    def is_night_shift(self) -> bool:
        return self.day_offset > 0


def local_offset() -> timedelta:
    """Configured fixed offset from UTC"""
    return timedelta(hours=settings.UTC_OFFSET_HOURS)


def _zone(utc_offset: Optional[timedelta]) -> timezone:
    return timezone(local_offset() if utc_offset is None else utc_offset)


def ensure_utc(instant: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already"""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def parse_time(text: str) -> ParsedTime:
    """
    Parse user time input.

    Accepts HH:MM and HH:MM:SS for ordinary times, and HH:MM with an hour
    of 24-47 for times after midnight that belong to the next day
    ("25:10" -> 01:10, day_offset=1).

    Raises:
        TimeParseError: anything else
    """
    match = _TIME_RE.match(text.strip()) if text else None
    if match is None:
        raise TimeParseError(TIME_FORMAT_MESSAGE)

    hour = int(match.group(1))
    minute = int(match.group(2))
    second = match.group(3)

    if minute > 59:
        raise TimeParseError(TIME_FORMAT_MESSAGE)

    if hour < 24:
        seconds = int(second) if second else 0
        if seconds > 59:
            raise TimeParseError(TIME_FORMAT_MESSAGE)
        return ParsedTime(time(hour, minute, seconds), 0)

    if hour < 48 and second is None:
        return ParsedTime(time(hour - 24, minute), 1)

    raise TimeParseError(TIME_FORMAT_MESSAGE)


def combine(
    day: date,
    time_of_day: time,
    day_offset: int = 0,
    utc_offset: Optional[timedelta] = None
) -> datetime:
    """Local date + time-of-day (+ day_offset days) -> aware UTC instant"""
    local_day = day + timedelta(days=day_offset)
    local_dt = datetime.combine(local_day, time_of_day, tzinfo=_zone(utc_offset))
    return local_dt.astimezone(timezone.utc)


def day_of(instant: datetime, utc_offset: Optional[timedelta] = None) -> date:
    """Calendar day an instant is filed under"""
    return ensure_utc(instant).astimezone(_zone(utc_offset)).date()


def local_time_of(instant: datetime, utc_offset: Optional[timedelta] = None) -> time:
    return ensure_utc(instant).astimezone(_zone(utc_offset)).time()


def day_bounds(day: date, utc_offset: Optional[timedelta] = None) -> Tuple[datetime, datetime]:
    """Half-open UTC range [start, end) covering the local calendar day"""
    return combine(day, time.min, 0, utc_offset), combine(day, time.min, 1, utc_offset)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def today(utc_offset: Optional[timedelta] = None, now: Optional[datetime] = None) -> date:
    return day_of(now or now_utc(), utc_offset)


def minutes_between(start: datetime, end: datetime) -> int:
    return int((ensure_utc(end) - ensure_utc(start)).total_seconds() // 60)
