"""Date and time helpers used by the slot engine.

All instants are naive datetimes on the calendar's local wall clock. Wall-clock
times of day travel as ``HH:MM`` strings at the edges and as
``datetime.time`` inside the engine.
"""

import re
from datetime import date, datetime, time, timedelta

from agenda.core.errors import FormatError

WALL_CLOCK_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')


def add_minutes(instant: datetime, minutes: int) -> datetime:
    return instant + timedelta(minutes=minutes)


def is_before(a: datetime, b: datetime) -> bool:
    return a < b


def is_after(a: datetime, b: datetime) -> bool:
    return a > b


def is_same_day(a: date, b: date) -> bool:
    return _as_date(a) == _as_date(b)


def intervals_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Return True if the two intervals share any time.

    Touching endpoints (``end1 == start2``) do not overlap, which is what lets
    back-to-back slots coexist without a buffer.
    """
    return start1 < end2 and start2 < end1


def date_range(start_date: date, days: int) -> list[date]:
    first_day = _as_date(start_date)
    return [first_day + timedelta(days=offset) for offset in range(max(days, 0))]


def parse_wall_clock(value: str) -> time:
    if not isinstance(value, str) or not WALL_CLOCK_PATTERN.match(value):
        raise FormatError(f'Invalid time format (expected HH:MM): {value!r}')

    hours, minutes = value.split(':')
    return time(int(hours), int(minutes))


def format_wall_clock(value: time) -> str:
    return value.strftime('%H:%M')


def at_wall_clock(day: date, wall_clock: time) -> datetime:
    return datetime.combine(_as_date(day), wall_clock.replace(second=0, microsecond=0))


def duration_minutes(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def format_duration(start: datetime, end: datetime) -> str:
    hours, minutes = divmod(duration_minutes(start, end), 60)
    if hours == 0:
        return f'{minutes}m'
    if minutes == 0:
        return f'{hours}h'
    return f'{hours}h {minutes}m'


def format_time_range(start: datetime, end: datetime) -> str:
    return f'{start:%H:%M} - {end:%H:%M}'


def has_minimum_notice(instant: datetime, min_notice_hours: int, now: datetime) -> bool:
    return is_after(instant, now + timedelta(hours=min_notice_hours))


def is_within_booking_window(
    instant: datetime,
    min_notice_hours: int,
    advance_booking_days: int,
    now: datetime,
) -> bool:
    earliest = now + timedelta(hours=min_notice_hours)
    latest = now + timedelta(days=advance_booking_days)
    return earliest <= instant <= latest


def to_local_naive(instant: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive input is returned unchanged."""
    if instant.tzinfo is None:
        return instant
    return instant.astimezone().replace(tzinfo=None)


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
