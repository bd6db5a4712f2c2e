"""Time-of-day arithmetic on ``"HH:MM"`` strings and ``datetime.time`` values.

Windows are half-open ``[start, end)``: a booking ending at 19:00 does not
collide with one starting at 19:00.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Union

from reservation_engine.core.exceptions import ValidationError

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

TimeLike = Union[str, time]


def parse_time(value: TimeLike) -> time:
    """Return ``value`` as a ``datetime.time`` truncated to the minute."""

    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if isinstance(value, str):
        match = _TIME_PATTERN.match(value.strip())
        if match is not None:
            return time(int(match.group(1)), int(match.group(2)))
    raise ValidationError(f"Invalid time of day {value!r}; expected HH:MM", field="time")


def to_minutes(value: TimeLike) -> int:
    parsed = parse_time(value)
    return parsed.hour * MINUTES_PER_HOUR + parsed.minute


def format_minutes(minutes: int) -> str:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValidationError(f"Minute offset {minutes} is outside a single day", field="time")
    hours, remainder = divmod(minutes, MINUTES_PER_HOUR)
    return f"{hours:02d}:{remainder:02d}"


def overlaps(start_a: TimeLike, end_a: TimeLike, start_b: TimeLike, end_b: TimeLike) -> bool:
    return to_minutes(start_a) < to_minutes(end_b) and to_minutes(end_a) > to_minutes(start_b)


def duration_minutes(start: TimeLike, end: TimeLike) -> int:
    return to_minutes(end) - to_minutes(start)


def ensure_window(start: TimeLike, end: TimeLike) -> tuple[time, time]:
    """Parse a window and reject ``end <= start``."""

    start_value = parse_time(start)
    end_value = parse_time(end)
    if end_value <= start_value:
        raise ValidationError("end_time must be after start_time", field="end_time")
    return start_value, end_value


def combine(day: date, value: TimeLike) -> datetime:
    return datetime.combine(day, parse_time(value))


def as_naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None) if value.tzinfo is not None else value


__all__ = [
    "MINUTES_PER_DAY",
    "MINUTES_PER_HOUR",
    "TimeLike",
    "as_naive",
    "combine",
    "duration_minutes",
    "ensure_window",
    "format_minutes",
    "overlaps",
    "parse_time",
    "to_minutes",
]
