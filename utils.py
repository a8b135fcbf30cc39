"""Utility functions for timesheet calculations."""

from __future__ import annotations

import math
import re
from calendar import monthrange
from datetime import date
from decimal import Decimal

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR

_TIME_RE = re.compile(r"^\d{1,2}:\d{2}$")


def parse_time(value: str | None) -> int:
    """Convert "HH:MM" to minutes since midnight. Malformed input gives 0."""
    if not value or ":" not in value:
        return 0
    parts = value.split(":")
    try:
        return int(parts[0]) * MINUTES_PER_HOUR + int(parts[1])
    except (ValueError, IndexError):
        return 0


def format_time(minutes: float) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    if minutes is None or math.isnan(minutes) or minutes < 0:
        return "00:00"
    hours, mins = divmod(int(minutes), MINUTES_PER_HOUR)
    return f"{hours:02d}:{mins:02d}"


def is_valid_time(value: str | None) -> bool:
    """Strict H:MM / HH:MM check for user input."""
    if not value or not _TIME_RE.match(value.strip()):
        return False
    hours, minutes = (int(p) for p in value.strip().split(":"))
    return hours < 24 and minutes < 60


def shift_time(value: str, delta_minutes: int) -> str:
    """Move a time by delta minutes, wrapping around midnight."""
    return format_time((parse_time(value) + delta_minutes) % MINUTES_PER_DAY)


def duration_minutes(start: str | None, end: str | None) -> int:
    """Whole minutes between two times; 0 if either is missing or end < start."""
    if not start or not end:
        return 0
    start_minutes = parse_time(start)
    end_minutes = parse_time(end)
    if end_minutes < start_minutes:
        return 0
    return end_minutes - start_minutes


def minutes_to_hours(minutes: int | Decimal) -> Decimal:
    """Minutes as decimal hours, rounded to 2 places."""
    return (Decimal(minutes) / MINUTES_PER_HOUR).quantize(Decimal("0.01"))


def duration(start: str | None, end: str | None) -> Decimal:
    """Hours between two times, never negative."""
    return minutes_to_hours(duration_minutes(start, end))


def days_in_month(year: int, month: int) -> list[date]:
    """Every calendar date in the month."""
    return [date(year, month, day) for day in range(1, monthrange(year, month)[1] + 1)]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last date of the month."""
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move (year, month) by delta months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
