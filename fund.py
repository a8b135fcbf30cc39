"""Work-time fund: the hours a full-time employee owes in a month."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Collection

from public_holidays import get_public_holidays
from utils import days_in_month

STANDARD_DAY_HOURS = Decimal("8")


def get_working_days(year: int, month: int, holidays: Collection[str] | None = None) -> list[date]:
    """Weekdays in the month that are not public holidays.

    holidays is a collection of ISO date strings; defaults to the Czech
    calendar for the year.
    """
    if holidays is None:
        holidays = get_public_holidays(year).strings

    working_days = []
    for current in days_in_month(year, month):
        # Monday=0 to Friday=4 are weekdays
        if current.weekday() < 5 and current.isoformat() not in holidays:
            working_days.append(current)
    return working_days


def work_time_fund(
    year: int,
    month: int,
    holidays: Collection[str] | None = None,
    day_hours: Decimal = STANDARD_DAY_HOURS,
) -> Decimal:
    """Working days in the month times the standard day length."""
    return len(get_working_days(year, month, holidays)) * Decimal(day_hours)
