"""Czech public holidays, computed from fixed dates and Easter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache

FIXED_HOLIDAYS: list[tuple[int, int, str]] = [
    (1, 1, "New Year's Day"),
    (5, 1, "Labour Day"),
    (5, 8, "Liberation Day"),
    (7, 5, "Saints Cyril and Methodius Day"),
    (7, 6, "Jan Hus Day"),
    (9, 28, "Czech Statehood Day"),
    (10, 28, "Independent Czechoslovak State Day"),
    (11, 17, "Struggle for Freedom and Democracy Day"),
    (12, 24, "Christmas Eve"),
    (12, 25, "Christmas Day"),
    (12, 26, "St. Stephen's Day"),
]


@dataclass(frozen=True)
class HolidayCalendar:
    year: int
    dates: tuple[date, ...]
    strings: frozenset[str]
    names: dict[date, str]

    def __contains__(self, d: object) -> bool:
        if isinstance(d, date):
            return d in self.names
        return d in self.strings


def easter_sunday(year: int) -> date:
    """Easter Sunday for a Gregorian year (Meeus/Jones/Butcher)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


@lru_cache(maxsize=None)
def get_public_holidays(year: int) -> HolidayCalendar:
    """Public holidays for a year. Cached; the result is never mutated."""
    easter = easter_sunday(year)
    named: dict[date, str] = {}
    for month, day, name in FIXED_HOLIDAYS:
        named.setdefault(date(year, month, day), name)
    named.setdefault(easter - timedelta(days=2), "Good Friday")
    named.setdefault(easter + timedelta(days=1), "Easter Monday")

    dates = tuple(sorted(named))
    return HolidayCalendar(
        year=year,
        dates=dates,
        strings=frozenset(d.isoformat() for d in dates),
        names={d: named[d] for d in dates},
    )


def is_public_holiday(d: date) -> bool:
    return d in get_public_holidays(d.year)


def holidays_in_month(year: int, month: int) -> dict[date, str]:
    """Holidays falling in the given month, in date order."""
    calendar = get_public_holidays(year)
    return {d: name for d, name in calendar.names.items() if d.month == month}
