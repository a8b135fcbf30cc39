from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import ClassVar


@dataclass
class Activity:
    """One interval within a day. Use the concrete subclasses."""

    kind: ClassVar[str] = ""

    id: str
    start_time: str
    end_time: str | None = None
    notes: str = ""


@dataclass
class WorkActivity(Activity):
    kind: ClassVar[str] = "work"

    project_id: str | None = None


@dataclass
class AbsenceActivity(Activity):
    kind: ClassVar[str] = "absence"

    absence_id: str | None = None


@dataclass
class BreakActivity(Activity):
    kind: ClassVar[str] = "break"

    is_auto: bool = False


ACTIVITY_TYPES: dict[str, type[Activity]] = {
    cls.kind: cls for cls in (WorkActivity, AbsenceActivity, BreakActivity)
}


@dataclass
class Day:
    date: date
    activities: list[Activity] = field(default_factory=list)
    absence_id: str | None = None

    @property
    def iso_date(self) -> str:
        return self.date.isoformat()

    @property
    def is_empty(self) -> bool:
        """No activities and no assigned absence."""
        return not self.activities and self.absence_id is None

    @property
    def is_open(self) -> bool:
        """An activity is still waiting for its end time."""
        return any(a.end_time is None for a in self.activities)


@dataclass
class Project:
    id: str
    name: str
    color: str = "#8884d8"
    archived: bool = False


@dataclass
class AbsenceType:
    id: str
    name: str

    # Matched case-insensitively against the name
    HOLIDAY_MARKERS: ClassVar[tuple[str, ...]] = ("public holiday", "státní svátek")

    @property
    def is_holiday_marker(self) -> bool:
        name = self.name.lower()
        return any(marker in name for marker in self.HOLIDAY_MARKERS)


@dataclass
class Employee:
    id: str
    name: str
    archived: bool = False


@dataclass
class Config:
    standard_day_hours: Decimal = Decimal("8")
    lunch_threshold_minutes: int = 270
    lunch_break_minutes: int = 30
    default_start_time: str = "07:00"
    default_end_time: str = "15:30"

    @property
    def standard_day_minutes(self) -> int:
        return int(self.standard_day_hours * 60)


@dataclass
class DailyTotals:
    work_minutes: int = 0
    break_minutes: int = 0
    absence_minutes: int = 0
    regular_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    is_open: bool = False

    @property
    def total_work_hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours


@dataclass
class ProjectSummary:
    name: str
    color: str
    hours: Decimal
    overtime: Decimal


@dataclass
class AbsenceSummary:
    name: str
    hours: Decimal


@dataclass
class MonthlySummary:
    total_regular_hours: Decimal = Decimal("0")
    total_overtime_hours: Decimal = Decimal("0")
    total_holiday_work_hours: Decimal = Decimal("0")
    total_absence_hours: Decimal = Decimal("0")
    projects: list[ProjectSummary] = field(default_factory=list)
    absences: list[AbsenceSummary] = field(default_factory=list)

    @property
    def total_worked_hours(self) -> Decimal:
        return self.total_regular_hours + self.total_overtime_hours


@dataclass
class Reconciliation:
    fund: Decimal
    worked: Decimal
    reported: Decimal
    difference: Decimal
    status: str
    work_percent: Decimal
    absence_percent: Decimal

    def describe(self) -> str:
        """Human readable status line."""
        if self.status == "no_fund":
            return "No work-time fund this month"
        if self.status == "match":
            return "Timesheet matches"
        if self.status == "missing":
            return f"Missing {float(abs(self.difference)):g}h"
        return f"Exceeds by {float(self.difference):g}h"
