"""Monthly totals per project and absence type, and the fund reconciliation."""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Collection, Iterable, Mapping

from models import (
    AbsenceActivity,
    AbsenceSummary,
    AbsenceType,
    Day,
    MonthlySummary,
    Project,
    ProjectSummary,
    Reconciliation,
    WorkActivity,
)
from timeline import REGULAR_DAY_MINUTES, compute_daily_totals
from utils import duration_minutes, minutes_to_hours

UNASSIGNED_PROJECT_NAME = "No project"
UNASSIGNED_PROJECT_COLOR = "#8884d8"
UNKNOWN_ABSENCE_NAME = "Absence"


def summarize_month(
    days: Mapping[str, Day],
    projects: Iterable[Project],
    absence_types: Iterable[AbsenceType],
    holidays: Collection[str],
    holiday_absence_id: str | None = None,
    year: int | None = None,
    month: int | None = None,
    regular_minutes: int = REGULAR_DAY_MINUTES,
) -> MonthlySummary:
    """Fold a month of days into regular, overtime, holiday and absence totals.

    Holiday work is kept out of the regular and overtime totals. Project
    overtime is the day's overtime shared out in proportion to each work
    activity's minutes; it is an estimate for display, not a payroll figure.
    Days that are still open are skipped.
    """
    projects_by_id = {p.id: p for p in projects}
    absences_by_id = {a.id: a for a in absence_types}

    regular = overtime = holiday_work = absence_total = 0
    project_buckets: dict[str | None, list[Decimal]] = {}
    absence_buckets: dict[str, int] = defaultdict(int)

    for iso_date in sorted(days):
        day = days[iso_date]
        if year is not None and day.date.year != year:
            continue
        if month is not None and day.date.month != month:
            continue

        totals = compute_daily_totals(day.activities, regular_minutes)
        if totals.is_open:
            continue

        work = totals.work_minutes
        day_overtime = max(0, work - regular_minutes)
        is_holiday = iso_date in holidays
        if is_holiday:
            holiday_work += work
        else:
            regular += work - day_overtime
            overtime += day_overtime

        for activity in day.activities:
            minutes = duration_minutes(activity.start_time, activity.end_time)
            if isinstance(activity, WorkActivity):
                key = activity.project_id if activity.project_id in projects_by_id else None
                bucket = project_buckets.setdefault(key, [Decimal(0), Decimal(0)])
                share = Decimal(0)
                if day_overtime and not is_holiday:
                    share = Decimal(day_overtime) * minutes / work
                bucket[0] += minutes - share
                bucket[1] += share
            elif isinstance(activity, AbsenceActivity) and activity.absence_id is not None:
                absence_total += minutes
                if activity.absence_id != holiday_absence_id:
                    absence_buckets[activity.absence_id] += minutes

    project_rows = []
    for project_id, (hours, extra) in project_buckets.items():
        project = projects_by_id.get(project_id) if project_id else None
        project_rows.append(ProjectSummary(
            name=project.name if project else UNASSIGNED_PROJECT_NAME,
            color=project.color if project else UNASSIGNED_PROJECT_COLOR,
            hours=minutes_to_hours(hours),
            overtime=minutes_to_hours(extra),
        ))
    project_rows.sort(key=lambda p: p.hours + p.overtime, reverse=True)

    absence_rows = [
        AbsenceSummary(
            name=absences_by_id[absence_id].name if absence_id in absences_by_id else UNKNOWN_ABSENCE_NAME,
            hours=minutes_to_hours(minutes),
        )
        for absence_id, minutes in absence_buckets.items()
    ]
    absence_rows.sort(key=lambda a: a.hours, reverse=True)

    return MonthlySummary(
        total_regular_hours=minutes_to_hours(regular),
        total_overtime_hours=minutes_to_hours(overtime),
        total_holiday_work_hours=minutes_to_hours(holiday_work),
        total_absence_hours=minutes_to_hours(absence_total),
        projects=project_rows,
        absences=absence_rows,
    )


def reconcile(summary: MonthlySummary, fund: Decimal) -> Reconciliation:
    """Compare reported hours (work + absence) against the work-time fund."""
    fund = Decimal(fund)
    worked = summary.total_worked_hours
    reported = worked + summary.total_absence_hours
    difference = reported - fund

    if fund == 0:
        return Reconciliation(
            fund=fund,
            worked=worked,
            reported=reported,
            difference=difference,
            status="no_fund",
            work_percent=Decimal("0"),
            absence_percent=Decimal("0"),
        )

    if difference == 0:
        status = "match"
    elif difference < 0:
        status = "missing"
    else:
        status = "excess"

    return Reconciliation(
        fund=fund,
        worked=worked,
        reported=reported,
        difference=difference,
        status=status,
        work_percent=(worked / fund * 100).quantize(Decimal("0.1")),
        absence_percent=(summary.total_absence_hours / fund * 100).quantize(Decimal("0.1")),
    )
