"""Tests for summary.py - monthly aggregation and fund reconciliation."""

from datetime import date
from decimal import Decimal

import pytest

from models import AbsenceActivity, Day, MonthlySummary, WorkActivity
from summary import (
    UNASSIGNED_PROJECT_NAME,
    UNKNOWN_ABSENCE_NAME,
    reconcile,
    summarize_month,
)
from timeline import normalize_timeline

HOLIDAY_ID = "absence-4"


def _day(iso: str, activities, final_end_time=None, absence_id=None) -> Day:
    return Day(
        date=date.fromisoformat(iso),
        activities=normalize_timeline(activities, final_end_time),
        absence_id=absence_id,
    )


def _summarize(days, projects, absence_types, holidays=frozenset()):
    return summarize_month(
        {d.iso_date: d for d in days},
        projects,
        absence_types,
        holidays,
        HOLIDAY_ID,
    )


class TestSummarizeMonth:
    """Tests for summarize_month function."""

    def test_sick_day_scenario(self, sample_projects, sample_absence_types):
        day = _day("2024-03-04", [
            WorkActivity(id="a", start_time="08:00", project_id="proj-1"),
            AbsenceActivity(id="s", start_time="12:30", absence_id="absence-2"),
            WorkActivity(id="b", start_time="13:30", project_id="proj-2"),
        ], "17:00")

        summary = _summarize([day], sample_projects, sample_absence_types)

        assert summary.total_regular_hours == Decimal("8.00")
        assert summary.total_overtime_hours == Decimal("0.00")
        assert summary.total_absence_hours == Decimal("1.00")
        assert [(a.name, a.hours) for a in summary.absences] == [("Nemoc", Decimal("1.00"))]
        assert {p.name: p.hours for p in summary.projects} == {
            "Interní systém": Decimal("4.50"),
            "Web pro klienta A": Decimal("3.50"),
        }

    def test_overtime_split_by_share_of_minutes(self, sample_projects, sample_absence_types):
        # 10h of work in blocks short enough to need no break: 6h on proj-1, 4h on proj-2
        day = _day("2024-03-05", [
            WorkActivity(id="a", start_time="06:00", end_time="10:00", project_id="proj-1"),
            WorkActivity(id="b", start_time="10:30", end_time="12:30", project_id="proj-1"),
            WorkActivity(id="c", start_time="13:00", end_time="17:00", project_id="proj-2"),
        ])

        summary = _summarize([day], sample_projects, sample_absence_types)

        assert summary.total_regular_hours == Decimal("8.00")
        assert summary.total_overtime_hours == Decimal("2.00")
        by_name = {p.name: p for p in summary.projects}
        assert by_name["Interní systém"].overtime == Decimal("1.20")
        assert by_name["Interní systém"].hours == Decimal("4.80")
        assert by_name["Web pro klienta A"].overtime == Decimal("0.80")
        assert sum(p.hours + p.overtime for p in summary.projects) == Decimal("10.00")

    def test_holiday_work_kept_separate(self, sample_projects, sample_absence_types):
        day = _day("2024-05-01", [
            WorkActivity(id="a", start_time="08:00", end_time="12:00", project_id="proj-1"),
        ])

        summary = _summarize([day], sample_projects, sample_absence_types, {"2024-05-01"})

        assert summary.total_holiday_work_hours == Decimal("4.00")
        assert summary.total_regular_hours == Decimal("0.00")
        assert summary.total_overtime_hours == Decimal("0.00")
        # Still shows up in the project breakdown
        assert summary.projects[0].hours == Decimal("4.00")

    def test_holiday_marker_counted_but_not_listed(self, sample_projects, sample_absence_types):
        day = _day("2024-05-08", [
            AbsenceActivity(id="h", start_time="07:00", end_time="15:00", absence_id=HOLIDAY_ID),
        ])

        summary = _summarize([day], sample_projects, sample_absence_types)

        assert summary.total_absence_hours == Decimal("8.00")
        assert summary.absences == []

    def test_day_level_marker_adds_no_hours(self, sample_projects, sample_absence_types):
        day = Day(date=date(2024, 5, 8), absence_id=HOLIDAY_ID)
        summary = _summarize([day], sample_projects, sample_absence_types, {"2024-05-08"})
        assert summary == MonthlySummary()

    def test_unknown_and_missing_projects_share_a_bucket(self, sample_projects, sample_absence_types):
        day = _day("2024-03-06", [
            WorkActivity(id="a", start_time="08:00", end_time="09:00", project_id="deleted"),
            WorkActivity(id="b", start_time="09:00", end_time="10:00", project_id=None),
        ])

        summary = _summarize([day], sample_projects, sample_absence_types)

        assert len(summary.projects) == 1
        assert summary.projects[0].name == UNASSIGNED_PROJECT_NAME
        assert summary.projects[0].hours == Decimal("2.00")

    def test_unknown_absence_type(self, sample_projects, sample_absence_types):
        day = _day("2024-03-06", [
            AbsenceActivity(id="a", start_time="08:00", end_time="10:00", absence_id="gone"),
        ])
        summary = _summarize([day], sample_projects, sample_absence_types)
        assert summary.absences[0].name == UNKNOWN_ABSENCE_NAME

    def test_absence_without_type_is_ignored(self, sample_projects, sample_absence_types):
        day = _day("2024-03-06", [
            AbsenceActivity(id="a", start_time="08:00", end_time="10:00", absence_id=None),
        ])
        summary = _summarize([day], sample_projects, sample_absence_types)
        assert summary.total_absence_hours == Decimal("0.00")

    def test_archived_project_still_reported(self, sample_projects, sample_absence_types):
        day = _day("2024-03-06", [
            WorkActivity(id="a", start_time="08:00", end_time="10:00", project_id="proj-3"),
        ])
        summary = _summarize([day], sample_projects, sample_absence_types)
        assert summary.projects[0].name == "Mobilní aplikace"

    def test_open_day_skipped(self, sample_projects, sample_absence_types):
        day = _day("2024-03-06", [WorkActivity(id="a", start_time="08:00", project_id="proj-1")])
        summary = _summarize([day], sample_projects, sample_absence_types)
        assert summary.total_worked_hours == Decimal("0.00")
        assert summary.projects == []

    def test_month_filter(self, sample_projects, sample_absence_types):
        days = [
            _day("2024-02-29", [WorkActivity(id="a", start_time="08:00", end_time="12:00")]),
            _day("2024-03-01", [WorkActivity(id="b", start_time="08:00", end_time="10:00")]),
        ]
        summary = summarize_month(
            {d.iso_date: d for d in days},
            sample_projects,
            sample_absence_types,
            frozenset(),
            year=2024,
            month=3,
        )
        assert summary.total_regular_hours == Decimal("2.00")

    def test_projects_sorted_by_hours(self, sample_projects, sample_absence_types):
        day = _day("2024-03-06", [
            WorkActivity(id="a", start_time="08:00", end_time="09:00", project_id="proj-1"),
            WorkActivity(id="b", start_time="09:00", end_time="12:00", project_id="proj-2"),
        ])
        summary = _summarize([day], sample_projects, sample_absence_types)
        assert [p.name for p in summary.projects] == ["Web pro klienta A", "Interní systém"]


class TestReconcile:
    """Tests for reconcile function."""

    def test_match(self):
        summary = MonthlySummary(total_regular_hours=Decimal("152"), total_absence_hours=Decimal("8"))
        result = reconcile(summary, Decimal("160"))
        assert result.status == "match"
        assert result.difference == Decimal("0")
        assert result.work_percent == Decimal("95.0")
        assert result.absence_percent == Decimal("5.0")

    def test_missing(self):
        summary = MonthlySummary(total_regular_hours=Decimal("150"))
        result = reconcile(summary, Decimal("160"))
        assert result.status == "missing"
        assert result.describe() == "Missing 10h"

    def test_overtime_counts_toward_reported(self):
        summary = MonthlySummary(total_regular_hours=Decimal("160"), total_overtime_hours=Decimal("3.5"))
        result = reconcile(summary, Decimal("160"))
        assert result.status == "excess"
        assert result.reported == Decimal("163.5")

    def test_holiday_work_not_in_reported(self):
        summary = MonthlySummary(total_regular_hours=Decimal("160"), total_holiday_work_hours=Decimal("8"))
        assert reconcile(summary, Decimal("160")).status == "match"

    @pytest.mark.parametrize("fund", [Decimal("0"), 0])
    def test_no_fund(self, fund):
        result = reconcile(MonthlySummary(total_regular_hours=Decimal("4")), fund)
        assert result.status == "no_fund"
        assert result.work_percent == Decimal("0")
