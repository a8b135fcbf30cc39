#!/usr/bin/env python3
"""Timesheet TUI application."""

from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer, DataTable
from textual.coordinate import Coordinate
from rich.text import Text

import editor
import storage
from fund import work_time_fund
from models import AbsenceActivity, AbsenceType, Day, Employee, Project, WorkActivity
from public_holidays import get_public_holidays
from screens import (
    ConfirmScreen,
    CopyDayScreen,
    DayTimelineScreen,
    AbsenceManagementScreen,
    EmployeeManagementScreen,
    EmployeeSelectScreen,
    ProjectManagementScreen,
)
from summary import reconcile, summarize_month
from timeline import compute_daily_totals
from utils import days_in_month, shift_month
from widgets import MonthHeader, MonthlySummaryWidget, format_hours

logger = logging.getLogger(__name__)


class TimesheetDataTable(DataTable):
    """DataTable that hands left/right to the app for month navigation."""

    def on_key(self, event) -> None:
        if event.key == "left" and hasattr(self.app, "action_prev_month"):
            self.app.action_prev_month()  # type: ignore[attr-defined]
            self.scroll_x = 0
            event.prevent_default()
            event.stop()
        elif event.key == "right" and hasattr(self.app, "action_next_month"):
            self.app.action_next_month()  # type: ignore[attr-defined]
            self.scroll_x = 0
            event.prevent_default()
            event.stop()


class TimesheetApp(App):
    """Main timesheet application."""

    CSS = """
    Screen {
        background: $surface;
    }

    #month-header {
        height: auto;
        background: $primary;
        color: $text;
        padding: 0 1;
        text-style: bold;
    }

    #month-table {
        height: 1fr;
        margin: 1 2;
    }

    #monthly-summary {
        height: auto;
        max-height: 50%;
        padding: 1 2;
        color: $text;
    }

    DataTable {
        height: 100%;
    }

    DataTable > .datatable--cursor {
        background: $secondary;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("left", "prev_month", "◄", show=False),
        Binding("right", "next_month", "►", show=False),
        Binding("t", "goto_today", "Today"),
        Binding("e", "edit_day", "Edit"),
        Binding("c", "copy_day", "Copy"),
        Binding("x", "clear_day", "Clear"),
        Binding("h", "populate_holidays", "Holidays"),
        Binding("s", "switch_employee", "Employee"),
        Binding("P", "manage_projects", "Projects"),
        Binding("A", "manage_absences", "Absences"),
        Binding("E", "manage_employees", "Employees"),
    ]

    def __init__(self):
        super().__init__()
        storage.init_db()
        storage.seed_defaults()

        today = date.today()
        self.current_year = today.year
        self.current_month = today.month
        self.employee_id = storage.get_active_employee_id()
        self.days: dict[str, Day] = {}
        self.projects: list[Project] = []
        self.absence_types: list[AbsenceType] = []

    @property
    def holidays(self) -> frozenset[str]:
        return get_public_holidays(self.current_year).strings

    def compose(self) -> ComposeResult:
        yield MonthHeader(self.current_year, self.current_month, id="month-header")
        yield Container(TimesheetDataTable(id="month-table"), id="month-table-container")
        yield MonthlySummaryWidget(id="monthly-summary")
        yield Footer()

    def on_mount(self):
        table = self.query_one("#month-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Day", width=4)
        table.add_column("Date", width=8)
        table.add_column("Timeline", width=44)
        table.add_column("Absence", width=18)
        table.add_column("Work", width=7)
        table.add_column("OT", width=6)
        self._refresh_display()
        self._select_date(date.today())
        table.focus()

    def _load_month_data(self):
        """Load the active employee's month, projects and absence types."""
        self.projects = storage.get_all_projects()
        self.absence_types = storage.get_all_absence_types()
        if self.employee_id is None:
            self.days = {}
            return
        self.days = storage.get_month_days(self.employee_id, self.current_year, self.current_month)

    def _get_or_create_day(self, d: date) -> Day:
        return self.days.get(d.isoformat()) or Day(date=d)

    def _absence_name(self, absence_id: str | None) -> str:
        if absence_id is None:
            return ""
        absence = next((a for a in self.absence_types if a.id == absence_id), None)
        return absence.name if absence else "Absence"

    def _describe_timeline(self, day: Day) -> Text:
        """Compact "07:00-11:30 Project" summary of a day's work."""
        projects = {p.id: p for p in self.projects}
        text = Text()
        for activity in day.activities:
            if not isinstance(activity, WorkActivity):
                continue
            if text:
                text.append("  ")
            project = projects.get(activity.project_id or "")
            text.append(f"{activity.start_time}-{activity.end_time or '…'} ")
            text.append(project.name[:12] if project else "?", style=project.color if project else "")
        return text

    def _refresh_display(self):
        self._load_month_data()
        employee = storage.get_employee(self.employee_id) if self.employee_id else None
        config = storage.get_config()
        holidays = self.holidays

        header = self.query_one("#month-header", MonthHeader)
        header.year = self.current_year
        header.month = self.current_month
        header.update_display(employee.name if employee else "")

        table = self.query_one("#month-table", DataTable)
        table.clear()
        for d in days_in_month(self.current_year, self.current_month):
            day = self._get_or_create_day(d)
            totals = compute_daily_totals(day.activities, config.standard_day_minutes)
            is_holiday = d.isoformat() in holidays

            if d.weekday() >= 5:
                style = "dim"
            elif is_holiday:
                style = "italic magenta"
            else:
                style = ""

            absence_names = [self._absence_name(day.absence_id)] if day.absence_id else []
            absence_names += [
                self._absence_name(a.absence_id)
                for a in day.activities
                if isinstance(a, AbsenceActivity) and a.absence_id and a.absence_id != day.absence_id
            ]
            if totals.is_open:
                work_str, ot_str = "…", ""
            else:
                work_str = format_hours(totals.total_work_hours) if totals.work_minutes else "-"
                ot_str = format_hours(totals.overtime_hours) if totals.overtime_hours else ""

            table.add_row(
                Text(d.strftime("%a"), style=style),
                Text(d.strftime("%b %d"), style=style),
                self._describe_timeline(day),
                Text(", ".join(absence_names)[:18], style=style),
                Text(work_str, style=style),
                Text(ot_str, style="yellow" if ot_str else style),
                key=d.isoformat(),
            )

        summary = summarize_month(
            self.days,
            self.projects,
            self.absence_types,
            holidays,
            storage.get_holiday_absence_id(),
            self.current_year,
            self.current_month,
            config.standard_day_minutes,
        )
        fund = work_time_fund(self.current_year, self.current_month, holidays, config.standard_day_hours)
        self.query_one("#monthly-summary", MonthlySummaryWidget).update_display(summary, reconcile(summary, fund))

    def _select_date(self, target: date):
        """Move the cursor to a date if it is in the current month."""
        if (target.year, target.month) != (self.current_year, self.current_month):
            return
        self.query_one("#month-table", DataTable).move_cursor(row=target.day - 1)

    def _get_selected_date(self) -> date | None:
        """Get the currently selected date from the table."""
        table = self.query_one("#month-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        if row_key:
            return date.fromisoformat(str(row_key.value))
        return None

    def _require_employee(self) -> bool:
        if self.employee_id is None:
            self.notify("Select or create an employee first", severity="warning")
            return False
        return True

    def _navigate_to_month(self, year: int, month: int):
        self.current_year = year
        self.current_month = month
        self._refresh_display()
        self.query_one("#month-table", DataTable).move_cursor(row=0)

    def action_prev_month(self):
        self._navigate_to_month(*shift_month(self.current_year, self.current_month, -1))

    def action_next_month(self):
        self._navigate_to_month(*shift_month(self.current_year, self.current_month, 1))

    def action_goto_today(self):
        today = date.today()
        self._navigate_to_month(today.year, today.month)
        self._select_date(today)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Enter on a day opens its timeline."""
        if event.control.id == "month-table":
            self.action_edit_day()

    def action_edit_day(self):
        """Open the timeline editor for the selected day."""
        selected_date = self._get_selected_date()
        if not selected_date or not self._require_employee():
            return
        self.push_screen(
            DayTimelineScreen(
                self._get_or_create_day(selected_date),
                self.projects,
                self.absence_types,
                storage.get_config(),
            ),
            self._on_day_edited,
        )

    def _on_day_edited(self, result: Day | None) -> None:
        if result is None or self.employee_id is None:
            return
        # A past day left running is closed at the usual end of the day
        if result.date < date.today():
            result = editor.finalize(result, config=storage.get_config())
        if result != self._get_or_create_day(result.date):
            storage.save_day(self.employee_id, result)
        self._refresh_display()
        self._select_date(result.date)

    def action_copy_day(self) -> None:
        selected_date = self._get_selected_date()
        if not selected_date or not self._require_employee():
            return
        source = self._get_or_create_day(selected_date)
        if not source.activities:
            self.notify("Nothing to copy")
            return
        self.push_screen(
            CopyDayScreen(source, self.holidays),
            lambda targets: self._on_copy_targets(source, targets),
        )

    def _on_copy_targets(self, source: Day, targets: list[date] | None) -> None:
        if not targets or self.employee_id is None:
            return
        copies = editor.copy_day(source, targets)
        for copy in copies:
            storage.save_day(self.employee_id, copy)
        self._refresh_display()
        self._select_date(source.date)
        self.notify(f"Copied {source.date.strftime('%b %d')} to {len(copies)} days")

    def action_clear_day(self) -> None:
        selected_date = self._get_selected_date()
        if not selected_date or not self._require_employee():
            return
        day = self._get_or_create_day(selected_date)
        if day.is_empty:
            self.notify("Nothing to clear")
            return

        def do_clear(confirmed: bool | None) -> None:
            if not confirmed or self.employee_id is None:
                return
            storage.clear_day(self.employee_id, selected_date)
            self._refresh_display()
            self._select_date(selected_date)
            self.notify(f"Cleared {selected_date.strftime('%b %d')}")

        self.push_screen(ConfirmScreen(f"Clear {selected_date.strftime('%b %d')}?"), do_clear)

    def action_populate_holidays(self):
        """Mark this month's public holidays on days with nothing entered."""
        if self.employee_id is None:
            self.notify("Select or create an employee first", severity="warning")
            return
        count = storage.populate_holidays(self.employee_id, self.current_year, self.current_month)
        self._refresh_display()
        self.notify(f"Marked {count} holidays" if count else "No new holidays to add")

    def action_switch_employee(self):
        self.push_screen(EmployeeSelectScreen(self.employee_id), self._on_employee_selected)

    def _on_employee_selected(self, employee: Employee | None) -> None:
        if employee is None:
            return
        self.employee_id = employee.id
        storage.set_active_employee_id(employee.id)
        self._refresh_display()

    def action_manage_projects(self):
        self.push_screen(ProjectManagementScreen(), lambda _: self._refresh_display())

    def action_manage_absences(self):
        self.push_screen(AbsenceManagementScreen(), lambda _: self._refresh_display())

    def action_manage_employees(self):
        self.push_screen(EmployeeManagementScreen(), lambda _: self._on_employees_changed())

    def _on_employees_changed(self) -> None:
        """The active employee may have been archived or deleted."""
        if self.employee_id not in {e.id for e in storage.get_all_employees()}:
            self.employee_id = storage.get_active_employee_id()
        self._refresh_display()


def _configure_logging() -> None:
    log_path = Path(os.environ.get("TIMESHEET_LOG") or storage.DB_PATH.parent / "timesheet.log")
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_path,
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main():
    import sys
    if len(sys.argv) > 1 and sys.argv[1] == "--db-info":
        from datetime import datetime
        db_path = storage.DB_PATH
        print(f"Database: {db_path}")
        if db_path.exists():
            mtime = datetime.fromtimestamp(db_path.stat().st_mtime)
            size = db_path.stat().st_size
            print(f"Modified: {mtime.strftime('%Y-%m-%d %H:%M:%S')}")
            print(f"Size: {size:,} bytes")
        else:
            print("Status: Does not exist (will be created on first run)")
        return

    _configure_logging()
    logger.info("Starting timesheet with database %s", storage.DB_PATH)
    app = TimesheetApp()
    app.run()


if __name__ == "__main__":
    main()
