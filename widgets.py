"""Custom widgets for the timesheet application."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from textual.widgets import Static
from rich.text import Text

from models import MonthlySummary, Reconciliation

STATUS_STYLES = {
    "match": "bold green",
    "missing": "bold red",
    "excess": "bold yellow",
    "no_fund": "dim",
}


def format_hours(hours: Decimal) -> str:
    return f"{float(hours):g}h"


class MonthHeader(Static):
    """Shows employee and month on the left and month navigation on the right."""

    def __init__(self, year: int, month: int, **kwargs):
        super().__init__(**kwargs)
        self.year = year
        self.month = month
        self.employee_name = ""
        self.left_arrow_pos = 0
        self.right_arrow_pos = 0

    def update_display(self, employee_name: str | None = None):
        if employee_name is not None:
            self.employee_name = employee_name
        month_name = date(self.year, self.month, 1).strftime("%B %Y")
        title = f"{self.employee_name or 'No employee'}: {month_name}"
        nav = "◄ prev   next ►"

        # Navigation ends at the same column as the summary block
        target_end_col = 74
        nav_start = max(len(title) + 2, target_end_col - len(nav))

        # Store positions for click detection
        self.left_arrow_pos = nav_start
        self.right_arrow_pos = nav_start + len(nav) - 1

        text = Text()
        text.append(title, style="bold")
        text.append(" " * (nav_start - len(title)))
        text.append(nav, style="bold")
        self.update(text)

    def on_click(self, event) -> None:
        """Handle clicks on the arrows for month navigation."""
        click_col = event.x
        if self.left_arrow_pos <= click_col < self.left_arrow_pos + 2:
            self.app.action_prev_month()  # type: ignore[attr-defined]
        elif self.right_arrow_pos <= click_col < self.right_arrow_pos + 2:
            self.app.action_next_month()  # type: ignore[attr-defined]


class MonthlySummaryWidget(Static):
    """Fund reconciliation plus project and absence breakdowns."""

    def update_display(self, summary: MonthlySummary, reconciliation: Reconciliation):
        text = Text()

        text.append(f"{'Fund':>24}  {format_hours(reconciliation.fund):>8}\n")
        text.append(
            f"{'Worked':>24}  {format_hours(reconciliation.worked):>8}"
            f"   ({float(reconciliation.work_percent):g}%)\n"
        )
        text.append(
            f"{'Absence':>24}  {format_hours(summary.total_absence_hours):>8}"
            f"   ({float(reconciliation.absence_percent):g}%)\n",
            style="dim" if summary.total_absence_hours == 0 else "",
        )
        text.append(
            f"{'Overtime':>24}  {format_hours(summary.total_overtime_hours):>8}\n",
            style="dim" if summary.total_overtime_hours == 0 else "",
        )
        text.append(
            f"{'Holiday work':>24}  {format_hours(summary.total_holiday_work_hours):>8}\n",
            style="dim" if summary.total_holiday_work_hours == 0 else "",
        )
        text.append(f"{'Status':>24}  ")
        text.append(reconciliation.describe(), style=STATUS_STYLES.get(reconciliation.status, ""))

        if summary.projects:
            text.append("\n\nProjects\n", style="bold")
            for project in summary.projects:
                text.append("■ ", style=project.color)
                text.append(f"{project.name[:30]:<30} {format_hours(project.hours):>8}")
                if project.overtime:
                    text.append(f"  +{format_hours(project.overtime)} overtime", style="yellow")
                text.append("\n")

        if summary.absences:
            text.append("\nAbsences\n" if summary.projects else "\n\nAbsences\n", style="bold")
            for absence in summary.absences:
                text.append(f"  {absence.name[:30]:<30} {format_hours(absence.hours):>8}\n")

        text.rstrip()
        self.update(text)
