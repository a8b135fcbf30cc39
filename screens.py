"""Modal screens for the timesheet application."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Callable

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.coordinate import Coordinate
from textual.widgets import Button, DataTable, Input, Label, Select, SelectionList, Static
from textual.screen import ModalScreen
from rich.text import Text

import editor
import storage
from errors import ValidationError
from models import AbsenceActivity, AbsenceType, Activity, BreakActivity, Config, Day, Employee, Project, WorkActivity
from timeline import compute_daily_totals, is_auto_break
from utils import days_in_month, duration, is_valid_time
from widgets import format_hours


class ConfirmScreen(ModalScreen[bool]):
    """Simple confirmation dialog."""

    CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $warning;
    }

    #confirm-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
    }

    #confirm-buttons Button {
        width: 1fr;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("y", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
    ]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(self.message)
            with Horizontal(id="confirm-buttons"):
                yield Button("Yes (Y)", variant="warning", id="yes")
                yield Button("No (N)", variant="default", id="no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class PromptScreen(ModalScreen[str | None]):
    """Ask for a single value: a name or a time of day."""

    CSS = """
    PromptScreen {
        align: center middle;
    }

    #prompt-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #prompt-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    #prompt-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #prompt-buttons Button {
        width: auto;
        min-width: 12;
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, label: str, value: str = "", placeholder: str = "", time_value: bool = False):
        super().__init__()
        self.title_text = title
        self.label = label
        self.value = value
        self.placeholder = placeholder
        self.time_value = time_value

    def compose(self) -> ComposeResult:
        with Vertical(id="prompt-dialog"):
            yield Label(self.title_text, id="prompt-title")
            yield Label(self.label, classes="field-label")
            yield Input(value=self.value, placeholder=self.placeholder, id="prompt-input")
            with Horizontal(id="prompt-buttons"):
                yield Button("Save", variant="primary", id="save")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#prompt-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._save()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "save":
            self._save()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _save(self) -> None:
        value = self.query_one("#prompt-input", Input).value.strip()
        if not value:
            self.app.notify(f"{self.label} is required", severity="error")
            return
        if self.time_value and not is_valid_time(value):
            self.app.notify("Invalid time format. Use HH:MM", severity="error")
            return
        self.dismiss(value)


class AddActivityScreen(ModalScreen[dict[str, Any] | None]):
    """Start a work or absence activity at a given time."""

    CSS = """
    AddActivityScreen {
        align: center middle;
    }

    #activity-dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #activity-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    .field-row {
        width: 100%;
        height: auto;
        margin-bottom: 1;
    }

    .field-group {
        width: 1fr;
        height: auto;
        margin: 0 1 0 0;
    }

    #activity-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #activity-buttons Button {
        width: auto;
        min-width: 12;
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, start_time: str, projects: list[Project], absence_types: list[AbsenceType]):
        super().__init__()
        self.start_time = start_time
        self.projects = projects
        self.absence_types = absence_types

    def compose(self) -> ComposeResult:
        with Vertical(id="activity-dialog"):
            yield Label("New activity", id="activity-title")

            with Horizontal(classes="field-row"):
                with Vertical(classes="field-group"):
                    yield Label("Type", classes="field-label")
                    yield Select(
                        [("Work", "work"), ("Absence", "absence")],
                        value="work",
                        allow_blank=False,
                        id="activity-kind",
                    )
                with Vertical(classes="field-group"):
                    yield Label("Start (HH:MM)", classes="field-label")
                    yield Input(value=self.start_time, placeholder="07:00", id="activity-start")

            with Vertical(classes="field-row", id="project-group"):
                yield Label("Project", classes="field-label")
                if self.projects:
                    yield Select(
                        [(p.name, p.id) for p in self.projects],
                        value=self.projects[0].id,
                        allow_blank=False,
                        id="activity-project",
                    )
                else:
                    yield Label("No projects. Add one first.", id="no-projects")

            with Vertical(classes="field-row", id="absence-group"):
                yield Label("Absence type", classes="field-label")
                if self.absence_types:
                    yield Select(
                        [(a.name, a.id) for a in self.absence_types],
                        value=self.absence_types[0].id,
                        allow_blank=False,
                        id="activity-absence",
                    )
                else:
                    yield Label("No absence types. Add one first.", id="no-absences")

            with Vertical(classes="field-row"):
                yield Label("Notes", classes="field-label")
                yield Input(id="activity-notes")

            with Horizontal(id="activity-buttons"):
                yield Button("Save", variant="primary", id="save")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#absence-group").display = False
        self.query_one("#activity-start", Input).focus()

    def on_select_changed(self, event: Select.Changed) -> None:
        """Show the project or the absence picker to match the type."""
        if event.select.id == "activity-kind":
            self.query_one("#project-group").display = event.value == "work"
            self.query_one("#absence-group").display = event.value == "absence"

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "activity-notes":
            self._save()
        else:
            self.query_one("#activity-notes", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "save":
            self._save()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _save(self) -> None:
        kind = self.query_one("#activity-kind", Select).value
        start_time = self.query_one("#activity-start", Input).value.strip()
        if not is_valid_time(start_time):
            self.app.notify("Invalid time format. Use HH:MM", severity="error")
            return

        result: dict[str, Any] = {
            "kind": kind,
            "start_time": start_time,
            "notes": self.query_one("#activity-notes", Input).value.strip(),
        }
        if kind == "work":
            if not self.projects:
                self.app.notify("No projects to assign", severity="error")
                return
            result["project_id"] = self.query_one("#activity-project", Select).value
        else:
            if not self.absence_types:
                self.app.notify("No absence types to assign", severity="error")
                return
            result["absence_id"] = self.query_one("#activity-absence", Select).value
        self.dismiss(result)


class DayTimelineScreen(ModalScreen[Day | None]):
    """Edit one day's timeline. Dismisses with the edited day."""

    CSS = """
    DayTimelineScreen {
        align: center middle;
    }

    #timeline-dialog {
        width: 90;
        height: 26;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #timeline-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #timeline-table {
        height: 1fr;
    }

    #timeline-totals {
        height: auto;
        margin-top: 1;
    }

    #timeline-footer {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #timeline-footer Button {
        width: auto;
        min-width: 10;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("a", "add_activity", "Add"),
        Binding("d", "delete_activity", "Delete"),
        Binding("e", "end_day", "End day"),
    ]

    def __init__(
        self,
        day: Day,
        projects: list[Project],
        absence_types: list[AbsenceType],
        config: Config | None = None,
    ):
        super().__init__()
        self.day = day
        self.projects = projects
        self.absence_types = absence_types
        self.config = config or Config()

    def compose(self) -> ComposeResult:
        with Vertical(id="timeline-dialog"):
            yield Label(self.day.date.strftime("%A %d %B %Y"), id="timeline-title")
            yield DataTable(id="timeline-table")
            yield Static(id="timeline-totals")
            with Horizontal(id="timeline-footer"):
                yield Button("Add [a]", id="btn-add")
                yield Button("Delete [d]", id="btn-delete")
                yield Button("End day [e]", id="btn-end")
                yield Button("Close [Esc]", id="btn-close")

    def on_mount(self) -> None:
        table = self.query_one("#timeline-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Start", width=6)
        table.add_column("End", width=6)
        table.add_column("Type", width=8)
        table.add_column("Project / absence", width=28)
        table.add_column("Time", width=6)
        table.add_column("Notes", width=22)
        self._refresh_table()
        table.focus()

    def describe_activity(self, activity: Activity) -> tuple[str, str]:
        """Type label and project or absence name for a table row."""
        if isinstance(activity, WorkActivity):
            project = next((p for p in self.projects if p.id == activity.project_id), None)
            return "Work", project.name if project else "No project"
        if isinstance(activity, AbsenceActivity):
            absence = next((a for a in self.absence_types if a.id == activity.absence_id), None)
            return "Absence", absence.name if absence else "Absence"
        if isinstance(activity, BreakActivity) and activity.is_auto:
            return "Break", "Lunch (auto)"
        return "Break", ""

    def _refresh_table(self) -> None:
        table = self.query_one("#timeline-table", DataTable)
        table.clear()

        for activity in self.day.activities:
            kind, name = self.describe_activity(activity)
            style = "dim" if isinstance(activity, BreakActivity) else ""
            table.add_row(
                Text(activity.start_time, style=style),
                Text(activity.end_time or "…", style=style),
                Text(kind, style=style),
                Text(name[:28], style=style),
                Text(format_hours(duration(activity.start_time, activity.end_time)) if activity.end_time else "", style=style),
                Text(activity.notes[:22], style=style),
                key=activity.id,
            )

        totals = compute_daily_totals(self.day.activities, self.config.standard_day_minutes)
        text = Text()
        if totals.is_open:
            text.append("Day in progress: end the day to see totals", style="italic")
        else:
            text.append(f"Work {format_hours(totals.total_work_hours)}")
            if totals.overtime_hours:
                text.append(f"  (overtime {format_hours(totals.overtime_hours)})", style="yellow")
            text.append(f"   Breaks {totals.break_minutes}m")
            if totals.absence_minutes:
                text.append(f"   Absence {totals.absence_minutes}m")
        self.query_one("#timeline-totals", Static).update(text)

    def _apply(self, change: Callable[[], Day]) -> None:
        try:
            self.day = change()
        except ValidationError as exc:
            self.app.notify(exc.user_message, severity="error")
            return
        self._refresh_table()

    def _get_selected_activity_id(self) -> str | None:
        table = self.query_one("#timeline-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        return str(row_key.value) if row_key else None

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "btn-add":
            self.action_add_activity()
        elif button_id == "btn-delete":
            self.action_delete_activity()
        elif button_id == "btn-end":
            self.action_end_day()
        elif button_id == "btn-close":
            self.action_close()

    def action_add_activity(self) -> None:
        start = editor.next_start_time(self.day, self.config.default_start_time)
        projects = editor.selectable_projects(self.projects)
        self.app.push_screen(AddActivityScreen(start, projects, self.absence_types), self._on_activity_added)

    def _on_activity_added(self, result: dict[str, Any] | None) -> None:
        if result:
            self._apply(lambda: editor.add_activity(self.day, config=self.config, **result))

    def action_delete_activity(self) -> None:
        activity_id = self._get_selected_activity_id()
        if not activity_id:
            self.app.notify("No activity selected", severity="warning")
            return
        activity = next(a for a in self.day.activities if a.id == activity_id)
        if is_auto_break(activity):
            self.app.notify("Automatic lunch breaks cannot be deleted", severity="warning")
            return
        self.app.push_screen(
            ConfirmScreen(f"Delete the activity starting at {activity.start_time}?"),
            lambda confirmed: self._on_delete_confirmed(confirmed, activity_id),
        )

    def _on_delete_confirmed(self, confirmed: bool | None, activity_id: str) -> None:
        if confirmed:
            self._apply(lambda: editor.delete_activity(self.day, activity_id, self.config))

    def action_end_day(self) -> None:
        if not self.day.activities:
            self.app.notify("Nothing to end", severity="warning")
            return
        self.app.push_screen(
            PromptScreen("End day", "End time (HH:MM)", self.config.default_end_time, "15:30", time_value=True),
            self._on_end_time,
        )

    def _on_end_time(self, end_time: str | None) -> None:
        if end_time:
            self._apply(lambda: editor.end_day(self.day, end_time, self.config))

    def action_close(self) -> None:
        self.dismiss(self.day)


class CopyDayScreen(ModalScreen[list[date] | None]):
    """Pick the days of the month a day's timeline is copied to."""

    CSS = """
    CopyDayScreen {
        align: center middle;
    }

    #copy-dialog {
        width: 50;
        height: 30;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #copy-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #copy-days {
        height: 1fr;
    }

    #copy-footer {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #copy-footer Button {
        width: auto;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("w", "select_workdays", "Workdays"),
        Binding("c", "clear_selection", "Clear"),
    ]

    def __init__(self, source: Day, holidays: frozenset[str]):
        super().__init__()
        self.source = source
        self.holidays = holidays

    def compose(self) -> ComposeResult:
        year, month = self.source.date.year, self.source.date.month
        selections = [
            (d.strftime("%a %d %b"), d, False)
            for d in days_in_month(year, month)
            if d != self.source.date
        ]
        with Vertical(id="copy-dialog"):
            yield Label(f"Copy {self.source.date.strftime('%a %d %b')} to…", id="copy-title")
            yield SelectionList[date](*selections, id="copy-days")
            with Horizontal(id="copy-footer"):
                yield Button("Copy", variant="primary", id="btn-copy")
                yield Button("Workdays [w]", id="btn-workdays")
                yield Button("Cancel", id="btn-cancel")

    def on_mount(self) -> None:
        self.query_one("#copy-days", SelectionList).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "btn-copy":
            selected = sorted(self.query_one("#copy-days", SelectionList).selected)
            if not selected:
                self.app.notify("Select at least one day", severity="warning")
                return
            self.dismiss(selected)
        elif button_id == "btn-workdays":
            self.action_select_workdays()
        elif button_id == "btn-cancel":
            self.action_cancel()

    def action_select_workdays(self) -> None:
        selection_list = self.query_one("#copy-days", SelectionList)
        year, month = self.source.date.year, self.source.date.month
        for d in editor.select_workdays(year, month, self.holidays, exclude=self.source.date):
            selection_list.select(d)

    def action_clear_selection(self) -> None:
        self.query_one("#copy-days", SelectionList).deselect_all()

    def action_cancel(self) -> None:
        self.dismiss(None)


class ManagementScreen(ModalScreen[None]):
    """List with new/rename/archive/delete actions; subclasses bind it to a table."""

    CSS = """
    ManagementScreen {
        align: center middle;
    }

    #manage-dialog {
        width: 80;
        height: 24;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #manage-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #manage-table {
        height: 1fr;
    }

    #manage-footer {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #manage-footer Button {
        width: auto;
        min-width: 10;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("n", "new_item", "New"),
        Binding("e", "rename_item", "Rename"),
        Binding("a", "toggle_archive", "Archive"),
        Binding("d", "delete_item", "Delete"),
    ]

    title_text = ""
    item_name = "item"
    delete_warning = ""
    supports_archive = True

    def compose(self) -> ComposeResult:
        with Vertical(id="manage-dialog"):
            yield Label(self.title_text, id="manage-title")
            yield DataTable(id="manage-table")
            with Horizontal(id="manage-footer"):
                yield Button("New [n]", id="btn-new")
                yield Button("Rename [e]", id="btn-rename")
                if self.supports_archive:
                    yield Button("Archive [a]", id="btn-archive")
                yield Button("Delete [d]", id="btn-delete")
                yield Button("Close [Esc]", id="btn-close")

    def on_mount(self) -> None:
        table = self.query_one("#manage-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Name", width=44)
        table.add_column("Status", width=10)
        self._refresh_table()
        table.focus()

    def load_items(self) -> list[tuple[str, Text | str, str]]:
        """(id, name, status) rows."""
        raise NotImplementedError

    def create_item(self, name: str) -> None:
        raise NotImplementedError

    def rename_item(self, item_id: str, name: str) -> None:
        raise NotImplementedError

    def toggle_archive(self, item_id: str) -> bool:
        """Flip the archived flag; returns the new state."""
        raise NotImplementedError

    def delete_item(self, item_id: str) -> None:
        raise NotImplementedError

    def _refresh_table(self) -> None:
        table = self.query_one("#manage-table", DataTable)
        table.clear()
        for item_id, name, status in self.load_items():
            table.add_row(name, status, key=item_id)

    def _get_selected_item(self) -> tuple[str, str] | None:
        """(id, plain name) of the highlighted row."""
        table = self.query_one("#manage-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        if not row_key:
            return None
        name = table.get_cell_at(Coordinate(table.cursor_row, 0))
        return str(row_key.value), str(name.plain if isinstance(name, Text) else name)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "btn-new":
            self.action_new_item()
        elif button_id == "btn-rename":
            self.action_rename_item()
        elif button_id == "btn-archive":
            self.action_toggle_archive()
        elif button_id == "btn-delete":
            self.action_delete_item()
        elif button_id == "btn-close":
            self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_new_item(self) -> None:
        self.app.push_screen(PromptScreen(f"New {self.item_name}", "Name"), self._on_created)

    def _on_created(self, name: str | None) -> None:
        if name:
            self.create_item(name)
            self.app.notify(f"Added {self.item_name} {name}")
            self._refresh_table()

    def action_rename_item(self) -> None:
        selected = self._get_selected_item()
        if not selected:
            self.app.notify(f"No {self.item_name} selected", severity="warning")
            return
        item_id, name = selected
        self.app.push_screen(
            PromptScreen(f"Rename {self.item_name}", "Name", name),
            lambda new_name: self._on_renamed(item_id, new_name),
        )

    def _on_renamed(self, item_id: str, name: str | None) -> None:
        if name:
            self.rename_item(item_id, name)
            self._refresh_table()

    def action_toggle_archive(self) -> None:
        if not self.supports_archive:
            return
        selected = self._get_selected_item()
        if not selected:
            self.app.notify(f"No {self.item_name} selected", severity="warning")
            return
        item_id, name = selected
        archived = self.toggle_archive(item_id)
        self.app.notify(f"{name} {'archived' if archived else 'unarchived'}")
        self._refresh_table()

    def action_delete_item(self) -> None:
        selected = self._get_selected_item()
        if not selected:
            self.app.notify(f"No {self.item_name} selected", severity="warning")
            return
        item_id, name = selected
        self.app.push_screen(
            ConfirmScreen(f"Delete {name}? {self.delete_warning}".strip()),
            lambda confirmed: self._on_delete_confirmed(confirmed, item_id, name),
        )

    def _on_delete_confirmed(self, confirmed: bool | None, item_id: str, name: str) -> None:
        if confirmed:
            self.delete_item(item_id)
            self.app.notify(f"Deleted {name}")
            self._refresh_table()


class ProjectManagementScreen(ManagementScreen):
    title_text = "Projects"
    item_name = "project"
    delete_warning = "Its work will be left without a project."

    def load_items(self) -> list[tuple[str, Text | str, str]]:
        rows = []
        for project in storage.get_all_projects():
            name = Text("■ ", style=project.color)
            name.append(project.name)
            rows.append((project.id, name, "Archived" if project.archived else "Active"))
        return rows

    def _get_project(self, project_id: str) -> Project:
        return next(p for p in storage.get_all_projects() if p.id == project_id)

    def _get_selected_item(self) -> tuple[str, str] | None:
        selected = super()._get_selected_item()
        if selected is None:
            return None
        project_id, _ = selected
        return project_id, self._get_project(project_id).name

    def create_item(self, name: str) -> None:
        storage.add_project(name)

    def rename_item(self, item_id: str, name: str) -> None:
        storage.save_project(replace(self._get_project(item_id), name=name))

    def toggle_archive(self, item_id: str) -> bool:
        archived = not self._get_project(item_id).archived
        storage.archive_project(item_id, archived)
        return archived

    def delete_item(self, item_id: str) -> None:
        storage.delete_project(item_id)


class AbsenceManagementScreen(ManagementScreen):
    title_text = "Absence types"
    item_name = "absence type"
    delete_warning = "It will be removed from all existing records."
    supports_archive = False

    def load_items(self) -> list[tuple[str, Text | str, str]]:
        return [
            (a.id, a.name, "Holidays" if a.is_holiday_marker else "")
            for a in storage.get_all_absence_types()
        ]

    def create_item(self, name: str) -> None:
        storage.add_absence_type(name)

    def rename_item(self, item_id: str, name: str) -> None:
        storage.save_absence_type(AbsenceType(id=item_id, name=name))

    def delete_item(self, item_id: str) -> None:
        storage.delete_absence_type(item_id)


class EmployeeManagementScreen(ManagementScreen):
    title_text = "Employees"
    item_name = "employee"
    delete_warning = "All of their data will be removed permanently."

    def load_items(self) -> list[tuple[str, Text | str, str]]:
        return [
            (e.id, e.name, "Archived" if e.archived else "Active")
            for e in storage.get_all_employees(include_archived=True)
        ]

    def create_item(self, name: str) -> None:
        storage.add_employee(name)

    def rename_item(self, item_id: str, name: str) -> None:
        employee = storage.get_employee(item_id)
        if employee:
            storage.save_employee(replace(employee, name=name))

    def toggle_archive(self, item_id: str) -> bool:
        employee = storage.get_employee(item_id)
        archived = not (employee and employee.archived)
        storage.archive_employee(item_id, archived)
        return archived

    def delete_item(self, item_id: str) -> None:
        storage.delete_employee(item_id)


class EmployeeSelectScreen(ModalScreen[Employee | None]):
    """Modal screen for switching the active employee with search."""

    CSS = """
    EmployeeSelectScreen {
        align: center middle;
    }

    #select-dialog {
        width: 60;
        height: 20;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #select-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #select-search {
        width: 100%;
        margin-bottom: 1;
    }

    #select-table {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, current_id: str | None = None):
        super().__init__()
        self.current_id = current_id

    def compose(self) -> ComposeResult:
        with Vertical(id="select-dialog"):
            yield Label("Select employee", id="select-title")
            yield Input(placeholder="Search...", id="select-search")
            yield DataTable(id="select-table")

    def on_mount(self) -> None:
        table = self.query_one("#select-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Employee", width=50)
        self._refresh_table()
        self.query_one("#select-search", Input).focus()

    def _refresh_table(self, search: str = "") -> None:
        table = self.query_one("#select-table", DataTable)
        table.clear()
        query = search.lower()
        for employee in storage.get_all_employees():
            if query and query not in employee.name.lower():
                continue
            style = "bold" if employee.id == self.current_id else ""
            table.add_row(Text(employee.name, style=style), key=employee.id)

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter employees as user types."""
        if event.input.id == "select-search":
            self._refresh_table(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "select-search":
            self.query_one("#select-table", DataTable).focus()

    def on_key(self, event) -> None:
        # Move to table on down arrow from search input
        if event.key == "down":
            search_input = self.query_one("#select-search", Input)
            if search_input.has_focus:
                self.query_one("#select-table", DataTable).focus()
                event.prevent_default()
                event.stop()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.row_key:
            self.dismiss(storage.get_employee(str(event.row_key.value)))

    def action_cancel(self) -> None:
        self.dismiss(None)
