from __future__ import annotations

import json
import logging
import os
import random
import sqlite3
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path

from models import AbsenceActivity, AbsenceType, Config, Day, Employee, Project, WorkActivity
from public_holidays import holidays_in_month
from records import day_from_record, day_to_record, new_id
from utils import month_bounds

logger = logging.getLogger(__name__)


def _get_db_path() -> Path:
    """Get database path from environment variable or default location."""
    if env_path := os.environ.get("TIMESHEET_DB"):
        return Path(env_path)
    return Path(__file__).parent / "data" / "timesheet.db"


DB_PATH = _get_db_path()

DEFAULT_PROJECTS = [
    Project("proj-1", "Interní systém", "#0088FE"),
    Project("proj-2", "Web pro klienta A", "#00C49F"),
    Project("proj-3", "Mobilní aplikace", "#FFBB28"),
]

DEFAULT_ABSENCE_TYPES = [
    AbsenceType("absence-1", "Dovolená"),
    AbsenceType("absence-2", "Nemoc"),
    AbsenceType("absence-3", "Lékař"),
    AbsenceType("absence-4", "Státní svátek"),
    AbsenceType("absence-5", "Náhradní volno"),
    AbsenceType("absence-6", "Neplacené volno"),
    AbsenceType("absence-7", "OČR (Ošetřování člena rodiny)"),
    AbsenceType("absence-9", "60% (překážka v práci)"),
    AbsenceType("absence-8", "Jiné"),
]

DEFAULT_EMPLOYEES = [Employee("emp-1", "Jan Novák")]


def get_connection() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Create tables if they don't exist."""
    conn = get_connection()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS employees (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            archived INTEGER DEFAULT 0,
            position INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            color TEXT NOT NULL,
            archived INTEGER DEFAULT 0,
            position INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS absence_types (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            position INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS days (
            employee_id TEXT NOT NULL,
            date TEXT NOT NULL,
            record TEXT NOT NULL,
            PRIMARY KEY (employee_id, date)
        );

        CREATE TABLE IF NOT EXISTS config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_days_date ON days(date);
    """)
    conn.commit()
    conn.close()


def seed_defaults() -> bool:
    """Fill an empty database with the default projects, absence types and employee.

    Returns True if anything was inserted.
    """
    conn = get_connection()
    row = conn.execute(
        "SELECT (SELECT COUNT(*) FROM employees) + (SELECT COUNT(*) FROM projects)"
        " + (SELECT COUNT(*) FROM absence_types) AS count"
    ).fetchone()
    conn.close()
    if row["count"]:
        return False

    for project in DEFAULT_PROJECTS:
        save_project(project)
    for absence in DEFAULT_ABSENCE_TYPES:
        save_absence_type(absence)
    for employee in DEFAULT_EMPLOYEES:
        save_employee(employee)
    logger.info("Seeded default projects, absence types and employees")
    return True


def _next_position(conn: sqlite3.Connection, table: str) -> int:
    row = conn.execute(f"SELECT COALESCE(MAX(position), -1) + 1 AS next FROM {table}").fetchone()
    return row["next"]


# --- Employee Functions ---


def _row_to_employee(row: sqlite3.Row) -> Employee:
    return Employee(id=row["id"], name=row["name"], archived=bool(row["archived"]))


def save_employee(employee: Employee) -> None:
    """Insert or update an employee, keeping its place in the list."""
    conn = get_connection()
    existing = conn.execute("SELECT position FROM employees WHERE id = ?", (employee.id,)).fetchone()
    position = existing["position"] if existing else _next_position(conn, "employees")
    conn.execute(
        "INSERT OR REPLACE INTO employees (id, name, archived, position) VALUES (?, ?, ?, ?)",
        (employee.id, employee.name, int(employee.archived), position),
    )
    conn.commit()
    conn.close()


def add_employee(name: str) -> Employee:
    employee = Employee(id=new_id("emp"), name=name)
    save_employee(employee)
    return employee


def get_employee(employee_id: str) -> Employee | None:
    conn = get_connection()
    row = conn.execute("SELECT * FROM employees WHERE id = ?", (employee_id,)).fetchone()
    conn.close()
    return _row_to_employee(row) if row else None


def get_all_employees(include_archived: bool = False) -> list[Employee]:
    """Get all employees, optionally including archived ones."""
    conn = get_connection()
    if include_archived:
        rows = conn.execute("SELECT * FROM employees ORDER BY position").fetchall()
    else:
        rows = conn.execute("SELECT * FROM employees WHERE archived = 0 ORDER BY position").fetchall()
    conn.close()
    return [_row_to_employee(row) for row in rows]


def archive_employee(employee_id: str, archived: bool = True) -> None:
    conn = get_connection()
    conn.execute("UPDATE employees SET archived = ? WHERE id = ?", (int(archived), employee_id))
    conn.commit()
    conn.close()


def delete_employee(employee_id: str) -> None:
    """Delete an employee together with all of their days."""
    conn = get_connection()
    conn.execute("DELETE FROM days WHERE employee_id = ?", (employee_id,))
    conn.execute("DELETE FROM employees WHERE id = ?", (employee_id,))
    conn.commit()
    conn.close()
    logger.info("Deleted employee %s and their days", employee_id)


# --- Project Functions ---


def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(id=row["id"], name=row["name"], color=row["color"], archived=bool(row["archived"]))


def save_project(project: Project) -> None:
    """Insert or update a project."""
    conn = get_connection()
    existing = conn.execute("SELECT position FROM projects WHERE id = ?", (project.id,)).fetchone()
    position = existing["position"] if existing else _next_position(conn, "projects")
    conn.execute(
        "INSERT OR REPLACE INTO projects (id, name, color, archived, position) VALUES (?, ?, ?, ?, ?)",
        (project.id, project.name, project.color, int(project.archived), position),
    )
    conn.commit()
    conn.close()


def add_project(name: str, color: str | None = None) -> Project:
    """Create a project; a random color is picked when none is given."""
    project = Project(
        id=new_id("proj"),
        name=name,
        color=color or f"#{random.randrange(0x1000000):06x}",
    )
    save_project(project)
    return project


def get_all_projects(include_archived: bool = True) -> list[Project]:
    """Get projects. Archived ones are included by default since old days still reference them."""
    conn = get_connection()
    if include_archived:
        rows = conn.execute("SELECT * FROM projects ORDER BY position").fetchall()
    else:
        rows = conn.execute("SELECT * FROM projects WHERE archived = 0 ORDER BY position").fetchall()
    conn.close()
    return [_row_to_project(row) for row in rows]


def archive_project(project_id: str, archived: bool = True) -> None:
    conn = get_connection()
    conn.execute("UPDATE projects SET archived = ? WHERE id = ?", (int(archived), project_id))
    conn.commit()
    conn.close()


def delete_project(project_id: str) -> int:
    """Delete a project and unassign it from every stored work activity.

    Returns the number of days that were updated.
    """
    conn = get_connection()
    conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
    conn.commit()
    conn.close()

    def unassign(day: Day) -> Day:
        return replace(day, activities=[
            replace(a, project_id=None)
            if isinstance(a, WorkActivity) and a.project_id == project_id else a
            for a in day.activities
        ])

    count = _rewrite_days(unassign)
    logger.info("Deleted project %s, updated %d days", project_id, count)
    return count


# --- Absence Type Functions ---


def _row_to_absence_type(row: sqlite3.Row) -> AbsenceType:
    return AbsenceType(id=row["id"], name=row["name"])


def save_absence_type(absence: AbsenceType) -> None:
    conn = get_connection()
    existing = conn.execute("SELECT position FROM absence_types WHERE id = ?", (absence.id,)).fetchone()
    position = existing["position"] if existing else _next_position(conn, "absence_types")
    conn.execute(
        "INSERT OR REPLACE INTO absence_types (id, name, position) VALUES (?, ?, ?)",
        (absence.id, absence.name, position),
    )
    conn.commit()
    conn.close()


def add_absence_type(name: str) -> AbsenceType:
    absence = AbsenceType(id=new_id("absence"), name=name)
    save_absence_type(absence)
    return absence


def get_all_absence_types() -> list[AbsenceType]:
    conn = get_connection()
    rows = conn.execute("SELECT * FROM absence_types ORDER BY position").fetchall()
    conn.close()
    return [_row_to_absence_type(row) for row in rows]


def get_holiday_absence_id() -> str | None:
    """Id of the absence type used to mark public holidays, if there is one."""
    for absence in get_all_absence_types():
        if absence.is_holiday_marker:
            return absence.id
    return None


def delete_absence_type(absence_id: str) -> int:
    """Delete an absence type and remove it from every stored day.

    Returns the number of days that were updated.
    """
    conn = get_connection()
    conn.execute("DELETE FROM absence_types WHERE id = ?", (absence_id,))
    conn.commit()
    conn.close()

    def unassign(day: Day) -> Day:
        return replace(
            day,
            absence_id=None if day.absence_id == absence_id else day.absence_id,
            activities=[
                replace(a, absence_id=None)
                if isinstance(a, AbsenceActivity) and a.absence_id == absence_id else a
                for a in day.activities
            ],
        )

    count = _rewrite_days(unassign)
    logger.info("Deleted absence type %s, updated %d days", absence_id, count)
    return count


# --- Day Functions ---


def _row_to_day(row: sqlite3.Row, config: Config) -> Day:
    return day_from_record(row["date"], json.loads(row["record"]), config=config)


def _rewrite_days(change) -> int:
    """Apply change to every stored day, saving the ones that differ."""
    conn = get_connection()
    rows = conn.execute("SELECT * FROM days").fetchall()
    conn.close()

    config = get_config()
    count = 0
    for row in rows:
        day = _row_to_day(row, config)
        updated = change(day)
        if updated != day:
            save_day(row["employee_id"], updated)
            count += 1
    return count


def save_day(employee_id: str, day: Day) -> None:
    """Insert or replace the stored record for a day."""
    conn = get_connection()
    conn.execute(
        "INSERT OR REPLACE INTO days (employee_id, date, record) VALUES (?, ?, ?)",
        (employee_id, day.iso_date, json.dumps(day_to_record(day), ensure_ascii=False)),
    )
    conn.commit()
    conn.close()


def get_day(employee_id: str, d: date) -> Day:
    """Get a day; days never written come back empty."""
    conn = get_connection()
    row = conn.execute(
        "SELECT * FROM days WHERE employee_id = ? AND date = ?",
        (employee_id, d.isoformat()),
    ).fetchone()
    conn.close()

    if row:
        return _row_to_day(row, get_config())
    return Day(date=d)


def clear_day(employee_id: str, d: date) -> Day:
    """Remove every activity and absence from a day."""
    day = Day(date=d)
    save_day(employee_id, day)
    return day


def get_days_range(employee_id: str, start: date, end: date) -> dict[str, Day]:
    """Get stored days between two dates (inclusive), keyed by ISO date."""
    conn = get_connection()
    rows = conn.execute(
        "SELECT * FROM days WHERE employee_id = ? AND date >= ? AND date <= ? ORDER BY date",
        (employee_id, start.isoformat(), end.isoformat()),
    ).fetchall()
    conn.close()
    config = get_config()
    return {row["date"]: _row_to_day(row, config) for row in rows}


def get_month_days(employee_id: str, year: int, month: int) -> dict[str, Day]:
    """Get stored days for a calendar month."""
    start, end = month_bounds(year, month)
    return get_days_range(employee_id, start, end)


def get_all_days(employee_id: str) -> dict[str, Day]:
    conn = get_connection()
    rows = conn.execute(
        "SELECT * FROM days WHERE employee_id = ? ORDER BY date", (employee_id,)
    ).fetchall()
    conn.close()
    config = get_config()
    return {row["date"]: _row_to_day(row, config) for row in rows}


def replace_all_days(employee_id: str, days: dict[str, Day]) -> None:
    """Drop an employee's stored days and write the given ones instead."""
    conn = get_connection()
    conn.execute("DELETE FROM days WHERE employee_id = ?", (employee_id,))
    conn.executemany(
        "INSERT INTO days (employee_id, date, record) VALUES (?, ?, ?)",
        [
            (employee_id, day.iso_date, json.dumps(day_to_record(day), ensure_ascii=False))
            for day in days.values()
        ],
    )
    conn.commit()
    conn.close()


def populate_holidays(employee_id: str, year: int, month: int) -> int:
    """Mark empty public-holiday days of a month with the holiday absence.

    Returns count of days marked.
    """
    holiday_absence_id = get_holiday_absence_id()
    if holiday_absence_id is None:
        return 0

    count = 0
    for holiday_date in holidays_in_month(year, month):
        existing = get_day(employee_id, holiday_date)
        # Only mark days nobody has filled in
        if existing.is_empty:
            save_day(employee_id, Day(date=holiday_date, absence_id=holiday_absence_id))
            count += 1

    if count:
        logger.info("Marked %d holidays in %04d-%02d for %s", count, year, month, employee_id)
    return count


# --- Config Functions ---


def get_config() -> Config:
    """Load config from database."""
    conn = get_connection()
    rows = conn.execute("SELECT key, value FROM config").fetchall()
    conn.close()

    config = Config()
    for row in rows:
        if row["key"] == "standard_day_hours":
            config.standard_day_hours = Decimal(row["value"])
        elif row["key"] == "lunch_threshold_minutes":
            config.lunch_threshold_minutes = int(row["value"])
        elif row["key"] == "lunch_break_minutes":
            config.lunch_break_minutes = int(row["value"])
        elif row["key"] == "default_start_time":
            config.default_start_time = row["value"]
        elif row["key"] == "default_end_time":
            config.default_end_time = row["value"]

    return config


def save_config(config: Config):
    """Save config to database."""
    conn = get_connection()
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("standard_day_hours", str(config.standard_day_hours)))
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("lunch_threshold_minutes", str(config.lunch_threshold_minutes)))
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("lunch_break_minutes", str(config.lunch_break_minutes)))
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("default_start_time", config.default_start_time))
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("default_end_time", config.default_end_time))
    conn.commit()
    conn.close()


def get_active_employee_id() -> str | None:
    """The employee shown at startup: the last one selected, else the first active one."""
    conn = get_connection()
    row = conn.execute("SELECT value FROM config WHERE key = 'active_employee'").fetchone()
    conn.close()
    employees = get_all_employees()
    if row and any(e.id == row["value"] for e in employees):
        return row["value"]
    return employees[0].id if employees else None


def set_active_employee_id(employee_id: str) -> None:
    conn = get_connection()
    conn.execute("INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                 ("active_employee", employee_id))
    conn.commit()
    conn.close()
