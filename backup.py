#!/usr/bin/env python3
"""Export and import timesheet data as JSON backups.

Two document types are understood:

* ``full_backup``: every employee, project and absence type and all days.
  Importing one replaces the whole database.
* ``employee_data``: one employee and their days. Importing one adds or
  updates the employee and replaces their days.

Usage:
    python backup.py export PATH [EMPLOYEE_ID]
    python backup.py import PATH
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any

import storage
from errors import BackupFormatError, RecordFormatError
from models import AbsenceType, Config, Day, Employee, Project
from records import day_from_record, day_to_record

logger = logging.getLogger(__name__)

FULL_BACKUP = "full_backup"
EMPLOYEE_DATA = "employee_data"


def _days_to_records(days: dict[str, Day]) -> dict[str, Any]:
    return {iso_date: day_to_record(day) for iso_date, day in sorted(days.items())}


def _days_from_records(raw: Any, holiday_absence_id: str | None, config: Config) -> dict[str, Day]:
    if not isinstance(raw, dict):
        raise BackupFormatError("Work data must be an object keyed by date")
    try:
        return {
            iso_date: day_from_record(iso_date, record, holiday_absence_id=holiday_absence_id, config=config)
            for iso_date, record in raw.items()
        }
    except RecordFormatError as exc:
        raise BackupFormatError(f"Invalid day in backup: {exc.message}") from exc


def _employee_from_dict(raw: Any) -> Employee:
    if not isinstance(raw, dict) or not raw.get("id") or not raw.get("name"):
        raise BackupFormatError("Employee needs an id and a name")
    return Employee(id=str(raw["id"]), name=str(raw["name"]), archived=bool(raw.get("archived")))


def _project_from_dict(raw: Any) -> Project:
    if not isinstance(raw, dict) or not raw.get("id") or not raw.get("name"):
        raise BackupFormatError("Project needs an id and a name")
    return Project(
        id=str(raw["id"]),
        name=str(raw["name"]),
        color=raw.get("color") or "#8884d8",
        archived=bool(raw.get("archived")),
    )


def _absence_from_dict(raw: Any) -> AbsenceType:
    if not isinstance(raw, dict) or not raw.get("id") or not raw.get("name"):
        raise BackupFormatError("Absence type needs an id and a name")
    return AbsenceType(id=str(raw["id"]), name=str(raw["name"]))


def export_full_backup() -> dict[str, Any]:
    """Everything in the database as a full_backup document."""
    employees = storage.get_all_employees(include_archived=True)
    return {
        "type": FULL_BACKUP,
        "employees": [asdict(e) for e in employees],
        "projects": [asdict(p) for p in storage.get_all_projects()],
        "absences": [asdict(a) for a in storage.get_all_absence_types()],
        "allWorkData": {
            e.id: _days_to_records(storage.get_all_days(e.id)) for e in employees
        },
    }


def export_employee_backup(employee_id: str) -> dict[str, Any]:
    """One employee and their days as an employee_data document."""
    employee = storage.get_employee(employee_id)
    if employee is None:
        raise BackupFormatError(f"Unknown employee {employee_id!r}", "Selected employee was not found.")
    return {
        "type": EMPLOYEE_DATA,
        "employee": asdict(employee),
        "workData": _days_to_records(storage.get_all_days(employee_id)),
    }


def _import_full(data: dict[str, Any]) -> str:
    for key in ("employees", "projects", "absences", "allWorkData"):
        if key not in data:
            raise BackupFormatError(f"Full backup is missing {key!r}")
    if not isinstance(data["allWorkData"], dict):
        raise BackupFormatError("allWorkData must be an object keyed by employee")

    employees = [_employee_from_dict(e) for e in data["employees"]]
    projects = [_project_from_dict(p) for p in data["projects"]]
    absences = [_absence_from_dict(a) for a in data["absences"]]
    holiday_absence_id = next((a.id for a in absences if a.is_holiday_marker), None)
    config = storage.get_config()
    work_data = {
        employee_id: _days_from_records(days, holiday_absence_id, config)
        for employee_id, days in data["allWorkData"].items()
    }

    # Validated everything; now replace the database contents
    conn = storage.get_connection()
    conn.executescript("""
        DELETE FROM days;
        DELETE FROM employees;
        DELETE FROM projects;
        DELETE FROM absence_types;
    """)
    conn.commit()
    conn.close()

    for project in projects:
        storage.save_project(project)
    for absence in absences:
        storage.save_absence_type(absence)
    for employee in employees:
        storage.save_employee(employee)
        storage.replace_all_days(employee.id, work_data.get(employee.id, {}))

    logger.info("Imported full backup with %d employees", len(employees))
    return f"Imported full backup: {len(employees)} employees, {len(projects)} projects"


def _import_employee(data: dict[str, Any]) -> str:
    if "employee" not in data or "workData" not in data:
        raise BackupFormatError("Employee backup needs 'employee' and 'workData'")

    employee = _employee_from_dict(data["employee"])
    days = _days_from_records(data["workData"], storage.get_holiday_absence_id(), storage.get_config())
    storage.save_employee(employee)
    storage.replace_all_days(employee.id, days)

    logger.info("Imported %d days for employee %s", len(days), employee.id)
    return f"Imported {len(days)} days for {employee.name}"


def import_backup(data: Any) -> str:
    """Import a backup document. Returns a one line description of what was imported.

    Raises:
        BackupFormatError: The document is not a backup this program wrote.
    """
    if not isinstance(data, dict):
        raise BackupFormatError("Backup must be a JSON object", "Unknown file format.")
    kind = data.get("type")
    if kind == FULL_BACKUP:
        return _import_full(data)
    if kind == EMPLOYEE_DATA:
        return _import_employee(data)
    raise BackupFormatError(f"Unknown backup type {kind!r}", "Unknown file format.")


def default_filename(employee: Employee | None = None, today: date | None = None) -> str:
    today = today or date.today()
    if employee is None:
        return f"timesheet_backup_{today.isoformat()}.json"
    name = "-".join(employee.name.lower().split())
    return f"timesheet_{name}_{today.isoformat()}.json"


def export_to_file(path: Path, employee_id: str | None = None) -> Path:
    """Write a backup; a directory path gets the default file name."""
    if employee_id:
        data = export_employee_backup(employee_id)
        employee = storage.get_employee(employee_id)
    else:
        data = export_full_backup()
        employee = None
    if path.is_dir():
        path = path / default_filename(employee)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    return path


def import_from_file(path: Path) -> str:
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise BackupFormatError(f"{path} is not valid JSON: {exc}", "Could not read the file.") from exc
    return import_backup(data)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) < 2 or args[0] not in ("export", "import"):
        print(__doc__.split("Usage:")[1].rstrip())
        return 2

    storage.init_db()
    command, path = args[0], Path(args[1])
    try:
        if command == "export":
            written = export_to_file(path, args[2] if len(args) > 2 else None)
            print(f"Exported to {written}")
        else:
            print(import_from_file(path))
    except BackupFormatError as exc:
        print(f"Error: {exc.user_message}")
        return 1
    except OSError as exc:
        logger.error("Could not %s %s: %s", command, path, exc)
        print(f"Error: could not open {path}: {exc.strerror}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
