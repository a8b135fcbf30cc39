"""Shared fixtures for tests."""

from __future__ import annotations

import os
import sqlite3
import tempfile
from datetime import date
from pathlib import Path
from typing import Generator

import pytest

# Set up test database before importing storage
_test_db_fd, _test_db_path = tempfile.mkstemp(suffix=".db")
os.environ["TIMESHEET_DB"] = _test_db_path


@pytest.fixture(scope="session", autouse=True)
def setup_test_db() -> Generator[Path, None, None]:
    """Set up a test database for the entire test session."""
    import storage

    # Reinitialise storage module with test db path
    storage.DB_PATH = Path(_test_db_path)
    storage.init_db()

    yield Path(_test_db_path)

    # Cleanup
    os.close(_test_db_fd)
    os.unlink(_test_db_path)


@pytest.fixture
def db_connection(setup_test_db: Path) -> Generator[sqlite3.Connection, None, None]:
    """Provide a database connection for tests."""
    import storage

    conn = storage.get_connection()
    yield conn
    conn.close()


@pytest.fixture
def clean_db(setup_test_db: Path) -> Generator[None, None, None]:
    """Clean database tables before each test."""
    import storage

    conn = storage.get_connection()
    conn.execute("DELETE FROM days")
    conn.execute("DELETE FROM employees")
    conn.execute("DELETE FROM projects")
    conn.execute("DELETE FROM absence_types")
    conn.execute("DELETE FROM config")
    conn.commit()
    conn.close()

    yield


@pytest.fixture
def seeded_db(clean_db) -> None:
    """Clean database with the default projects, absence types and employee."""
    import storage

    storage.seed_defaults()


@pytest.fixture
def work_day():
    """A closed day: 07:00-15:30 on one project with the automatic lunch break."""
    from models import Day, WorkActivity
    from timeline import normalize_timeline

    activities = normalize_timeline(
        [WorkActivity(id="w1", start_time="07:00", project_id="proj-1")],
        "15:30",
    )
    return Day(date=date(2024, 3, 4), activities=activities)


@pytest.fixture
def sample_projects():
    from models import Project

    return [
        Project("proj-1", "Interní systém", "#0088FE"),
        Project("proj-2", "Web pro klienta A", "#00C49F"),
        Project("proj-3", "Mobilní aplikace", "#FFBB28", archived=True),
    ]


@pytest.fixture
def sample_absence_types():
    from models import AbsenceType

    return [
        AbsenceType("absence-1", "Dovolená"),
        AbsenceType("absence-2", "Nemoc"),
        AbsenceType("absence-4", "Státní svátek"),
    ]
