"""Tests for storage.py - database operations."""

import json
from datetime import date
from decimal import Decimal

import pytest

from models import AbsenceActivity, AbsenceType, Config, Day, Employee, Project, WorkActivity
from timeline import normalize_timeline


# We need to set TIMESHEET_DB before importing storage
@pytest.fixture(autouse=True)
def temp_database(tmp_path, monkeypatch):
    """Use a temporary database for all tests."""
    db_path = tmp_path / "test_timesheet.db"
    monkeypatch.setenv("TIMESHEET_DB", str(db_path))

    # Re-import storage to pick up new DB_PATH
    import importlib
    import storage
    importlib.reload(storage)

    # Initialise the database
    storage.init_db()

    yield storage

    # Point storage back at the session database
    monkeypatch.undo()
    importlib.reload(storage)
    if db_path.exists():
        db_path.unlink()


def _day(iso: str, *activities, absence_id=None) -> Day:
    return Day(
        date=date.fromisoformat(iso),
        activities=normalize_timeline(list(activities)),
        absence_id=absence_id,
    )


class TestInitDb:
    """Tests for init_db function."""

    @pytest.mark.parametrize("table", ["employees", "projects", "absence_types", "days", "config"])
    def test_creates_tables(self, temp_database, table):
        """Test that init_db creates the required tables."""
        storage = temp_database
        conn = storage.get_connection()
        result = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,)
        ).fetchone()
        conn.close()
        assert result is not None

    def test_creates_index(self, temp_database):
        """Test that init_db creates the date index."""
        storage = temp_database
        conn = storage.get_connection()
        result = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='index' AND name='idx_days_date'"
        ).fetchone()
        conn.close()
        assert result is not None

    def test_idempotent(self, temp_database):
        """Test that init_db can be called multiple times safely."""
        storage = temp_database
        storage.init_db()
        storage.init_db()


class TestSeedDefaults:
    """Tests for seed_defaults function."""

    def test_seeds_empty_database(self, temp_database):
        storage = temp_database
        assert storage.seed_defaults() is True

        assert [p.name for p in storage.get_all_projects()] == [
            "Interní systém", "Web pro klienta A", "Mobilní aplikace",
        ]
        assert len(storage.get_all_absence_types()) == 9
        assert [e.name for e in storage.get_all_employees()] == ["Jan Novák"]

    def test_does_not_reseed(self, temp_database):
        storage = temp_database
        storage.seed_defaults()
        storage.delete_project("proj-1")

        assert storage.seed_defaults() is False
        assert len(storage.get_all_projects()) == 2

    def test_holiday_absence_found(self, temp_database):
        storage = temp_database
        storage.seed_defaults()
        assert storage.get_holiday_absence_id() == "absence-4"


class TestEmployees:
    """Tests for employee functions."""

    def test_add_and_get(self, temp_database):
        storage = temp_database
        employee = storage.add_employee("Petra Svobodová")

        assert employee.id.startswith("emp-")
        assert storage.get_employee(employee.id) == employee

    def test_get_unknown(self, temp_database):
        assert temp_database.get_employee("nobody") is None

    def test_rename_keeps_position(self, temp_database):
        storage = temp_database
        first = storage.add_employee("A")
        storage.add_employee("B")

        storage.save_employee(Employee(first.id, "A renamed"))

        assert [e.name for e in storage.get_all_employees()] == ["A renamed", "B"]

    def test_archive_hides_employee(self, temp_database):
        storage = temp_database
        employee = storage.add_employee("A")
        storage.archive_employee(employee.id)

        assert storage.get_all_employees() == []
        assert storage.get_all_employees(include_archived=True)[0].archived

        storage.archive_employee(employee.id, archived=False)
        assert len(storage.get_all_employees()) == 1

    def test_delete_removes_days(self, temp_database, work_day):
        storage = temp_database
        keep = storage.add_employee("Keep")
        gone = storage.add_employee("Gone")
        storage.save_day(keep.id, work_day)
        storage.save_day(gone.id, work_day)

        storage.delete_employee(gone.id)

        assert storage.get_employee(gone.id) is None
        assert storage.get_all_days(gone.id) == {}
        assert storage.get_all_days(keep.id) == {work_day.iso_date: work_day}


class TestProjects:
    """Tests for project functions."""

    def test_add_project_with_random_color(self, temp_database):
        storage = temp_database
        project = storage.add_project("Nový projekt")

        assert project.color.startswith("#") and len(project.color) == 7
        assert storage.get_all_projects() == [project]

    def test_add_project_with_color(self, temp_database):
        project = temp_database.add_project("P", "#123456")
        assert project.color == "#123456"

    def test_archive_project(self, temp_database):
        storage = temp_database
        storage.save_project(Project("p1", "One"))
        storage.save_project(Project("p2", "Two"))
        storage.archive_project("p1")

        assert [p.id for p in storage.get_all_projects()] == ["p1", "p2"]
        assert [p.id for p in storage.get_all_projects(include_archived=False)] == ["p2"]

    def test_delete_unassigns_work(self, temp_database):
        storage = temp_database
        storage.save_project(Project("p1", "One"))
        storage.save_project(Project("p2", "Two"))
        storage.save_day("emp-1", _day(
            "2024-03-04",
            WorkActivity(id="a", start_time="08:00", end_time="10:00", project_id="p1"),
            WorkActivity(id="b", start_time="10:00", end_time="12:00", project_id="p2"),
        ))
        storage.save_day("emp-1", _day(
            "2024-03-05",
            WorkActivity(id="c", start_time="08:00", end_time="10:00", project_id="p2"),
        ))

        assert storage.delete_project("p1") == 1

        day = storage.get_day("emp-1", date(2024, 3, 4))
        assert [a.project_id for a in day.activities] == [None, "p2"]
        assert [p.id for p in storage.get_all_projects()] == ["p2"]

    def test_delete_keeps_custom_lunch_break(self, temp_database):
        storage = temp_database
        storage.save_config(Config(lunch_threshold_minutes=360))
        storage.save_project(Project("p1", "One"))
        activities = normalize_timeline(
            [WorkActivity(id="a", start_time="08:00", end_time="16:00", project_id="p1")],
            threshold_minutes=360,
        )
        storage.save_day("emp-1", Day(date=date(2024, 3, 4), activities=activities))

        assert storage.delete_project("p1") == 1

        day = storage.get_day("emp-1", date(2024, 3, 4))
        assert [(a.start_time, a.end_time) for a in day.activities] == [
            ("08:00", "14:00"), ("14:00", "14:30"), ("14:30", "16:00"),
        ]
        assert [getattr(a, "project_id", None) for a in day.activities] == [None, None, None]


class TestAbsenceTypes:
    """Tests for absence type functions."""

    def test_add_absence_type(self, temp_database):
        storage = temp_database
        absence = storage.add_absence_type("Home office")
        assert storage.get_all_absence_types() == [absence]
        assert storage.get_holiday_absence_id() is None

    def test_delete_clears_day_marker_and_activities(self, temp_database):
        storage = temp_database
        storage.save_absence_type(AbsenceType("absence-1", "Dovolená"))
        storage.save_day("emp-1", _day("2024-03-04", absence_id="absence-1"))
        storage.save_day("emp-1", _day(
            "2024-03-05",
            AbsenceActivity(id="a", start_time="08:00", end_time="12:00", absence_id="absence-1"),
        ))
        storage.save_day("emp-1", _day(
            "2024-03-06",
            AbsenceActivity(id="b", start_time="08:00", end_time="12:00", absence_id="absence-2"),
        ))

        assert storage.delete_absence_type("absence-1") == 2

        assert storage.get_day("emp-1", date(2024, 3, 4)).absence_id is None
        assert storage.get_day("emp-1", date(2024, 3, 5)).activities[0].absence_id is None
        assert storage.get_day("emp-1", date(2024, 3, 6)).activities[0].absence_id == "absence-2"
        assert storage.get_all_absence_types() == []


class TestDays:
    """Tests for day storage functions."""

    def test_save_and_get(self, temp_database, work_day):
        storage = temp_database
        storage.save_day("emp-1", work_day)
        assert storage.get_day("emp-1", work_day.date) == work_day

    def test_missing_day_is_empty(self, temp_database):
        day = temp_database.get_day("emp-1", date(2024, 3, 4))
        assert day == Day(date=date(2024, 3, 4))

    def test_days_are_per_employee(self, temp_database, work_day):
        storage = temp_database
        storage.save_day("emp-1", work_day)
        assert storage.get_day("emp-2", work_day.date).is_empty

    def test_save_replaces_day(self, temp_database, work_day):
        storage = temp_database
        storage.save_day("emp-1", work_day)
        storage.save_day("emp-1", Day(date=work_day.date, absence_id="absence-1"))

        day = storage.get_day("emp-1", work_day.date)
        assert day.activities == []
        assert day.absence_id == "absence-1"

    def test_stored_as_json_record(self, temp_database, work_day):
        storage = temp_database
        storage.save_day("emp-1", work_day)
        conn = storage.get_connection()
        row = conn.execute("SELECT record FROM days").fetchone()
        conn.close()
        assert json.loads(row["record"])["activities"][0]["projectId"] == "proj-1"

    def test_legacy_record_is_migrated_on_read(self, temp_database):
        storage = temp_database
        conn = storage.get_connection()
        conn.execute(
            "INSERT INTO days (employee_id, date, record) VALUES (?, ?, ?)",
            ("emp-1", "2024-03-04", json.dumps({"hours": 4, "projectId": "proj-1"})),
        )
        conn.commit()
        conn.close()

        day = storage.get_day("emp-1", date(2024, 3, 4))
        assert [(a.start_time, a.end_time) for a in day.activities] == [("07:00", "11:00")]

    def test_clear_day(self, temp_database, work_day):
        storage = temp_database
        storage.save_day("emp-1", work_day)
        storage.clear_day("emp-1", work_day.date)
        assert storage.get_day("emp-1", work_day.date).is_empty

    def test_get_month_days(self, temp_database):
        storage = temp_database
        for iso in ("2024-02-29", "2024-03-01", "2024-03-31", "2024-04-01"):
            storage.save_day("emp-1", _day(iso, absence_id="absence-1"))

        days = storage.get_month_days("emp-1", 2024, 3)
        assert list(days) == ["2024-03-01", "2024-03-31"]

    def test_get_days_range_ordered(self, temp_database):
        storage = temp_database
        for iso in ("2024-03-05", "2024-03-01", "2024-03-03"):
            storage.save_day("emp-1", _day(iso, absence_id="absence-1"))

        days = storage.get_days_range("emp-1", date(2024, 3, 1), date(2024, 3, 4))
        assert list(days) == ["2024-03-01", "2024-03-03"]

    def test_replace_all_days(self, temp_database, work_day):
        storage = temp_database
        storage.save_day("emp-1", _day("2024-01-02", absence_id="absence-1"))

        storage.replace_all_days("emp-1", {work_day.iso_date: work_day})

        assert storage.get_all_days("emp-1") == {work_day.iso_date: work_day}

    def test_custom_lunch_config_survives_reload(self, temp_database):
        """A day split with a non-default threshold reads back unchanged."""
        storage = temp_database
        storage.save_config(Config(lunch_threshold_minutes=360, lunch_break_minutes=45))
        day = Day(
            date=date(2024, 3, 4),
            activities=normalize_timeline(
                [WorkActivity(id="w", start_time="08:00", end_time="16:00", project_id="proj-1")],
                threshold_minutes=360,
                break_minutes=45,
            ),
        )
        assert [(a.start_time, a.end_time) for a in day.activities] == [
            ("08:00", "14:00"), ("14:00", "14:45"), ("14:45", "16:00"),
        ]

        storage.save_day("emp-1", day)

        assert storage.get_day("emp-1", day.date) == day
        assert storage.get_month_days("emp-1", 2024, 3) == {day.iso_date: day}
        assert storage.get_all_days("emp-1") == {day.iso_date: day}


class TestPopulateHolidays:
    """Tests for populate_holidays function."""

    def test_marks_holidays(self, temp_database):
        storage = temp_database
        storage.seed_defaults()

        assert storage.populate_holidays("emp-1", 2024, 5) == 2

        days = storage.get_month_days("emp-1", 2024, 5)
        assert set(days) == {"2024-05-01", "2024-05-08"}
        assert all(d.absence_id == "absence-4" and d.activities == [] for d in days.values())

    def test_idempotent(self, temp_database):
        storage = temp_database
        storage.seed_defaults()
        storage.populate_holidays("emp-1", 2024, 5)
        assert storage.populate_holidays("emp-1", 2024, 5) == 0

    def test_preserves_existing(self, temp_database):
        storage = temp_database
        storage.seed_defaults()
        worked = _day(
            "2024-05-01",
            WorkActivity(id="a", start_time="08:00", end_time="12:00", project_id="proj-1"),
        )
        storage.save_day("emp-1", worked)

        assert storage.populate_holidays("emp-1", 2024, 5) == 1
        assert storage.get_day("emp-1", date(2024, 5, 1)) == worked

    def test_without_holiday_absence_type(self, temp_database):
        storage = temp_database
        storage.save_absence_type(AbsenceType("absence-1", "Dovolená"))
        assert storage.populate_holidays("emp-1", 2024, 5) == 0


class TestConfig:
    """Tests for config functions."""

    def test_get_default_config(self, temp_database):
        """Test getting config when none is saved."""
        assert temp_database.get_config() == Config()

    def test_save_and_get_config(self, temp_database):
        """Test saving and retrieving config."""
        storage = temp_database
        config = Config(
            standard_day_hours=Decimal("7.5"),
            lunch_threshold_minutes=360,
            lunch_break_minutes=45,
            default_start_time="08:00",
            default_end_time="16:15",
        )
        storage.save_config(config)
        assert storage.get_config() == config

    def test_active_employee_defaults_to_first(self, temp_database):
        storage = temp_database
        storage.seed_defaults()
        assert storage.get_active_employee_id() == "emp-1"

    def test_active_employee_round_trip(self, temp_database):
        storage = temp_database
        storage.seed_defaults()
        other = storage.add_employee("Petra")
        storage.set_active_employee_id(other.id)
        assert storage.get_active_employee_id() == other.id

    def test_archived_active_employee_falls_back(self, temp_database):
        storage = temp_database
        storage.seed_defaults()
        other = storage.add_employee("Petra")
        storage.set_active_employee_id(other.id)
        storage.archive_employee(other.id)
        assert storage.get_active_employee_id() == "emp-1"

    def test_no_employees(self, temp_database):
        assert temp_database.get_active_employee_id() is None
