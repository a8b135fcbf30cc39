"""Day editing operations used by the UI.

Every operation takes a Day and returns a new, normalized Day; the stored
day is replaced as a whole. Invalid input raises ValidationError.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Collection, Iterable

from errors import ValidationError
from models import AbsenceActivity, Activity, Config, Day, Project, WorkActivity
from records import new_id
from timeline import is_auto_break, normalize_timeline, remainder_id, sort_activities
from utils import days_in_month, is_valid_time, parse_time, shift_time

logger = logging.getLogger(__name__)

ACTIVITY_KINDS = ("work", "absence")


def _normalized(
    day: Day,
    activities: list[Activity],
    final_end_time: str | None,
    config: Config | None,
) -> Day:
    config = config or Config()
    timeline = normalize_timeline(
        activities,
        final_end_time,
        threshold_minutes=config.lunch_threshold_minutes,
        break_minutes=config.lunch_break_minutes,
    )
    return replace(day, activities=timeline)


def _check_time(value: str) -> str:
    if not is_valid_time(value):
        raise ValidationError(f"Invalid time {value!r}", "Invalid time format. Use HH:MM.")
    hours, minutes = value.strip().split(":")
    return f"{int(hours):02d}:{minutes}"


def add_activity(
    day: Day,
    kind: str,
    start_time: str,
    project_id: str | None = None,
    absence_id: str | None = None,
    notes: str = "",
    config: Config | None = None,
) -> Day:
    """Start a new open activity at start_time.

    The activity before it is closed at start_time by normalization.
    """
    start_time = _check_time(start_time)
    activity: Activity
    if kind == "work":
        if not project_id:
            raise ValidationError("Work activity without project", "Select a project.")
        activity = WorkActivity(id=new_id(), start_time=start_time, notes=notes, project_id=project_id)
    elif kind == "absence":
        if not absence_id:
            raise ValidationError("Absence activity without type", "Select an absence type.")
        activity = AbsenceActivity(id=new_id(), start_time=start_time, notes=notes, absence_id=absence_id)
    else:
        raise ValidationError(f"Unknown activity kind {kind!r}")

    logger.debug("Adding %s activity at %s on %s", kind, start_time, day.iso_date)
    return _normalized(day, [*day.activities, activity], None, config)


def end_day(day: Day, end_time: str, config: Config | None = None) -> Day:
    """Close the day: the last activity ends at end_time."""
    end_time = _check_time(end_time)
    return _normalized(day, list(day.activities), end_time, config)


def delete_activity(day: Day, activity_id: str, config: Config | None = None) -> Day:
    """Remove an activity and let the one before it run on to the next.

    The day stays closed only if every remaining activity already had an
    end time; the last of them then marks the end of the day.
    """
    target = next((a for a in day.activities if a.id == activity_id), None)
    if target is None:
        raise ValidationError(f"No activity {activity_id!r} on {day.iso_date}")
    if is_auto_break(target):
        raise ValidationError("Auto break deletion", "Automatic lunch breaks cannot be deleted.")

    remaining = sort_activities(a for a in day.activities if a.id != activity_id)
    final_end_time = None
    if remaining and all(a.end_time for a in remaining):
        final_end_time = remaining[-1].end_time

    target_start = parse_time(target.start_time)
    has_following = any(
        parse_time(a.start_time) >= target_start for a in remaining if not is_auto_break(a)
    )
    if has_following:
        for index, activity in enumerate(remaining):
            if not is_auto_break(activity) and activity.end_time == target.start_time:
                remaining[index] = replace(activity, end_time=None)

    logger.debug("Deleted activity %s on %s", activity_id, day.iso_date)
    return _normalized(day, remaining, final_end_time, config)


def finalize(day: Day, default_end_time: str | None = None, config: Config | None = None) -> Day:
    """Close a day left open, at the configured end of the working day."""
    config = config or Config()
    if not day.activities or not day.is_open:
        return day
    return _normalized(day, list(day.activities), default_end_time or config.default_end_time, config)


def clear_day(day: Day) -> Day:
    return replace(day, activities=[], absence_id=None)


def next_start_time(day: Day, default: str = "07:00") -> str:
    """Suggested start for the next activity."""
    if not day.activities:
        return default
    last = sort_activities(day.activities)[-1]
    if last.end_time:
        return last.end_time
    return shift_time(last.start_time, 60)


def copy_day(source: Day, target_dates: Iterable[date]) -> list[Day]:
    """Copies of the source timeline for each target date (source date skipped)."""
    copies = []
    for target in target_dates:
        if target == source.date:
            continue
        fresh = {a.id: new_id() for a in source.activities if not is_auto_break(a)}
        # A split remainder follows its head's new id
        for old_id in fresh:
            if remainder_id(old_id) in fresh:
                fresh[remainder_id(old_id)] = remainder_id(fresh[old_id])
        activities = [
            a if is_auto_break(a) else replace(a, id=fresh[a.id])
            for a in source.activities
        ]
        copies.append(Day(date=target, activities=activities))
    return copies


def select_workdays(
    year: int,
    month: int,
    holidays: Collection[str],
    exclude: date | None = None,
) -> list[date]:
    """Weekdays of the month that are not holidays, for bulk copying."""
    return [
        d for d in days_in_month(year, month)
        if d.weekday() < 5 and d.isoformat() not in holidays and d != exclude
    ]


def selectable_projects(projects: Iterable[Project], current_id: str | None = None) -> list[Project]:
    """Active projects, plus the current one if it has since been archived."""
    projects = list(projects)
    active = [p for p in projects if not p.archived]
    current = next((p for p in projects if p.id == current_id), None)
    if current is not None and current.archived:
        return [current, *active]
    return active
