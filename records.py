"""Conversion between Day objects and their JSON records.

Day data has been stored in several shapes over time:

* a single record per day with ``hours``/``overtime``/``projectId`` and an
  optional ``startTime``/``endTime`` pair,
* a record with an ``entries`` list of per-project hour amounts,
* a plain list of timeline entries,
* the current ``{"activities": [...], "absenceId": ...}`` record.

``day_from_record`` turns any of them into a normalized ``Day``; nothing
else in the code looks at stored shapes.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from errors import RecordFormatError
from models import (
    ACTIVITY_TYPES,
    AbsenceActivity,
    Activity,
    BreakActivity,
    Config,
    Day,
    WorkActivity,
)
from timeline import normalize_timeline
from utils import MINUTES_PER_HOUR, duration_minutes, format_time, parse_time

logger = logging.getLogger(__name__)

_LEGACY_KEYS = ("hours", "overtime", "projectId", "startTime", "endTime", "absenceId", "absenceAmount")


def new_id(prefix: str = "entry") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def activity_to_record(activity: Activity) -> dict[str, Any]:
    return {
        "id": activity.id,
        "type": activity.kind,
        "startTime": activity.start_time,
        "endTime": activity.end_time,
        "projectId": activity.project_id if isinstance(activity, WorkActivity) else None,
        "absenceId": activity.absence_id if isinstance(activity, AbsenceActivity) else None,
        "notes": activity.notes,
        "isAuto": activity.is_auto if isinstance(activity, BreakActivity) else False,
    }


def activity_from_record(raw: Any) -> Activity:
    if not isinstance(raw, dict):
        raise RecordFormatError(f"Activity record must be an object, got {type(raw).__name__}")

    cls = ACTIVITY_TYPES.get(raw.get("type", "work"))
    if cls is None:
        raise RecordFormatError(f"Unknown activity type {raw.get('type')!r}")

    common = {
        "id": str(raw.get("id") or new_id()),
        "start_time": raw.get("startTime") or "00:00",
        "end_time": raw.get("endTime") or None,
        "notes": raw.get("notes") or "",
    }
    if cls is WorkActivity:
        return WorkActivity(project_id=raw.get("projectId"), **common)
    if cls is AbsenceActivity:
        return AbsenceActivity(absence_id=raw.get("absenceId"), **common)
    return BreakActivity(is_auto=bool(raw.get("isAuto")), **common)


def day_to_record(day: Day) -> dict[str, Any]:
    return {
        "activities": [activity_to_record(a) for a in day.activities],
        "absenceId": day.absence_id,
    }


def _hours_to_minutes(value: Any) -> int:
    """Legacy hour amounts; anything unreadable counts as zero."""
    if value in (None, ""):
        return 0
    try:
        minutes = Decimal(str(value)) * MINUTES_PER_HOUR
    except (InvalidOperation, ValueError):
        return 0
    return max(0, int(minutes.to_integral_value()))


def _layout_work(
    chunks: list[tuple[int, str | None, str]],
    start: int,
    config: Config,
) -> tuple[list[Activity], int]:
    """Place legacy work amounts back to back from start.

    Where normalization will cut a lunch break out of a chunk, the chunk is
    stretched by the break length so its worked minutes stay the same.
    """
    activities: list[Activity] = []
    cursor = start
    continuous = 0
    threshold = config.lunch_threshold_minutes
    for minutes, project_id, notes in chunks:
        if minutes <= 0:
            continue
        span = minutes
        if continuous + minutes > threshold and continuous <= threshold:
            span += config.lunch_break_minutes
            continuous = continuous + minutes - threshold
        else:
            continuous += minutes
        activities.append(WorkActivity(
            id=new_id(),
            start_time=format_time(cursor),
            end_time=format_time(cursor + span),
            notes=notes,
            project_id=project_id,
        ))
        cursor += span
    return activities, cursor


def _legacy_absence(
    raw: dict[str, Any],
    cursor: int,
    holiday_absence_id: str | None,
    config: Config,
) -> tuple[str | None, list[Activity]]:
    """Day-level absence id and absence activity for a legacy record."""
    absence_id = raw.get("absenceId")
    if not absence_id:
        return None, []

    amount_value = raw.get("absenceAmount")
    try:
        amount = Decimal(str(amount_value)) if amount_value is not None else Decimal(1)
    except (InvalidOperation, ValueError):
        amount = Decimal(1)
    if amount <= 0:
        return None, []

    if amount >= 1:
        if absence_id == holiday_absence_id:
            return absence_id, []
        day_absence = absence_id
        minutes = config.standard_day_minutes
    else:
        day_absence = None
        minutes = int((amount * config.standard_day_minutes).to_integral_value())

    activity = AbsenceActivity(
        id=new_id(),
        start_time=format_time(cursor),
        end_time=format_time(cursor + minutes),
        absence_id=absence_id,
    )
    return day_absence, [activity]


def day_from_record(
    iso_date: str,
    raw: Any,
    *,
    holiday_absence_id: str | None = None,
    config: Config | None = None,
) -> Day:
    """Build a normalized Day from any stored record shape.

    Raises:
        RecordFormatError: The date or the record cannot be read.
    """
    config = config or Config()
    try:
        day_date = date.fromisoformat(iso_date)
    except (TypeError, ValueError) as exc:
        raise RecordFormatError(f"Invalid day key {iso_date!r}") from exc

    if raw is None:
        return Day(date=day_date)

    absence_id: str | None = None
    if isinstance(raw, list):
        activities = [activity_from_record(r) for r in raw]
    elif not isinstance(raw, dict):
        raise RecordFormatError(f"Unsupported record for {iso_date}: {type(raw).__name__}")
    elif "activities" in raw:
        if not isinstance(raw["activities"], list):
            raise RecordFormatError(f"Activities for {iso_date} must be a list")
        activities = [activity_from_record(r) for r in raw["activities"]]
        absence_id = raw.get("absenceId")
    elif "entries" in raw:
        if not isinstance(raw["entries"], list):
            raise RecordFormatError(f"Entries for {iso_date} must be a list")
        chunks = [
            (
                _hours_to_minutes(entry.get("hours")) + _hours_to_minutes(entry.get("overtime")),
                entry.get("projectId"),
                entry.get("notes") or "",
            )
            for entry in raw["entries"]
            if isinstance(entry, dict)
        ]
        activities, cursor = _layout_work(chunks, parse_time(config.default_start_time), config)
        absence_id, extra = _legacy_absence(raw, cursor, holiday_absence_id, config)
        activities += extra
        logger.debug("Migrated multi-project record for %s", iso_date)
    elif any(key in raw for key in _LEGACY_KEYS):
        start, end = raw.get("startTime"), raw.get("endTime")
        notes = raw.get("notes") or ""
        if duration_minutes(start, end) > 0:
            activities = [WorkActivity(
                id=new_id(),
                start_time=start,
                end_time=end,
                notes=notes,
                project_id=raw.get("projectId"),
            )]
            cursor = parse_time(end)
        else:
            total = _hours_to_minutes(raw.get("hours")) + _hours_to_minutes(raw.get("overtime"))
            activities, cursor = _layout_work(
                [(total, raw.get("projectId"), notes)],
                parse_time(config.default_start_time),
                config,
            )
        absence_id, extra = _legacy_absence(raw, cursor, holiday_absence_id, config)
        activities += extra
        logger.debug("Migrated single-entry record for %s", iso_date)
    else:
        raise RecordFormatError(f"Unrecognised record for {iso_date}")

    timeline = normalize_timeline(
        activities,
        threshold_minutes=config.lunch_threshold_minutes,
        break_minutes=config.lunch_break_minutes,
    )
    return Day(date=day_date, activities=timeline, absence_id=absence_id)
