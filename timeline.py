"""Day timeline normalization and daily totals.

A day is entered as a list of activities that mostly carry only a start
time. Normalization sorts them, fills in end times from the following
activity, and inserts a 30 minute lunch break once continuous work passes
4.5 hours. Auto breaks are always rebuilt from scratch, so running the
normalizer twice gives the same timeline.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Sequence

from models import AbsenceActivity, Activity, BreakActivity, DailyTotals, WorkActivity
from utils import duration_minutes, format_time, minutes_to_hours, parse_time

logger = logging.getLogger(__name__)

LUNCH_THRESHOLD_MINUTES = 270
LUNCH_BREAK_MINUTES = 30
REGULAR_DAY_MINUTES = 8 * 60
AUTO_BREAK_NOTES = "lunch (auto)"
REMAINDER_SUFFIX = "-cont"


def sort_activities(activities: Iterable[Activity]) -> list[Activity]:
    """Sort by start time; equal starts keep their order."""
    return sorted(activities, key=lambda a: parse_time(a.start_time))


def auto_break_id(start_minutes: int) -> str:
    """Generated breaks are identified by their start so re-normalizing keeps the id."""
    return "auto-lunch-" + format_time(start_minutes).replace(":", "")


def is_auto_break(activity: Activity) -> bool:
    return isinstance(activity, BreakActivity) and activity.is_auto


def remainder_id(activity_id: str) -> str:
    """Id of the part of a split activity that follows the lunch break."""
    return activity_id + REMAINDER_SUFFIX


def strip_auto_breaks(activities: Sequence[Activity]) -> list[Activity]:
    """Remove generated lunch breaks, giving their time back to the activity they split.

    A remainder directly after its head is joined back onto it, so a split
    activity is whole again before breaks are recomputed.
    """
    result: list[Activity] = []
    for activity in sort_activities(activities):
        previous = result[-1] if result else None
        if is_auto_break(activity):
            if previous is not None and previous.end_time is not None and previous.end_time == activity.start_time:
                result[-1] = replace(previous, end_time=activity.end_time)
            continue
        if (
            previous is not None
            and activity.id == remainder_id(previous.id)
            and previous.end_time == activity.start_time
        ):
            result[-1] = replace(previous, end_time=activity.end_time)
            continue
        result.append(activity)
    return result


def resolve_end_times(activities: Sequence[Activity], final_end_time: str | None = None) -> list[Activity]:
    """Close each activity at the next one's start; the last takes final_end_time if given."""
    ordered = sort_activities(activities)
    resolved: list[Activity] = []
    for index, activity in enumerate(ordered):
        if index + 1 < len(ordered):
            next_start = ordered[index + 1].start_time
            end = activity.end_time
            if end is None or parse_time(end) > parse_time(next_start):
                end = next_start
        elif final_end_time is not None:
            end = final_end_time
        else:
            end = activity.end_time
        resolved.append(activity if end == activity.end_time else replace(activity, end_time=end))
    return resolved


def insert_lunch_breaks(
    activities: Sequence[Activity],
    threshold_minutes: int = LUNCH_THRESHOLD_MINUTES,
    break_minutes: int = LUNCH_BREAK_MINUTES,
) -> list[Activity]:
    """Split work where continuous work first exceeds the threshold.

    Continuity is broken by a time gap, by any non-work activity, and by an
    open work activity. Only the crossing activity is split; a remainder
    longer than the threshold is not split again.
    """
    result: list[Activity] = []
    continuous = 0
    last_end: int | None = None

    for activity in activities:
        start = parse_time(activity.start_time)
        if last_end is not None and start > last_end:
            continuous = 0

        if isinstance(activity, WorkActivity) and activity.end_time is not None:
            minutes = duration_minutes(activity.start_time, activity.end_time)
            if continuous + minutes > threshold_minutes and continuous <= threshold_minutes:
                break_start = start + (threshold_minutes - continuous)
                break_end = break_start + break_minutes
                end = parse_time(activity.end_time)

                # Block already at the threshold: the break opens this activity
                has_head = break_start > start
                if has_head:
                    result.append(replace(activity, end_time=format_time(break_start)))
                result.append(BreakActivity(
                    id=auto_break_id(break_start),
                    start_time=format_time(break_start),
                    end_time=format_time(break_end),
                    notes=AUTO_BREAK_NOTES,
                    is_auto=True,
                ))
                if end > break_end:
                    result.append(replace(
                        activity,
                        id=remainder_id(activity.id) if has_head else activity.id,
                        start_time=format_time(break_end),
                    ))
                continuous = max(0, end - break_end)
                logger.debug("Lunch break inserted at %s in %s", format_time(break_start), activity.id)
            else:
                result.append(activity)
                continuous += minutes
        else:
            result.append(activity)
            continuous = 0

        if activity.end_time is not None:
            last_end = parse_time(activity.end_time)

    return result


def normalize_timeline(
    activities: Sequence[Activity],
    final_end_time: str | None = None,
    *,
    threshold_minutes: int = LUNCH_THRESHOLD_MINUTES,
    break_minutes: int = LUNCH_BREAK_MINUTES,
) -> list[Activity]:
    """Resolve a day's activities into a complete timeline with lunch breaks.

    Args:
        activities: The day's activities in any order. Not modified.
        final_end_time: End of the working day ("HH:MM"). When omitted the
            last activity keeps its own end time, which may be None for a
            day still in progress.
        threshold_minutes: Continuous work allowed before a break.
        break_minutes: Length of the inserted break.

    Returns:
        New list of activities sorted by start time.
    """
    stripped = strip_auto_breaks(activities)
    resolved = resolve_end_times(stripped, final_end_time)
    with_breaks = insert_lunch_breaks(resolved, threshold_minutes, break_minutes)
    return sort_activities(with_breaks)


def is_open(activities: Sequence[Activity]) -> bool:
    """True when some activity has no end time yet."""
    return any(a.end_time is None for a in activities)


def compute_daily_totals(activities: Sequence[Activity], regular_minutes: int = REGULAR_DAY_MINUTES) -> DailyTotals:
    """Worked, break and absence time for a normalized day.

    An open day reports zero so that an unfinished day is never mistaken
    for a short one.
    """
    if is_open(activities):
        return DailyTotals(is_open=True)

    work = absence = breaks = 0
    for activity in activities:
        minutes = duration_minutes(activity.start_time, activity.end_time)
        if isinstance(activity, WorkActivity):
            work += minutes
        elif isinstance(activity, AbsenceActivity):
            absence += minutes
        elif isinstance(activity, BreakActivity):
            breaks += minutes

    return DailyTotals(
        work_minutes=work,
        break_minutes=breaks,
        absence_minutes=absence,
        regular_hours=minutes_to_hours(min(work, regular_minutes)),
        overtime_hours=minutes_to_hours(max(0, work - regular_minutes)),
    )
