"""
Recurrence expansion for semester courses.

A template describes a course that repeats over a whole semester
(weekly or biweekly, on one weekday). Expanding it produces one dated
occurrence per meeting. Occurrences are derived data: they are computed
on read and only stored once the user edits one of them.

Occurrence ids are "<template id>-<YYYY-MM-DD>", which makes them stable:
expanding the same template twice yields the same ids.
"""

from __future__ import annotations

from datetime import date, timedelta

from mysemester.model import TaskRecord, iso, js_weekday


STEP_DAYS = {"weekly": 7, "biweekly": 14}


def instance_id(template_id: str, on: date) -> str:
    return f"{template_id}-{iso(on)}"


def is_recurring(task: TaskRecord) -> bool:
    """True if the task has everything needed to expand it."""
    return bool(task.semester_id and task.start_date and task.end_date and task.frequency)


def occurrence_dates(task: TaskRecord) -> list[date]:
    """
    Dates on which a recurring template takes place, in order.

    Returns [] for tasks that are not recurring.
    """
    start = task.start_date
    end = task.end_date
    if start is None or end is None or not is_recurring(task):
        return []

    target = task.day_of_week if task.day_of_week is not None else js_weekday(start)
    first = start + timedelta(days=(target - js_weekday(start) + 7) % 7)
    step = timedelta(days=STEP_DAYS.get(task.frequency or "", 7))

    out: list[date] = []
    current = first
    while current <= end:
        out.append(current)
        current += step
    return out


def expand_template(task: TaskRecord) -> list[TaskRecord]:
    """
    Expand a template into its dated occurrences.

    Tasks without semester_id/start_date/end_date/frequency are returned
    unchanged as a single-element list. A template whose range contains
    no matching weekday is also returned unchanged, so the course still
    shows up somewhere.
    """
    dates = occurrence_dates(task)
    if not dates:
        return [task]

    return [
        task.replace(id=instance_id(task.id, d), date=d, template_id=task.id)
        for d in dates
    ]
