"""
Task views and task operations.

View building:
    stored records (templates + edited instances + standalone tasks)
        -> expand templates -> overlay edited instances -> filter by date range

Overlay rule:
    an edited instance stored for a template replaces the generated occurrence
    with the same id (same template, same occurrence date), independent of the
    order of the stored list. A cancelled instance removes that occurrence.

Operations (add / update / delete / toggle / notes) never touch storage.
Each returns a TaskChange: the new stored list plus the records to upsert and
the ids to delete, so the caller can persist exactly that delta.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, Optional

from mysemester.model import TaskRecord, parse_date
from mysemester.recurrence import expand_template
from mysemester.semester import monday_of


class UnknownTask(KeyError):
    """Raised when an id is neither stored nor a generated occurrence."""


@dataclass
class TaskChange:
    tasks: list[TaskRecord]
    upserts: list[TaskRecord] = field(default_factory=list)
    deleted_ids: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def _in_range(task: TaskRecord, start: date, end: date) -> bool:
    return start <= task.date <= end


def tasks_for_date_range(
    tasks: Iterable[TaskRecord],
    start: date | str,
    end: date | str,
) -> list[TaskRecord]:
    """
    All task occurrences falling within [start, end] (inclusive).

    Templates are expanded over their full semester before filtering,
    edited instances override their generated occurrence, and the result
    has unique ids (first occurrence wins).
    """
    start_d = parse_date(start)
    end_d = parse_date(end)

    templates: list[TaskRecord] = []
    instances: list[TaskRecord] = []
    standalone: list[TaskRecord] = []
    for task in tasks:
        if task.is_instance:
            instances.append(task)
        elif task.is_template:
            templates.append(task)
        else:
            standalone.append(task)

    overrides: dict[str, TaskRecord] = {}
    for inst in instances:
        overrides.setdefault(inst.id, inst)

    candidates: list[TaskRecord] = []
    used: set[str] = set()
    for template in templates:
        for occ in expand_template(template):
            override = overrides.get(occ.id)
            if override is not None:
                used.add(occ.id)
                occ = override
            candidates.append(occ)

    # Edited instances whose template is gone or no longer generates that date.
    candidates.extend(inst for inst in instances if inst.id not in used)
    candidates.extend(standalone)

    out: list[TaskRecord] = []
    seen: set[str] = set()
    for task in candidates:
        if task.cancelled or task.id in seen:
            continue
        if not _in_range(task, start_d, end_d):
            continue
        seen.add(task.id)
        out.append(task)
    return out


def week_bounds(value: date | str) -> tuple[date, date]:
    """Monday and Sunday of the week containing the date."""
    monday = monday_of(parse_date(value))
    return monday, monday + timedelta(days=6)


def tasks_for_week(tasks: Iterable[TaskRecord], value: date | str) -> list[TaskRecord]:
    start, end = week_bounds(value)
    return tasks_for_date_range(tasks, start, end)


def find_task(tasks: Iterable[TaskRecord], task_id: str) -> Optional[TaskRecord]:
    """
    Look up a stored record, or the generated occurrence with that id.
    """
    stored = list(tasks)
    for task in stored:
        if task.id == task_id:
            return task
    for task in stored:
        if not task.is_template or not task_id.startswith(task.id + "-"):
            continue
        for occ in expand_template(task):
            if occ.id == task_id:
                return occ
    return None


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def _index_of(tasks: list[TaskRecord], task_id: str) -> int:
    for i, task in enumerate(tasks):
        if task.id == task_id:
            return i
    return -1


def add_task(tasks: Iterable[TaskRecord], task: TaskRecord) -> TaskChange:
    """
    Store a new task. Templates are stored alone; occurrences are computed on read.
    """
    current = list(tasks)
    if _index_of(current, task.id) >= 0:
        raise ValueError(f"Task id already exists: {task.id}")
    return TaskChange(tasks=current + [task], upserts=[task])


def update_task(tasks: Iterable[TaskRecord], task_id: str, **changes: Any) -> TaskChange:
    """
    Apply field changes to a task.

    - template: the template is replaced and its edited instances are dropped,
      so every occurrence is regenerated from the new template
    - stored instance or standalone task: replaced in place
    - generated occurrence: stored as a new edited instance
    """
    current = list(tasks)
    changes.pop("id", None)
    idx = _index_of(current, task_id)

    if idx >= 0:
        old = current[idx]
        new = old.replace(**changes)
        if old.is_template:
            stale = [t.id for t in current if t.template_id == task_id]
            kept = [t for t in current if t.template_id != task_id]
            kept[_index_of(kept, task_id)] = new
            return TaskChange(tasks=kept, upserts=[new], deleted_ids=stale)
        current[idx] = new
        return TaskChange(tasks=current, upserts=[new])

    occurrence = find_task(current, task_id)
    if occurrence is None:
        raise UnknownTask(task_id)
    new = occurrence.replace(**changes)
    return TaskChange(tasks=current + [new], upserts=[new])


def delete_task(tasks: Iterable[TaskRecord], task_id: str) -> TaskChange:
    """
    Delete a task.

    Deleting a template also deletes its edited instances. Deleting a single
    generated occurrence stores a cancelled instance so it stays hidden.
    """
    current = list(tasks)
    idx = _index_of(current, task_id)

    if idx >= 0:
        target = current[idx]
        if target.is_template:
            gone = [t.id for t in current if t.id == task_id or t.template_id == task_id]
        else:
            gone = [task_id]
        kept = [t for t in current if t.id not in gone]
        return TaskChange(tasks=kept, deleted_ids=gone)

    occurrence = find_task(current, task_id)
    if occurrence is None:
        raise UnknownTask(task_id)
    tombstone = occurrence.replace(cancelled=True)
    return TaskChange(tasks=current + [tombstone], upserts=[tombstone])


def toggle_complete(tasks: Iterable[TaskRecord], task_id: str) -> TaskChange:
    current = list(tasks)
    task = find_task(current, task_id)
    if task is None:
        raise UnknownTask(task_id)
    return update_task(current, task_id, completed=not task.completed)


def update_notes(tasks: Iterable[TaskRecord], task_id: str, notes: str) -> TaskChange:
    text = (notes or "").strip()
    return update_task(tasks, task_id, notes=text or None)


def task_stats(tasks: Iterable[TaskRecord]) -> dict[str, int]:
    """
    Counts shown in the statistics panel (for the displayed occurrences).
    """
    items = list(tasks)
    total = len(items)
    completed = sum(1 for t in items if t.completed)
    return {
        "total": total,
        "completed": completed,
        "pending": total - completed,
        "courses": sum(1 for t in items if t.type == "course"),
        "exams": sum(1 for t in items if t.type == "exam"),
        "personal": sum(1 for t in items if t.type == "personal"),
        "completion_rate": int(completed * 100 / total + 0.5) if total else 0,
    }
