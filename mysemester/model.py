"""
Central data model definitions used across the project.

This module defines the canonical structure of periods, academic years and
task records so that:
- the calendar engine, the recurrence expander and the views share one shape
- stored JSON (camelCase, as written by the web front end) maps to one place
- dates are always `datetime.date` inside the core, ISO strings only at the edges
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from typing import Any, Iterable, Optional


TASK_TYPES = ("course", "personal", "exam")
ACTIVITY_TYPES = ("course", "seminar", "laboratory", "project")
EXAM_TYPES = ("exam", "oral_exam", "written_exam", "practical_exam")
FREQUENCIES = ("weekly", "biweekly")

# Old records link an instance to its template only through the id suffix.
_LEGACY_INSTANCE_ID = re.compile(r"^(?P<template>.+)-(?P<date>\d{4}-\d{2}-\d{2})$")


class InvalidDate(ValueError):
    """Raised when a value is not a valid ISO calendar date (YYYY-MM-DD)."""


def parse_date(value: date | str) -> date:
    """
    Convert an ISO date string (or a date) into a `datetime.date`.

    Raises InvalidDate for anything else. A datetime is reduced to its date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(f"Not a date: {value!r}")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidDate(f"Invalid ISO date: {value!r}") from exc


def iso(d: date) -> str:
    return d.isoformat()


def js_weekday(d: date) -> int:
    """Weekday with 0 = Sunday .. 6 = Saturday (the convention of `day_of_week`)."""
    return (d.weekday() + 1) % 7


@dataclass(frozen=True)
class Period:
    """
    One computed period of an academic year (semester or exam session).

    Dates are inclusive: start is always a Monday, end always a Sunday.
    """

    id: str
    name: str
    start_date: date
    end_date: date
    week_count: int
    year: int

    def contains(self, d: date) -> bool:
        return self.start_date <= d <= self.end_date

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startDate": iso(self.start_date),
            "endDate": iso(self.end_date),
            "weekCount": self.week_count,
            "year": self.year,
        }


@dataclass(frozen=True)
class FirstSemester(Period):
    """
    The first semester, which embeds the winter recess.

    The recess weeks [break_start, break_end] lie inside [start_date, end_date]
    but do not count towards the 14 instructional weeks.
    """

    break_start: date = field(default=date.min)
    break_end: date = field(default=date.min)

    def in_recess(self, d: date) -> bool:
        return self.break_start <= d <= self.break_end

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["breakStart"] = iso(self.break_start)
        out["breakEnd"] = iso(self.break_end)
        return out


@dataclass(frozen=True)
class AcademicYear:
    first_semester: FirstSemester
    exam_session: Period
    second_semester: Period
    intersemestrial_break_start: date
    intersemestrial_break_end: date
    year: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "firstSemester": self.first_semester.to_dict(),
            "examSession": self.exam_session.to_dict(),
            "secondSemester": self.second_semester.to_dict(),
            "intersemestrialBreakStart": iso(self.intersemestrial_break_start),
            "intersemestrialBreakEnd": iso(self.intersemestrial_break_end),
            "year": self.year,
        }


@dataclass
class TaskRecord:
    """
    One task as stored and displayed.

    The same shape plays three roles:
    - template: a whole-semester recurring course (semester_id, start_date,
      end_date set; no template_id)
    - instance: one dated occurrence of a template that the user edited
      (template_id set, id = "<template_id>-<YYYY-MM-DD>")
    - standalone: a one-off personal task, exam or course

    day_of_week uses 0 = Sunday .. 6 = Saturday.
    """

    id: str
    title: str
    type: str
    date: date
    completed: bool = False
    description: Optional[str] = None
    notes: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    course_name: Optional[str] = None  # deprecated, title is used instead
    activity_type: Optional[str] = None
    frequency: Optional[str] = None
    semester_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    day_of_week: Optional[int] = None
    exam_type: Optional[str] = None
    exam_session_id: Optional[str] = None
    exam_result: Optional[float] = None
    credits: Optional[float] = None
    template_id: Optional[str] = None
    cancelled: bool = False

    @property
    def is_template(self) -> bool:
        return (
            self.template_id is None
            and bool(self.semester_id)
            and self.start_date is not None
            and self.end_date is not None
        )

    @property
    def is_instance(self) -> bool:
        return self.template_id is not None

    def replace(self, **changes: Any) -> "TaskRecord":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskRecord":
        """
        Build a record from a stored dict (camelCase keys; snake_case accepted too).
        """
        kwargs: dict[str, Any] = {}
        for snake, camel in _FIELD_KEYS:
            if camel in data:
                kwargs[snake] = data[camel]
            elif snake in data:
                kwargs[snake] = data[snake]

        for key in ("id", "title", "type", "date"):
            if kwargs.get(key) in (None, ""):
                raise ValueError(f"Task record is missing {key!r}: {data!r}")

        kwargs["id"] = str(kwargs["id"])
        kwargs["date"] = parse_date(kwargs["date"])
        for key in ("start_date", "end_date"):
            if kwargs.get(key):
                kwargs[key] = parse_date(kwargs[key])
            else:
                kwargs[key] = None
        kwargs["completed"] = bool(kwargs.get("completed", False))
        kwargs["cancelled"] = bool(kwargs.get("cancelled", False))
        if kwargs.get("day_of_week") is not None:
            kwargs["day_of_week"] = int(kwargs["day_of_week"])

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialise to the camelCase JSON shape. Unset optional fields are omitted.
        """
        out: dict[str, Any] = {}
        for snake, camel in _FIELD_KEYS:
            value = getattr(self, snake)
            if isinstance(value, date):
                value = iso(value)
            if value is None:
                continue
            if snake == "cancelled" and not value:
                continue
            out[camel] = value
        return out


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


_FIELD_KEYS: tuple[tuple[str, str], ...] = tuple((f.name, _camel(f.name)) for f in fields(TaskRecord))


def link_legacy_instances(records: Iterable[TaskRecord]) -> list[TaskRecord]:
    """
    Give legacy instances (stored before `templateId` existed) their template_id.

    A record without template_id is an instance of template T when its id is
    "<T.id>-YYYY-MM-DD" and T is another stored template. Templates whose own
    id happens to end in a date stay templates.
    """
    loaded = list(records)
    template_ids = {r.id for r in loaded if r.is_template}
    out: list[TaskRecord] = []
    for record in loaded:
        m = _LEGACY_INSTANCE_ID.match(record.id)
        if record.template_id is None and record.semester_id and m and m.group("template") in template_ids:
            record = record.replace(template_id=m.group("template"))
        out.append(record)
    return out
