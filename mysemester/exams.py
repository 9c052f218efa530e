"""
Exam results per exam session.

Only exams with both a result and a credit count take part. Results are
grouped by exam_session_id and averaged weighted by credits:

    average = sum(result * credits) / sum(credits)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from mysemester.model import AcademicYear, TaskRecord, parse_date
from mysemester.semester import EXAM_SESSION, classify_date


TOTAL_YEAR_CREDITS = 30
UNKNOWN_SESSION = "unknown"

_SESSION_YEAR = re.compile(r"exam-(\d{4})")


@dataclass
class ExamSessionResults:
    session_id: str
    session_name: str
    year: int
    exams: list[TaskRecord] = field(default_factory=list)
    average: Optional[float] = None
    total_credits: float = 0


def _has_result(task: TaskRecord) -> bool:
    return task.type == "exam" and task.exam_result is not None and task.credits is not None


def _label(session_id: str, academic_year: AcademicYear, fallback_year: int) -> tuple[str, int]:
    exam = academic_year.exam_session
    if session_id == exam.id:
        return f"{exam.name} {exam.year}", exam.year
    m = _SESSION_YEAR.match(session_id)
    if m:
        year = int(m.group(1))
        return f"Exam Session {year}", year
    return "Exam Session", fallback_year


def exam_sessions(
    tasks: Iterable[TaskRecord],
    academic_year: AcademicYear,
    reference_date: date | str,
) -> list[ExamSessionResults]:
    """
    Group graded exams by session, most recent year first.

    Sessions whose id carries no year are dated with the reference date's year.
    """
    ref = parse_date(reference_date)

    grouped: dict[str, list[TaskRecord]] = {}
    for task in tasks:
        if not _has_result(task):
            continue
        grouped.setdefault(task.exam_session_id or UNKNOWN_SESSION, []).append(task)

    sessions: list[ExamSessionResults] = []
    for session_id, exams in grouped.items():
        weighted = sum(float(e.exam_result) * float(e.credits) for e in exams)
        credits = sum(float(e.credits) for e in exams)
        name, year = _label(session_id, academic_year, ref.year)
        sessions.append(
            ExamSessionResults(
                session_id=session_id,
                session_name=name,
                year=year,
                exams=exams,
                average=weighted / credits if credits > 0 else None,
                total_credits=credits,
            )
        )

    sessions.sort(key=lambda s: s.year, reverse=True)
    return sessions


def current_exam_session_id(academic_year: AcademicYear, reference_date: date | str) -> Optional[str]:
    if classify_date(reference_date, academic_year) == EXAM_SESSION:
        return academic_year.exam_session.id
    return None


def sessions_to_show(
    tasks: Iterable[TaskRecord],
    academic_year: AcademicYear,
    reference_date: date | str,
) -> list[ExamSessionResults]:
    """
    During the exam session only that session's results, otherwise the full history.
    """
    sessions = exam_sessions(tasks, academic_year, reference_date)
    current_id = current_exam_session_id(academic_year, reference_date)
    if current_id is not None:
        for s in sessions:
            if s.session_id == current_id:
                return [s]
    return sessions


def exam_session_for_date(academic_year: AcademicYear, on: date | str) -> Optional[str]:
    """Session id a new exam on this date is filed under (None outside the exam session)."""
    if academic_year.exam_session.contains(parse_date(on)):
        return academic_year.exam_session.id
    return None
