"""
Academic calendar engine.

Computes the four periods of an academic year starting in `year`:

    first semester (with winter recess) -> exam session -> break -> second semester

Rules:
- the first semester's week counting starts on the Monday of the week of October 2nd
  (or the following Monday when October 2nd is a Saturday or Sunday)
- the winter recess starts on the Monday of Christmas week and lasts until the
  Monday of the second week of January
- both semesters have 14 instructional weeks, recess weeks are not counted
- the first semester normally has 2 weeks after the recess; in years where
  October 2nd falls on a weekend only 11 weeks precede the recess, so it gets 3
- the exam session lasts 3 weeks, the inter-semester break 1 week

All functions are pure and work on calendar dates only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from mysemester.model import AcademicYear, FirstSemester, Period, parse_date


SEMESTER_WEEKS = 14
EXAM_WEEKS = 3
BREAK_WEEKS = 1

FIRST_SEMESTER = "first"
EXAM_SESSION = "exam"
BREAK = "break"
SECOND_SEMESTER = "second"

ONE_WEEK = timedelta(weeks=1)


@dataclass(frozen=True)
class WeekLabel:
    period: str
    week: int


def monday_of(d: date) -> date:
    """Monday of the (Monday-based) week containing d."""
    return d - timedelta(days=d.weekday())


def next_monday(d: date) -> date:
    """First Monday strictly after d."""
    return monday_of(d) + ONE_WEEK


def _weeks_between(start_monday: date, later_monday: date) -> int:
    return (later_monday - start_monday).days // 7


def compute_first_semester(year: int) -> FirstSemester:
    anchor = date(year, 10, 2)
    if anchor.weekday() >= 5:
        start = next_monday(anchor)
    else:
        start = monday_of(anchor)

    christmas = date(year, 12, 25)
    if christmas.weekday() == 4:
        # Christmas on Friday: recess starts on the Wednesday before.
        recess_start = monday_of(christmas - timedelta(days=2))
    else:
        recess_start = monday_of(christmas)

    resume = monday_of(date(year + 1, 1, 1)) + ONE_WEEK
    recess_end = resume - timedelta(days=1)

    weeks_before = _weeks_between(start, recess_start)
    # Normally 12 + 2; a weekend anchor leaves only 11 weeks before the recess.
    weeks_after = max(SEMESTER_WEEKS - weeks_before, 0)
    end = resume + timedelta(weeks=weeks_after) - timedelta(days=1)

    return FirstSemester(
        id=f"first-{year}",
        name="First Semester",
        start_date=start,
        end_date=end,
        week_count=SEMESTER_WEEKS,
        year=year,
        break_start=recess_start,
        break_end=recess_end,
    )


def compute_exam_session(first_semester_end: date, year: Optional[int] = None) -> Period:
    start = next_monday(first_semester_end)
    year = first_semester_end.year - 1 if year is None else year
    return Period(
        id=f"exam-{year}",
        name="Exam Session",
        start_date=start,
        end_date=start + timedelta(days=EXAM_WEEKS * 7 - 1),
        week_count=EXAM_WEEKS,
        year=year,
    )


def compute_break(exam_end: date) -> tuple[date, date]:
    start = next_monday(exam_end)
    return start, start + timedelta(days=BREAK_WEEKS * 7 - 1)


def compute_second_semester(break_end: date, year: Optional[int] = None) -> Period:
    start = next_monday(break_end)
    year = break_end.year - 1 if year is None else year
    return Period(
        id=f"second-{year}",
        name="Second Semester",
        start_date=start,
        end_date=start + timedelta(weeks=SEMESTER_WEEKS - 1, days=6),
        week_count=SEMESTER_WEEKS,
        year=year,
    )


def create_academic_year(year: int) -> AcademicYear:
    """
    Build the complete academic year that starts in autumn of `year`.
    """
    first = compute_first_semester(year)
    exam = compute_exam_session(first.end_date, year)
    break_start, break_end = compute_break(exam.end_date)
    second = compute_second_semester(break_end, year)
    return AcademicYear(
        first_semester=first,
        exam_session=exam,
        second_semester=second,
        intersemestrial_break_start=break_start,
        intersemestrial_break_end=break_end,
        year=year,
    )


def academic_year_for_date(value: date | str) -> int:
    """
    Return the academic start year a date belongs to.

    Dates before the first semester of their calendar year belong to the
    academic year that started the previous autumn.
    """
    d = parse_date(value)
    if d >= compute_first_semester(d.year).start_date:
        return d.year
    return d.year - 1


def classify_date(value: date | str, academic_year: AcademicYear) -> Optional[str]:
    """
    Return which period a date falls into: "first", "exam", "break", "second" or None.

    The winter recess is checked first so that recess days never count as "first".
    """
    d = parse_date(value)
    first = academic_year.first_semester

    if first.in_recess(d):
        return BREAK
    if first.start_date <= d < first.break_start or first.break_end < d <= first.end_date:
        return FIRST_SEMESTER
    if academic_year.exam_session.contains(d):
        return EXAM_SESSION
    if academic_year.intersemestrial_break_start <= d <= academic_year.intersemestrial_break_end:
        return BREAK
    if academic_year.second_semester.contains(d):
        return SECOND_SEMESTER
    return None


def week_number_in_period(
    value: date | str,
    period_start: date | str,
    academic_year: Optional[AcademicYear] = None,
) -> int:
    """
    Week number (1-based, weeks start on Monday) of a date within a period.

    Returns 0 for dates before the period and for winter recess weeks.
    For the first semester the recess is skipped: weeks before it count
    1..K, weeks from the resume Monday on continue at K+1 (capped at 14).
    The exam session is capped at 3 and the second semester at 14 weeks;
    without an academic year the count is not capped.
    """
    d = parse_date(value)
    start_week = monday_of(parse_date(period_start))
    date_week = monday_of(d)

    if date_week < start_week:
        return 0

    if academic_year is not None and start_week == academic_year.first_semester.start_date:
        first = academic_year.first_semester
        recess_week = monday_of(first.break_start)
        resume_week = first.break_end + timedelta(days=1)
        weeks_before = _weeks_between(start_week, recess_week)

        if recess_week <= date_week < resume_week:
            return 0
        if date_week >= resume_week:
            return min(weeks_before + _weeks_between(resume_week, date_week) + 1, SEMESTER_WEEKS)
        return min(_weeks_between(start_week, date_week) + 1, weeks_before)

    week = _weeks_between(start_week, date_week) + 1
    if academic_year is not None:
        if start_week == academic_year.second_semester.start_date:
            return min(week, SEMESTER_WEEKS)
        if start_week == academic_year.exam_session.start_date:
            return min(week, EXAM_WEEKS)
    return week


def week_number_for_date(value: date | str, academic_year: AcademicYear) -> Optional[WeekLabel]:
    """
    Period name and week number for a date, e.g. WeekLabel("First Semester", 3).

    Break days give WeekLabel("Break", 0); dates outside the year give None.
    """
    period = classify_date(value, academic_year)
    if period is None:
        return None
    if period == BREAK:
        return WeekLabel("Break", 0)

    if period == FIRST_SEMESTER:
        target = academic_year.first_semester
        week = week_number_in_period(value, target.start_date, academic_year)
    elif period == EXAM_SESSION:
        target = academic_year.exam_session
        week = week_number_in_period(value, target.start_date, academic_year)
    else:
        target = academic_year.second_semester
        week = week_number_in_period(value, target.start_date, academic_year)

    if week == 0:
        return None
    return WeekLabel(target.name, week)


def semester_defaults(academic_year: AcademicYear, on: date | str) -> Period:
    """
    The semester a recurring course created on `on` is scheduled for.

    Dates within the first semester's range pick the first semester,
    everything else the second one.
    """
    d = parse_date(on)
    if academic_year.first_semester.contains(d):
        return academic_year.first_semester
    return academic_year.second_semester


def period_by_id(academic_year: AcademicYear, period_id: str) -> Optional[Period]:
    for period in (academic_year.first_semester, academic_year.exam_session, academic_year.second_semester):
        if period.id == period_id:
            return period
    return None
