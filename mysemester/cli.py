"""
CLI (Command Line Interface).

This module provides terminal commands around the academic calendar and the
task list, e.g.:

    mysemester year [--year 2025]
    mysemester where [2025-11-03]
    mysemester week [2025-11-03]
    mysemester add "Dentist" --date 2025-11-04 --start 09:00 --end 10:00
    mysemester add-course "Algorithms" --day mon --start 10:15 --end 12:00
    mysemester add-exam "Statistics" --date 2026-01-21 --credits 6 --result 9
    mysemester done <task id>
    mysemester note <task id> <text>
    mysemester delete <task id>
    mysemester exams [2026-01-21]
    mysemester stats
    mysemester export <file.ics> [--from DATE] [--to DATE]

Note:
- "today" is only read here; the calendar and task modules take explicit dates
- every command fetches the task list, applies one change and persists the delta
- output is plain text
"""

from __future__ import annotations

import argparse
import logging
from datetime import date
from typing import Optional
from uuid import uuid4

from mysemester.config import Settings, load_settings, open_store
from mysemester.exams import TOTAL_YEAR_CREDITS, exam_session_for_date, sessions_to_show
from mysemester.export_ics import export_tasks_to_ics
from mysemester.model import (
    ACTIVITY_TYPES,
    EXAM_TYPES,
    FREQUENCIES,
    TASK_TYPES,
    AcademicYear,
    InvalidDate,
    TaskRecord,
    parse_date,
)
from mysemester.semester import (
    academic_year_for_date,
    create_academic_year,
    period_by_id,
    semester_defaults,
    week_number_for_date,
)
from mysemester.storage import StorageContext, StorageError, TaskStore, persist_change
from mysemester.tasks import (
    TaskChange,
    UnknownTask,
    add_task,
    delete_task,
    task_stats,
    tasks_for_date_range,
    tasks_for_week,
    toggle_complete,
    update_notes,
    week_bounds,
)

LOG = logging.getLogger(__name__)

WEEKDAYS = {
    "sun": 0, "sunday": 0,
    "mon": 1, "monday": 1,
    "tue": 2, "tuesday": 2,
    "wed": 3, "wednesday": 3,
    "thu": 4, "thursday": 4,
    "fri": 5, "friday": 5,
    "sat": 6, "saturday": 6,
}


def _parse_weekday(text: str) -> int:
    """
    Accept weekday names ("mon", "Monday") or numbers 0-6 (0 = Sunday).
    """
    key = text.strip().lower()
    if key in WEEKDAYS:
        return WEEKDAYS[key]
    if key.isdigit() and 0 <= int(key) <= 6:
        return int(key)
    raise argparse.ArgumentTypeError(f"invalid weekday: {text!r}")


def _parse_date_arg(text: str) -> date:
    try:
        return parse_date(text)
    except InvalidDate as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _academic_year(settings: Settings, on: date, explicit: Optional[int] = None) -> AcademicYear:
    if explicit is not None:
        return create_academic_year(explicit)
    if settings.academic_year is not None:
        return create_academic_year(settings.academic_year)
    return create_academic_year(academic_year_for_date(on))


def _format_task(task: TaskRecord) -> str:
    mark = "x" if task.completed else " "
    when = f"{task.start_time}-{task.end_time}" if task.start_time and task.end_time else "all day"
    line = f"[{mark}] {task.date.isoformat()} {when:<11} {task.type:<8} {task.title}  ({task.id})"
    if task.notes:
        line += f"\n      notes: {task.notes}"
    return line


def _apply(store: TaskStore, ctx: StorageContext, change: TaskChange) -> None:
    persist_change(store, ctx, change.upserts, change.deleted_ids)


# ---------------------------------------------------------------------------
# Calendar commands
# ---------------------------------------------------------------------------


def _cmd_year(args: argparse.Namespace, settings: Settings, today: date) -> int:
    """
    Print the periods of one academic year.
    """
    ay = _academic_year(settings, today, args.year)
    first = ay.first_semester
    print(f"Academic year {ay.year}/{ay.year + 1}")
    print(f"  {first.name:<16} {first.start_date} .. {first.end_date}  ({first.week_count} weeks)")
    print(f"  {'Winter recess':<16} {first.break_start} .. {first.break_end}")
    exam = ay.exam_session
    print(f"  {exam.name:<16} {exam.start_date} .. {exam.end_date}  ({exam.week_count} weeks)")
    print(f"  {'Break':<16} {ay.intersemestrial_break_start} .. {ay.intersemestrial_break_end}")
    second = ay.second_semester
    print(f"  {second.name:<16} {second.start_date} .. {second.end_date}  ({second.week_count} weeks)")
    return 0


def _cmd_where(args: argparse.Namespace, settings: Settings, today: date) -> int:
    """
    Print the period and week number of a date.
    """
    on = args.date or today
    ay = _academic_year(settings, on)
    label = week_number_for_date(on, ay)
    if label is None:
        print(f"{on}: outside the academic year {ay.year}/{ay.year + 1}")
    elif label.week == 0:
        print(f"{on}: {label.period}")
    else:
        print(f"{on}: {label.period}, week {label.week}")
    return 0


# ---------------------------------------------------------------------------
# Task commands
# ---------------------------------------------------------------------------


def _cmd_week(args: argparse.Namespace, settings: Settings, store: TaskStore, today: date) -> int:
    """
    Print all task occurrences of the Monday..Sunday week containing a date.
    """
    on = args.date or today
    ctx = settings.storage_context()
    tasks = store.fetch_all(ctx)
    start, end = week_bounds(on)

    ay = _academic_year(settings, on)
    label = week_number_for_date(on, ay)
    header = f"Week {start} .. {end}"
    if label is not None:
        header += f" | {label.period}" + (f" week {label.week}" if label.week else "")
    print(header)

    shown = tasks_for_week(tasks, on)
    if not shown:
        print("No tasks.")
        return 0
    for task in sorted(shown, key=lambda t: (t.date, t.start_time or "")):
        print(_format_task(task))
    return 0


def _cmd_add(args: argparse.Namespace, settings: Settings, store: TaskStore, today: date) -> int:
    """
    Add a one-off task.
    """
    title = (args.title or "").strip()
    if not title:
        print("Please provide a title.")
        return 1

    ctx = settings.storage_context()
    task = TaskRecord(
        id=uuid4().hex,
        title=title,
        type=args.type,
        date=args.date or today,
        description=args.description,
        start_time=args.start,
        end_time=args.end,
    )
    change = add_task(store.fetch_all(ctx), task)
    _apply(store, ctx, change)
    print(f"Added: {task.title} on {task.date} ({task.id})")
    return 0


def _cmd_add_course(args: argparse.Namespace, settings: Settings, store: TaskStore, today: date) -> int:
    """
    Add a course that repeats over a whole semester.
    """
    title = (args.title or "").strip()
    if not title:
        print("Please provide a title.")
        return 1

    on = args.date or today
    ay = _academic_year(settings, on)
    if args.semester:
        semester = period_by_id(ay, f"{args.semester}-{ay.year}")
    else:
        semester = semester_defaults(ay, on)
    if semester is None:
        print(f"Unknown semester: {args.semester}")
        return 1

    ctx = settings.storage_context()
    template = TaskRecord(
        id=uuid4().hex,
        title=title,
        type="course",
        date=semester.start_date,
        start_time=args.start,
        end_time=args.end,
        activity_type=args.activity,
        frequency=args.frequency,
        semester_id=semester.id,
        start_date=semester.start_date,
        end_date=semester.end_date,
        day_of_week=args.day,
    )
    change = add_task(store.fetch_all(ctx), template)
    _apply(store, ctx, change)
    print(f"Added course: {title} ({semester.name} {semester.start_date} .. {semester.end_date}, {args.frequency})")
    return 0


def _cmd_add_exam(args: argparse.Namespace, settings: Settings, store: TaskStore, today: date) -> int:
    """
    Add an exam, filed under the exam session when its date falls into one.
    """
    title = (args.title or "").strip()
    if not title:
        print("Please provide a title.")
        return 1

    ay = _academic_year(settings, args.date)
    ctx = settings.storage_context()
    exam = TaskRecord(
        id=uuid4().hex,
        title=title,
        type="exam",
        date=args.date,
        start_time=args.start,
        end_time=args.end,
        exam_type=args.exam_type,
        exam_session_id=exam_session_for_date(ay, args.date),
        exam_result=args.result,
        credits=args.credits,
    )
    change = add_task(store.fetch_all(ctx), exam)
    _apply(store, ctx, change)
    print(f"Added exam: {title} on {exam.date} ({exam.id})")
    return 0


def _cmd_done(args: argparse.Namespace, settings: Settings, store: TaskStore) -> int:
    ctx = settings.storage_context()
    change = toggle_complete(store.fetch_all(ctx), args.task_id)
    _apply(store, ctx, change)
    task = change.upserts[0]
    print(f"{'Completed' if task.completed else 'Reopened'}: {task.title} ({task.id})")
    return 0


def _cmd_note(args: argparse.Namespace, settings: Settings, store: TaskStore) -> int:
    ctx = settings.storage_context()
    change = update_notes(store.fetch_all(ctx), args.task_id, args.text)
    _apply(store, ctx, change)
    print(f"Notes saved: {args.task_id}")
    return 0


def _cmd_delete(args: argparse.Namespace, settings: Settings, store: TaskStore) -> int:
    ctx = settings.storage_context()
    change = delete_task(store.fetch_all(ctx), args.task_id)
    _apply(store, ctx, change)
    if change.deleted_ids:
        print(f"Deleted {len(change.deleted_ids)} record(s).")
    else:
        print(f"Removed occurrence: {args.task_id}")
    return 0


def _cmd_exams(args: argparse.Namespace, settings: Settings, store: TaskStore, today: date) -> int:
    """
    Print credit-weighted exam averages (current session during exams, else history).
    """
    on = args.date or today
    ay = _academic_year(settings, on)
    sessions = sessions_to_show(store.fetch_all(settings.storage_context()), ay, on)
    if not sessions:
        print("No exam results.")
        return 0

    for s in sessions:
        print(s.session_name)
        for exam in s.exams:
            kind = f" ({exam.exam_type.replace('_', ' ')})" if exam.exam_type else ""
            print(f"  {exam.title}{kind}: result {exam.exam_result:g}, credits {exam.credits:g}")
        print(f"  Total credits: {s.total_credits:g} / {TOTAL_YEAR_CREDITS}")
        if s.average is not None:
            print(f"  Weighted average: {s.average:.2f}")
    return 0


def _cmd_stats(args: argparse.Namespace, settings: Settings, store: TaskStore, today: date) -> int:
    """
    Print completion statistics for the academic year's occurrences.
    """
    ay = _academic_year(settings, today)
    tasks = tasks_for_date_range(
        store.fetch_all(settings.storage_context()),
        ay.first_semester.start_date,
        ay.second_semester.end_date,
    )
    stats = task_stats(tasks)
    print(f"Total: {stats['total']}  Completed: {stats['completed']}  Pending: {stats['pending']}")
    print(f"Courses: {stats['courses']}  Exams: {stats['exams']}  Personal: {stats['personal']}")
    print(f"Completion rate: {stats['completion_rate']}%")
    return 0


def _cmd_export(args: argparse.Namespace, settings: Settings, store: TaskStore, today: date) -> int:
    """
    Export task occurrences into an iCalendar (.ics) file.
    """
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .ics path.")
        return 1

    ay = _academic_year(settings, today)
    start = args.date_from or ay.first_semester.start_date
    end = args.date_to or ay.second_semester.end_date
    tasks = tasks_for_date_range(store.fetch_all(settings.storage_context()), start, end)
    if not tasks:
        print("No tasks to export.")
        return 0

    n = export_tasks_to_ics(tasks, out_path)
    print(f"Exported {n} events to: {out_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="mysemester", description="MySemester CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_year = sub.add_parser("year", help="Show the periods of an academic year")
    p_year.add_argument("--year", type=int, default=None, help="Academic start year (e.g. 2025)")

    p_where = sub.add_parser("where", help="Show period and week of a date")
    p_where.add_argument("date", type=_parse_date_arg, nargs="?", default=None, help="Date (YYYY-MM-DD)")

    p_week = sub.add_parser("week", help="Show the tasks of a week")
    p_week.add_argument("date", type=_parse_date_arg, nargs="?", default=None, help="Any date in the week")

    p_add = sub.add_parser("add", help="Add a one-off task")
    p_add.add_argument("title", type=str, help="Task title")
    p_add.add_argument("--type", choices=TASK_TYPES, default="personal")
    p_add.add_argument("--date", type=_parse_date_arg, default=None, help="Date (default: today)")
    p_add.add_argument("--start", type=str, default=None, help="Start time HH:MM")
    p_add.add_argument("--end", type=str, default=None, help="End time HH:MM")
    p_add.add_argument("--description", type=str, default=None)

    p_course = sub.add_parser("add-course", help="Add a course repeating over a semester")
    p_course.add_argument("title", type=str, help="Course title")
    p_course.add_argument("--day", type=_parse_weekday, required=True, help="Weekday (mon..sun or 0-6, 0 = Sunday)")
    p_course.add_argument("--frequency", choices=FREQUENCIES, default="weekly")
    p_course.add_argument("--activity", choices=ACTIVITY_TYPES, default="course")
    p_course.add_argument("--semester", choices=("first", "second"), default=None)
    p_course.add_argument("--date", type=_parse_date_arg, default=None, help="Pick the semester containing this date")
    p_course.add_argument("--start", type=str, default=None, help="Start time HH:MM")
    p_course.add_argument("--end", type=str, default=None, help="End time HH:MM")

    p_exam = sub.add_parser("add-exam", help="Add an exam")
    p_exam.add_argument("title", type=str, help="Exam title")
    p_exam.add_argument("--date", type=_parse_date_arg, required=True)
    p_exam.add_argument("--exam-type", choices=EXAM_TYPES, default="exam")
    p_exam.add_argument("--credits", type=float, default=None)
    p_exam.add_argument("--result", type=float, default=None)
    p_exam.add_argument("--start", type=str, default=None, help="Start time HH:MM")
    p_exam.add_argument("--end", type=str, default=None, help="End time HH:MM")

    p_done = sub.add_parser("done", help="Toggle completion of a task or occurrence")
    p_done.add_argument("task_id", type=str)

    p_note = sub.add_parser("note", help="Set the notes of a task or occurrence")
    p_note.add_argument("task_id", type=str)
    p_note.add_argument("text", type=str, help="Notes (empty text clears them)")

    p_delete = sub.add_parser("delete", help="Delete a task, a course or one occurrence")
    p_delete.add_argument("task_id", type=str)

    p_exams = sub.add_parser("exams", help="Show weighted exam averages")
    p_exams.add_argument("date", type=_parse_date_arg, nargs="?", default=None, help="Reference date")

    sub.add_parser("stats", help="Show task statistics for the academic year")

    p_export = sub.add_parser("export", help="Export tasks to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. out.ics)")
    p_export.add_argument("--from", dest="date_from", type=_parse_date_arg, default=None)
    p_export.add_argument("--to", dest="date_to", type=_parse_date_arg, default=None)

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings()
    except ValueError as exc:
        print(f"Configuration error: {exc}")
        raise SystemExit(2)

    store = open_store(settings)
    today = date.today()

    try:
        if args.command == "year":
            raise SystemExit(_cmd_year(args, settings, today))
        if args.command == "where":
            raise SystemExit(_cmd_where(args, settings, today))
        if args.command == "week":
            raise SystemExit(_cmd_week(args, settings, store, today))
        if args.command == "add":
            raise SystemExit(_cmd_add(args, settings, store, today))
        if args.command == "add-course":
            raise SystemExit(_cmd_add_course(args, settings, store, today))
        if args.command == "add-exam":
            raise SystemExit(_cmd_add_exam(args, settings, store, today))
        if args.command == "done":
            raise SystemExit(_cmd_done(args, settings, store))
        if args.command == "note":
            raise SystemExit(_cmd_note(args, settings, store))
        if args.command == "delete":
            raise SystemExit(_cmd_delete(args, settings, store))
        if args.command == "exams":
            raise SystemExit(_cmd_exams(args, settings, store, today))
        if args.command == "stats":
            raise SystemExit(_cmd_stats(args, settings, store, today))
        if args.command == "export":
            raise SystemExit(_cmd_export(args, settings, store, today))
    except UnknownTask as exc:
        print(f"Unknown task id: {exc.args[0]}")
        raise SystemExit(1)
    except StorageError as exc:
        LOG.debug("Storage failure", exc_info=True)
        print(f"Storage error: {exc}")
        raise SystemExit(1)
    except (InvalidDate, ValueError) as exc:
        print(f"Error: {exc}")
        raise SystemExit(1)

    raise SystemExit(2)
