"""
iCalendar (.ics) export.

We convert task occurrences into a calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar

Tasks with both a start and an end time become timed events,
all other tasks become all-day events.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable

from mysemester.model import TaskRecord


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(task: TaskRecord, time_hh_mm: str) -> str:
    """
    Combine the task date and a 'HH:MM' time into 'YYYYMMDDTHHMM00'.
    """
    t = datetime.strptime(time_hh_mm.strip(), "%H:%M").time()
    return datetime.combine(task.date, t).strftime("%Y%m%dT%H%M00")


def _summary(task: TaskRecord) -> str:
    title = task.title.strip() or "MySemester Task"
    if task.type == "course" and task.activity_type and task.activity_type != "course":
        return f"{title} ({task.activity_type})"
    if task.type == "exam" and task.exam_type:
        return f"{title} ({task.exam_type.replace('_', ' ')})"
    return title


def export_tasks_to_ics(tasks: Iterable[TaskRecord], out_path: str | Path) -> int:
    """
    Export task occurrences to an .ics file. Returns number of exported events.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//MySemester//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    count = 0
    for task in tasks:
        if task.cancelled:
            continue

        timed = bool(task.start_time and task.end_time)
        if timed:
            try:
                dtstart = "DTSTART:" + _dt_local(task, task.start_time or "")
                dtend = "DTEND:" + _dt_local(task, task.end_time or "")
            except ValueError:
                timed = False
        if not timed:
            dtstart = "DTSTART;VALUE=DATE:" + task.date.strftime("%Y%m%d")
            dtend = "DTEND;VALUE=DATE:" + (task.date + timedelta(days=1)).strftime("%Y%m%d")

        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(task.id)}@mysemester")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(dtstart)
        lines.append(dtend)
        lines.append(f"SUMMARY:{_ics_escape(_summary(task))}")
        details = [text.strip() for text in (task.description, task.notes) if text and text.strip()]
        if details:
            lines.append("DESCRIPTION:" + _ics_escape("\n".join(details)))
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
