"""
Unit tests for expanding semester course templates into occurrences.

Occurrence ids are "<template id>-<YYYY-MM-DD>".
day_of_week uses 0 = Sunday .. 6 = Saturday.
"""

import unittest
from datetime import date

from mysemester.model import TaskRecord
from mysemester.recurrence import expand_template, instance_id, is_recurring, occurrence_dates


def _template(**overrides) -> TaskRecord:
    base = dict(
        id="t1",
        title="Algorithms",
        type="course",
        date=date(2025, 10, 6),
        semester_id="first-2025",
        start_date=date(2025, 10, 6),
        end_date=date(2025, 11, 3),
        frequency="weekly",
        day_of_week=1,
    )
    base.update(overrides)
    return TaskRecord(**base)


class TestExpandTemplate(unittest.TestCase):
    def test_weekly_mondays(self) -> None:
        occs = expand_template(_template())
        self.assertEqual(
            [o.id for o in occs],
            ["t1-2025-10-06", "t1-2025-10-13", "t1-2025-10-20", "t1-2025-10-27", "t1-2025-11-03"],
        )
        self.assertEqual(occs[0].date, date(2025, 10, 6))
        self.assertEqual(occs[-1].date, date(2025, 11, 3))
        for occ in occs:
            self.assertEqual(occ.template_id, "t1")
            self.assertEqual(occ.title, "Algorithms")
            self.assertEqual(occ.semester_id, "first-2025")

    def test_biweekly(self) -> None:
        occs = expand_template(_template(frequency="biweekly"))
        self.assertEqual([o.date for o in occs], [date(2025, 10, 6), date(2025, 10, 20), date(2025, 11, 3)])

    def test_weekday_defaults_to_start_date(self) -> None:
        # 2025-10-08 is a Wednesday
        occs = expand_template(
            _template(start_date=date(2025, 10, 8), end_date=date(2025, 10, 29), day_of_week=None)
        )
        self.assertEqual(
            [o.date for o in occs],
            [date(2025, 10, 8), date(2025, 10, 15), date(2025, 10, 22), date(2025, 10, 29)],
        )

    def test_first_occurrence_moves_forward_to_weekday(self) -> None:
        occs = expand_template(_template(day_of_week=3, end_date=date(2025, 10, 20)))
        self.assertEqual([o.date for o in occs], [date(2025, 10, 8), date(2025, 10, 15)])

    def test_sunday_is_zero(self) -> None:
        occs = expand_template(_template(day_of_week=0, end_date=date(2025, 10, 26)))
        self.assertEqual([o.date for o in occs], [date(2025, 10, 12), date(2025, 10, 19), date(2025, 10, 26)])

    def test_no_occurrence_in_range_returns_template(self) -> None:
        template = _template(day_of_week=0, end_date=date(2025, 10, 11))
        self.assertEqual(expand_template(template), [template])

    def test_missing_fields_pass_through(self) -> None:
        for missing in ("semester_id", "start_date", "end_date", "frequency"):
            with self.subTest(missing=missing):
                task = _template(**{missing: None})
                self.assertFalse(is_recurring(task))
                self.assertEqual(expand_template(task), [task])
                self.assertEqual(occurrence_dates(task), [])

    def test_expansion_is_idempotent(self) -> None:
        template = _template(end_date=date(2026, 1, 18))
        first = [(o.id, o.date) for o in expand_template(template)]
        second = [(o.id, o.date) for o in expand_template(template)]
        self.assertEqual(first, second)
        self.assertEqual(len({i for i, _ in first}), len(first))

    def test_template_is_not_modified(self) -> None:
        template = _template()
        expand_template(template)
        self.assertEqual(template.id, "t1")
        self.assertIsNone(template.template_id)

    def test_instance_id(self) -> None:
        self.assertEqual(instance_id("abc", date(2025, 1, 5)), "abc-2025-01-05")


if __name__ == "__main__":
    unittest.main()
