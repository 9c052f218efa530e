"""
Unit tests for task record (de)serialisation and date parsing.

Stored records use camelCase keys (startTime, semesterId, templateId, ...).
"""

import unittest
from datetime import date, datetime

from mysemester.model import InvalidDate, TaskRecord, js_weekday, link_legacy_instances, parse_date


class TestParseDate(unittest.TestCase):
    def test_accepts_iso_strings_and_dates(self) -> None:
        self.assertEqual(parse_date("2025-10-06"), date(2025, 10, 6))
        self.assertEqual(parse_date(date(2025, 10, 6)), date(2025, 10, 6))
        self.assertEqual(parse_date(datetime(2025, 10, 6, 14, 30)), date(2025, 10, 6))

    def test_rejects_invalid_values(self) -> None:
        for value in ("2025-13-01", "06.10.2025", "", None, 20251006):
            with self.subTest(value=value):
                with self.assertRaises(InvalidDate):
                    parse_date(value)

    def test_invalid_date_is_a_value_error(self) -> None:
        self.assertTrue(issubclass(InvalidDate, ValueError))

    def test_js_weekday(self) -> None:
        self.assertEqual(js_weekday(date(2025, 10, 5)), 0)  # Sunday
        self.assertEqual(js_weekday(date(2025, 10, 6)), 1)  # Monday
        self.assertEqual(js_weekday(date(2025, 10, 11)), 6)  # Saturday


class TestTaskRecordDict(unittest.TestCase):
    def test_from_dict_camel_case(self) -> None:
        task = TaskRecord.from_dict(
            {
                "id": "t1",
                "title": "Algorithms",
                "type": "course",
                "date": "2025-10-06",
                "completed": False,
                "startTime": "10:15",
                "endTime": "12:00",
                "semesterId": "first-2025",
                "startDate": "2025-09-29",
                "endDate": "2026-01-18",
                "frequency": "weekly",
                "dayOfWeek": 1,
            }
        )
        self.assertEqual(task.start_time, "10:15")
        self.assertEqual(task.start_date, date(2025, 9, 29))
        self.assertEqual(task.day_of_week, 1)
        self.assertTrue(task.is_template)
        self.assertFalse(task.is_instance)

    def test_to_dict_omits_unset_fields(self) -> None:
        task = TaskRecord(id="p1", title="Dentist", type="personal", date=date(2025, 10, 7), notes="bring ID")
        self.assertEqual(
            task.to_dict(),
            {"id": "p1", "title": "Dentist", "type": "personal", "date": "2025-10-07", "completed": False, "notes": "bring ID"},
        )

    def test_dict_roundtrip_keeps_instance_link(self) -> None:
        inst = TaskRecord(
            id="t1-2025-10-13",
            title="Algorithms",
            type="course",
            date=date(2025, 10, 13),
            semester_id="first-2025",
            start_date=date(2025, 10, 6),
            end_date=date(2025, 11, 3),
            frequency="weekly",
            template_id="t1",
            cancelled=True,
        )
        data = inst.to_dict()
        self.assertEqual(data["templateId"], "t1")
        self.assertTrue(data["cancelled"])
        self.assertEqual(TaskRecord.from_dict(data), inst)

    def _course(self, task_id: str, day: str) -> TaskRecord:
        return TaskRecord.from_dict(
            {
                "id": task_id,
                "title": "Algorithms",
                "type": "course",
                "date": day,
                "semesterId": "first-2025",
                "startDate": "2025-10-06",
                "endDate": "2025-11-03",
            }
        )

    def test_legacy_instance_is_linked_to_stored_template(self) -> None:
        template = self._course("1700000000000", "2025-10-06")
        legacy = self._course("1700000000000-2025-10-13", "2025-10-13")
        self.assertIsNone(legacy.template_id)

        linked = link_legacy_instances([legacy, template])
        self.assertEqual(linked[0].template_id, "1700000000000")
        self.assertTrue(linked[0].is_instance)
        self.assertTrue(linked[1].is_template)

    def test_template_with_date_suffix_stays_template(self) -> None:
        template = self._course("algo-2025-10-06", "2025-10-06")
        linked = link_legacy_instances([template])
        self.assertIsNone(linked[0].template_id)
        self.assertTrue(linked[0].is_template)

    def test_date_suffix_without_semester_is_standalone(self) -> None:
        task = TaskRecord.from_dict(
            {"id": "trip-2025-10-13", "title": "Trip", "type": "personal", "date": "2025-10-13"}
        )
        self.assertIsNone(task.template_id)
        self.assertFalse(task.is_instance)

    def test_missing_required_field(self) -> None:
        with self.assertRaises(ValueError):
            TaskRecord.from_dict({"id": "x", "title": "No date", "type": "personal"})

    def test_bad_date_raises_invalid_date(self) -> None:
        with self.assertRaises(InvalidDate):
            TaskRecord.from_dict({"id": "x", "title": "Bad", "type": "personal", "date": "tomorrow"})


if __name__ == "__main__":
    unittest.main()
