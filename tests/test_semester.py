"""
Unit tests for the academic calendar engine.

Reference year 2025:
- first semester 2025-09-29 .. 2026-01-18, winter recess 2025-12-22 .. 2026-01-04
- exam session   2026-01-19 .. 2026-02-08
- break          2026-02-09 .. 2026-02-15
- second semester 2026-02-16 .. 2026-05-24
"""

import unittest
from datetime import date, timedelta

from mysemester.semester import (
    WeekLabel,
    academic_year_for_date,
    classify_date,
    compute_first_semester,
    create_academic_year,
    semester_defaults,
    week_number_for_date,
    week_number_in_period,
)


class TestAcademicYear2025(unittest.TestCase):
    def setUp(self) -> None:
        self.ay = create_academic_year(2025)

    def test_first_semester_dates(self) -> None:
        first = self.ay.first_semester
        # Oct 2nd 2025 is a Thursday -> week counting starts Monday Sep 29
        self.assertEqual(first.start_date, date(2025, 9, 29))
        self.assertEqual(first.break_start, date(2025, 12, 22))
        self.assertEqual(first.break_end, date(2026, 1, 4))
        self.assertEqual(first.end_date, date(2026, 1, 18))
        self.assertEqual(first.id, "first-2025")
        self.assertEqual(first.week_count, 14)

    def test_following_periods(self) -> None:
        self.assertEqual(self.ay.exam_session.start_date, date(2026, 1, 19))
        self.assertEqual(self.ay.exam_session.end_date, date(2026, 2, 8))
        self.assertEqual(self.ay.exam_session.id, "exam-2025")
        self.assertEqual(self.ay.intersemestrial_break_start, date(2026, 2, 9))
        self.assertEqual(self.ay.intersemestrial_break_end, date(2026, 2, 15))
        self.assertEqual(self.ay.second_semester.start_date, date(2026, 2, 16))
        self.assertEqual(self.ay.second_semester.end_date, date(2026, 5, 24))
        self.assertEqual(self.ay.second_semester.id, "second-2025")

    def test_to_dict_uses_iso_strings(self) -> None:
        data = self.ay.to_dict()
        self.assertEqual(data["firstSemester"]["startDate"], "2025-09-29")
        self.assertEqual(data["firstSemester"]["breakStart"], "2025-12-22")
        self.assertEqual(data["intersemestrialBreakEnd"], "2026-02-15")
        self.assertEqual(data["year"], 2025)

    def test_classify_boundaries(self) -> None:
        cases = {
            "2025-09-28": None,
            "2025-09-29": "first",
            "2025-12-21": "first",
            "2025-12-22": "break",
            "2026-01-04": "break",
            "2026-01-05": "first",
            "2026-01-18": "first",
            "2026-01-19": "exam",
            "2026-02-08": "exam",
            "2026-02-09": "break",
            "2026-02-15": "break",
            "2026-02-16": "second",
            "2026-05-24": "second",
            "2026-05-25": None,
        }
        for day, expected in cases.items():
            with self.subTest(day=day):
                self.assertEqual(classify_date(day, self.ay), expected)

    def test_classify_covers_whole_year_without_gaps(self) -> None:
        d = self.ay.first_semester.start_date
        while d <= self.ay.second_semester.end_date:
            self.assertIn(classify_date(d, self.ay), {"first", "exam", "break", "second"})
            d += timedelta(days=1)

    def test_week_numbers_first_semester(self) -> None:
        cases = {
            "2025-09-29": 1,
            "2025-10-02": 1,
            "2025-10-06": 2,
            "2025-12-15": 12,
            "2025-12-21": 12,
            "2026-01-05": 13,
            "2026-01-12": 14,
            "2026-01-18": 14,
        }
        for day, week in cases.items():
            with self.subTest(day=day):
                self.assertEqual(week_number_for_date(day, self.ay), WeekLabel("First Semester", week))

    def test_recess_week_is_not_counted(self) -> None:
        start = self.ay.first_semester.start_date
        self.assertEqual(week_number_in_period("2025-12-24", start, self.ay), 0)
        self.assertEqual(week_number_in_period("2025-12-30", start, self.ay), 0)
        self.assertEqual(week_number_for_date("2025-12-24", self.ay), WeekLabel("Break", 0))

    def test_week_numbers_exam_and_second(self) -> None:
        self.assertEqual(week_number_for_date("2026-01-19", self.ay), WeekLabel("Exam Session", 1))
        self.assertEqual(week_number_for_date("2026-02-02", self.ay), WeekLabel("Exam Session", 3))
        self.assertEqual(week_number_for_date("2026-02-11", self.ay), WeekLabel("Break", 0))
        self.assertEqual(week_number_for_date("2026-02-16", self.ay), WeekLabel("Second Semester", 1))
        self.assertEqual(week_number_for_date("2026-05-18", self.ay), WeekLabel("Second Semester", 14))

    def test_week_caps(self) -> None:
        exam_start = self.ay.exam_session.start_date
        self.assertEqual(week_number_in_period("2026-03-02", exam_start, self.ay), 3)
        # without an academic year there is nothing to cap against
        self.assertEqual(week_number_in_period("2026-03-02", exam_start), 7)
        second_start = self.ay.second_semester.start_date
        self.assertEqual(week_number_in_period("2026-07-01", second_start, self.ay), 14)

    def test_before_period_start_is_zero(self) -> None:
        self.assertEqual(week_number_in_period("2025-09-28", "2025-09-29", self.ay), 0)

    def test_outside_year_is_none(self) -> None:
        self.assertIsNone(week_number_for_date("2025-07-01", self.ay))
        self.assertIsNone(week_number_for_date("2026-06-15", self.ay))

    def test_semester_defaults(self) -> None:
        self.assertEqual(semester_defaults(self.ay, "2025-11-01").id, "first-2025")
        self.assertEqual(semester_defaults(self.ay, "2026-01-25").id, "second-2025")
        self.assertEqual(semester_defaults(self.ay, "2026-03-01").id, "second-2025")


class TestOtherYears(unittest.TestCase):
    def test_weekend_anchor_moves_to_next_monday(self) -> None:
        # Oct 2nd 2021 is a Saturday
        first = compute_first_semester(2021)
        self.assertEqual(first.start_date, date(2021, 10, 4))
        self.assertEqual(first.break_start, date(2021, 12, 20))
        self.assertEqual(first.break_end, date(2022, 1, 2))
        # only 11 weeks before the recess, so 3 weeks follow it
        self.assertEqual(first.end_date, date(2022, 1, 23))

        ay = create_academic_year(2021)
        self.assertEqual(week_number_for_date("2021-12-13", ay), WeekLabel("First Semester", 11))
        self.assertEqual(week_number_for_date("2022-01-03", ay), WeekLabel("First Semester", 12))
        self.assertEqual(week_number_for_date("2022-01-17", ay), WeekLabel("First Semester", 14))

    def test_christmas_on_friday(self) -> None:
        first = compute_first_semester(2026)
        self.assertEqual(first.start_date, date(2026, 9, 28))
        self.assertEqual(first.break_start, date(2026, 12, 21))
        self.assertEqual(first.break_end, date(2027, 1, 3))
        self.assertEqual(first.end_date, date(2027, 1, 17))

    def test_christmas_on_monday(self) -> None:
        first = compute_first_semester(2023)
        self.assertEqual(first.start_date, date(2023, 10, 2))
        self.assertEqual(first.break_start, date(2023, 12, 25))
        self.assertEqual(first.break_end, date(2024, 1, 7))
        self.assertEqual(first.end_date, date(2024, 1, 21))

    def test_invariants_for_many_years(self) -> None:
        for year in range(2000, 2061):
            with self.subTest(year=year):
                ay = create_academic_year(year)
                first = ay.first_semester
                exam = ay.exam_session
                second = ay.second_semester

                for start in (first.start_date, first.break_start, exam.start_date,
                              ay.intersemestrial_break_start, second.start_date):
                    self.assertEqual(start.weekday(), 0)
                for end in (first.end_date, first.break_end, exam.end_date,
                            ay.intersemestrial_break_end, second.end_date):
                    self.assertEqual(end.weekday(), 6)

                weeks_before = (first.break_start - first.start_date).days // 7
                weeks_after = (first.end_date - first.break_end).days // 7
                self.assertEqual(weeks_before + weeks_after, 14)
                self.assertEqual((exam.end_date - exam.start_date).days + 1, 21)
                self.assertEqual(
                    (ay.intersemestrial_break_end - ay.intersemestrial_break_start).days + 1, 7
                )
                self.assertEqual((second.end_date - second.start_date).days + 1, 98)

                self.assertLess(first.end_date, exam.start_date)
                self.assertLessEqual(exam.start_date, exam.end_date)
                self.assertLess(exam.end_date, ay.intersemestrial_break_start)
                self.assertLess(ay.intersemestrial_break_end, second.start_date)

                # the last instructional week is week 14
                last = week_number_for_date(first.end_date, ay)
                self.assertEqual(last, WeekLabel("First Semester", 14))

    def test_same_year_same_result(self) -> None:
        self.assertEqual(create_academic_year(2030), create_academic_year(2030))

    def test_academic_year_for_date(self) -> None:
        self.assertEqual(academic_year_for_date("2025-09-28"), 2024)
        self.assertEqual(academic_year_for_date("2025-09-29"), 2025)
        self.assertEqual(academic_year_for_date("2026-03-01"), 2025)


if __name__ == "__main__":
    unittest.main()
