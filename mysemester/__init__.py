"""
MySemester: academic-year calendar and recurring course tasks.

The pure core lives in:
- mysemester.semester    (periods, date classification, week numbers)
- mysemester.recurrence  (semester course templates -> dated occurrences)
- mysemester.tasks       (date-range views and task operations)
- mysemester.exams       (credit-weighted exam averages per session)
"""

