from datetime import date

import pytest

from registrar.extensions import db
from registrar.models import Student
from registrar.schemas import MarkCreate
from registrar.services.activity_log import ActivityLog
from registrar.services.records import RecordsService
from registrar.services.reports import ReportsService


@pytest.fixture
def records(ctx):
    return RecordsService(db.session, ActivityLog(db.session))


@pytest.fixture
def reports(ctx):
    return ReportsService(db.session, "Asia/Kolkata")


def _student(regno):
    return Student.query.filter_by(register_number=regno).one()


def test_marks_summary_zero_fills_students_without_marks(records, reports):
    john = _student("CS21A001")
    records.add_mark(MarkCreate(student_id=john.id, subject="Maths", marks=90))
    records.add_mark(MarkCreate(student_id=john.id, subject="Physics", marks=70))

    rows = reports.marks_summary()
    assert len(rows) == 5
    assert rows[0]["id"] == john.id
    assert rows[0]["subject_count"] == 2
    assert rows[0]["total_marks"] == 160
    assert rows[0]["max_marks"] == 200
    assert rows[0]["average"] == 80.0
    for row in rows[1:]:
        assert (row["subject_count"], row["total_marks"], row["max_marks"], row["average"]) == (0, 0, 0, 0)


def test_attendance_summary_percentages(records, reports):
    jane = _student("CS21A002")
    records.upsert_attendance(jane.id, date(2024, 1, 1), "Present")
    records.upsert_attendance(jane.id, date(2024, 1, 2), "Present")
    records.upsert_attendance(jane.id, date(2024, 1, 3), "Absent")

    rows = reports.attendance_summary()
    top = rows[0]
    assert top["id"] == jane.id
    assert (top["total_days"], top["present_days"], top["absent_days"], top["leave_days"]) == (3, 2, 1, 0)
    assert top["percentage"] == 66.67
    assert all(r["percentage"] == 0 and r["total_days"] == 0 for r in rows[1:])


def test_dashboard_stats(records, reports):
    john = _student("CS21A001")
    mike = _student("EC21A001")
    today = reports.today()
    records.upsert_attendance(john.id, today, "Present")
    records.upsert_attendance(mike.id, today, "Absent")
    records.add_mark(MarkCreate(student_id=john.id, subject="Maths", marks=40))

    stats = reports.dashboard_stats()
    assert stats["totalStudents"] == 5
    assert stats["totalUsers"] == 2
    assert stats["totalMarks"] == 1
    assert stats["totalAttendance"] == 2
    assert stats["totalDepartments"] == 4
    assert stats["todayAttendance"] == "1/5"
    assert stats["averageAttendance"] == 50.0


def test_dashboard_stats_on_empty_attendance(reports):
    stats = reports.dashboard_stats()
    assert stats["averageAttendance"] == 0
    assert stats["todayAttendance"] == "0/5"


def test_charts(reports):
    departments = reports.department_chart()
    assert departments[0] == {"department": "CSE", "count": 2}
    assert sum(d["count"] for d in departments) == 5
    assert reports.year_chart() == [
        {"year": 1, "count": 2}, {"year": 2, "count": 2}, {"year": 3, "count": 1},
    ]


def test_admin_user_listing_hides_password_hashes(reports):
    users = reports.all_users()
    assert len(users) == 2
    assert all("password_hash" not in u for u in users)
