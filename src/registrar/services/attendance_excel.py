from io import BytesIO

import pandas as pd

from ..models import AttendanceRecord, Student

EXPORT_FILENAME = "attendance.xlsx"
COLUMNS = ["Register Number", "Student Name", "Department", "Year", "Date", "Status"]


def attendance_frame(session):
    """Attendance register joined with student details, newest day first."""
    rows = (
        session.query(
            Student.register_number, Student.name, Student.department, Student.year,
            AttendanceRecord.date, AttendanceRecord.status,
        )
        .join(Student, AttendanceRecord.student_id == Student.id)
        .order_by(AttendanceRecord.date.desc(), Student.register_number)
        .all()
    )
    return pd.DataFrame([tuple(r) for r in rows], columns=COLUMNS)


def attendance_workbook(session):
    """Build the Excel export in memory"""
    buf = BytesIO()
    attendance_frame(session).to_excel(buf, index=False, sheet_name="Attendance")
    buf.seek(0)
    return buf
