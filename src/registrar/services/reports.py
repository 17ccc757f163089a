from datetime import datetime

import pytz
from sqlalchemy import case, func

from ..models import AttendanceRecord, MarkEntry, Student, UserAccount


def _percent(part, whole):
    return round(part * 100.0 / whole, 2) if whole else 0


class ReportsService:
    """Read-only aggregates for the dashboard and summary tables."""

    def __init__(self, session, timezone="Asia/Kolkata"):
        self.session = session
        self.tz = pytz.timezone(timezone)

    def today(self):
        return datetime.now(self.tz).date()

    def marks_summary(self):
        marks = (
            self.session.query(
                MarkEntry.student_id.label("student_id"),
                func.count(MarkEntry.id).label("subject_count"),
                func.sum(MarkEntry.marks).label("total_marks"),
                func.sum(MarkEntry.max_marks).label("max_marks"),
            )
            .group_by(MarkEntry.student_id)
            .subquery()
        )
        rows = (
            self.session.query(
                Student.id, Student.name, Student.register_number, Student.department,
                func.coalesce(marks.c.subject_count, 0),
                func.coalesce(marks.c.total_marks, 0),
                func.coalesce(marks.c.max_marks, 0),
            )
            .outerjoin(marks, marks.c.student_id == Student.id)
            .all()
        )
        out = []
        for sid, name, regno, dept, count, total, max_total in rows:
            out.append({
                "id": sid,
                "name": name,
                "register_number": regno,
                "department": dept,
                "subject_count": int(count),
                "total_marks": int(total),
                "max_marks": int(max_total),
                "average": round(total / count, 2) if count else 0,
            })
        out.sort(key=lambda r: r["average"], reverse=True)
        return out

    def attendance_summary(self):
        def status_count(status):
            return func.coalesce(func.sum(case((AttendanceRecord.status == status, 1), else_=0)), 0)

        rows = (
            self.session.query(
                Student.id, Student.name, Student.register_number, Student.department,
                func.count(AttendanceRecord.id),
                status_count("Present"),
                status_count("Absent"),
                status_count("Leave"),
            )
            .outerjoin(AttendanceRecord, AttendanceRecord.student_id == Student.id)
            .group_by(Student.id)
            .all()
        )
        out = []
        for sid, name, regno, dept, total, present, absent, leave in rows:
            out.append({
                "id": sid,
                "name": name,
                "register_number": regno,
                "department": dept,
                "total_days": int(total),
                "present_days": int(present),
                "absent_days": int(absent),
                "leave_days": int(leave),
                "percentage": _percent(int(present), int(total)),
            })
        out.sort(key=lambda r: r["percentage"], reverse=True)
        return out

    def dashboard_stats(self):
        # independent counts, no ordering between them
        total_students = Student.query.count()
        total_users = UserAccount.query.count()
        total_marks = MarkEntry.query.count()
        total_attendance = AttendanceRecord.query.count()
        total_departments = self.session.query(func.count(func.distinct(Student.department))).scalar() or 0
        present_today = (
            self.session.query(func.count(func.distinct(AttendanceRecord.student_id)))
            .filter(AttendanceRecord.date == self.today(), AttendanceRecord.status == "Present")
            .scalar() or 0
        )
        present_all = AttendanceRecord.query.filter_by(status="Present").count()

        return {
            "totalStudents": total_students,
            "totalUsers": total_users,
            "totalMarks": total_marks,
            "totalAttendance": total_attendance,
            "totalDepartments": total_departments,
            "todayAttendance": f"{present_today}/{total_students}",
            "averageAttendance": _percent(present_all, total_attendance),
        }

    def department_chart(self):
        count = func.count(Student.id).label("count")
        rows = (self.session.query(Student.department, count)
                .group_by(Student.department).order_by(count.desc(), Student.department).all())
        return [{"department": d, "count": c} for d, c in rows]

    def year_chart(self):
        rows = (self.session.query(Student.year, func.count(Student.id))
                .group_by(Student.year).order_by(Student.year.asc()).all())
        return [{"year": y, "count": c} for y, c in rows]

    # -----------------------------
    # Admin listings
    # -----------------------------
    def all_users(self):
        return [u.to_dict() for u in UserAccount.query.order_by(UserAccount.id.desc()).all()]

    def all_students(self):
        return [s.to_dict() for s in Student.query.order_by(Student.id.desc()).all()]

    def all_marks(self):
        return [m.to_dict() for m in MarkEntry.query.order_by(MarkEntry.id.desc()).all()]

    def all_attendance(self):
        return [a.to_dict() for a in AttendanceRecord.query.order_by(AttendanceRecord.id.desc()).all()]
