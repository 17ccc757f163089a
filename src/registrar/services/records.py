from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..errors import DuplicateKey, NotFound, ValidationError
from ..models import AttendanceRecord, MarkEntry, Student


def _round2(value):
    return round(value, 2)


class RecordsService:
    """Students, their marks and their daily attendance."""

    def __init__(self, session, activity, enforce_marks_limit=True):
        self.session = session
        self.activity = activity
        self.enforce_marks_limit = enforce_marks_limit

    # -----------------------------
    # Students
    # -----------------------------
    def get_student(self, student_id):
        student = self.session.get(Student, student_id)
        if student is None:
            raise NotFound("Student not found")
        return student

    def list_students(self, search=None, department=None, year=None):
        q = Student.query
        if search:
            pattern = f"%{search}%"
            q = q.filter(or_(Student.name.ilike(pattern), Student.register_number.ilike(pattern)))
        if department:
            q = q.filter(Student.department == department)
        if year is not None:
            q = q.filter(Student.year == year)
        return q.order_by(Student.created_at.desc(), Student.id.desc()).all()

    def _commit_unique(self):
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise DuplicateKey("Register number or email already exists")

    def create_student(self, data):
        student = Student(
            name=data.name,
            register_number=data.register_number,
            department=data.department,
            year=data.year,
            email=data.email,
            phone=data.phone,
        )
        self.session.add(student)
        self._commit_unique()
        self.activity.record("ADD_STUDENT", f"Added student {student.name} ({student.register_number})")
        return student

    def update_student(self, student_id, data):
        student = self.get_student(student_id)
        student.name = data.name
        student.department = data.department
        student.year = data.year
        student.email = data.email
        student.phone = data.phone
        self._commit_unique()
        self.activity.record("UPDATE_STUDENT", f"Updated student ID {student_id}")
        return student

    def delete_student(self, student_id):
        student = self.get_student(student_id)
        name, regno = student.name, student.register_number
        # marks and attendance go with it
        self.session.delete(student)
        self.session.commit()
        self.activity.record("DELETE_STUDENT", f"Deleted student {name} ({regno})")

    # -----------------------------
    # Marks
    # -----------------------------
    def _check_marks(self, marks, max_marks):
        if not self.enforce_marks_limit:
            return
        if marks < 0 or marks > max_marks:
            raise ValidationError(f"marks must be between 0 and {max_marks}")

    def add_mark(self, data):
        student = self.get_student(data.student_id)
        self._check_marks(data.marks, data.max_marks)
        entry = MarkEntry(
            student_id=student.id,
            subject=data.subject,
            marks=data.marks,
            max_marks=data.max_marks,
        )
        self.session.add(entry)
        self.session.commit()
        self.activity.record("ADD_MARKS", f"Added marks for {student.name} in {entry.subject}")
        return entry

    def _get_mark(self, mark_id):
        entry = self.session.get(MarkEntry, mark_id)
        if entry is None:
            raise NotFound("Marks entry not found")
        return entry

    def update_mark(self, mark_id, data):
        entry = self._get_mark(mark_id)
        self._check_marks(data.marks, data.max_marks)
        entry.subject = data.subject
        entry.marks = data.marks
        entry.max_marks = data.max_marks
        self.session.commit()
        self.activity.record("UPDATE_MARKS", f"Updated marks ID {mark_id}")
        return entry

    def delete_mark(self, mark_id):
        entry = self._get_mark(mark_id)
        self.session.delete(entry)
        self.session.commit()
        self.activity.record("DELETE_MARKS", f"Deleted marks ID {mark_id}")

    def marks_for_student(self, student_id):
        self.get_student(student_id)
        entries = (MarkEntry.query.filter_by(student_id=student_id)
                   .order_by(MarkEntry.created_at.desc(), MarkEntry.id.desc()).all())

        total = sum(m.marks for m in entries)
        max_total = sum(m.max_marks for m in entries)
        average = _round2(total / len(entries)) if entries else 0
        percentage = _round2(total / max_total * 100) if max_total > 0 else 0
        return {
            "marks": [m.to_dict() for m in entries],
            "total": total,
            "average": average,
            "percentage": percentage,
            "subjectCount": len(entries),
            "maxTotal": max_total,
        }

    # -----------------------------
    # Attendance
    # -----------------------------
    def upsert_attendance(self, student_id, day, status):
        """One record per (student, day): overwrite the status or insert a new row."""
        student = self.get_student(student_id)
        existing = AttendanceRecord.query.filter_by(student_id=student_id, date=day).first()
        if existing is not None:
            existing.status = status
            self.session.commit()
            return existing, False

        record = AttendanceRecord(student_id=student_id, date=day, status=status)
        self.session.add(record)
        try:
            self.session.commit()
        except IntegrityError:
            # a concurrent request inserted the same day first; last write wins
            self.session.rollback()
            existing = AttendanceRecord.query.filter_by(student_id=student_id, date=day).one()
            existing.status = status
            self.session.commit()
            return existing, False

        self.activity.record("ATTENDANCE", f"Marked {student.name} as {status} on {day.isoformat()}")
        return record, True

    def attendance_for_student(self, student_id, start_date=None, end_date=None):
        self.get_student(student_id)
        q = AttendanceRecord.query.filter_by(student_id=student_id)
        if start_date:
            q = q.filter(AttendanceRecord.date >= start_date)
        if end_date:
            q = q.filter(AttendanceRecord.date <= end_date)
        records = q.order_by(AttendanceRecord.date.desc()).all()

        present = sum(1 for r in records if r.status == "Present")
        absent = sum(1 for r in records if r.status == "Absent")
        leave = sum(1 for r in records if r.status == "Leave")
        total = len(records)
        percentage = _round2(present / total * 100) if total > 0 else 0
        return {
            "records": [r.to_dict() for r in records],
            "present": present,
            "absent": absent,
            "leave": leave,
            "total": total,
            "percentage": percentage,
        }
