from datetime import date

from flask import Blueprint, current_app, jsonify, request, send_file
from flask_login import login_required

from .errors import ValidationError
from .extensions import db
from .schemas import AttendanceUpsert, MarkCreate, MarkUpdate, StudentCreate, StudentUpdate, parse_body
from .services import attendance_excel
from .services.activity_log import ActivityLog
from .services.records import RecordsService
from .services.reports import ReportsService

api_bp = Blueprint("api", __name__)


@api_bp.before_request
@login_required
def require_session():
    """Every records route needs a logged-in principal."""


def records():
    return RecordsService(
        db.session, ActivityLog(db.session), current_app.config["ENFORCE_MARKS_LIMIT"]
    )


def reports():
    return ReportsService(db.session, current_app.config["TIMEZONE"])


def parse_day(name):
    v = request.args.get(name)
    if not v:
        return None
    try:
        return date.fromisoformat(v)
    except ValueError:
        raise ValidationError(f"bad {name} (use YYYY-MM-DD)")


# -----------------------------
# Students
# -----------------------------
@api_bp.get("/students")
def list_students():
    year = request.args.get("year")
    if year:
        try:
            year = int(year)
        except ValueError:
            raise ValidationError("year must be an integer")
    else:
        year = None
    students = records().list_students(
        search=request.args.get("search") or None,
        department=request.args.get("department") or None,
        year=year,
    )
    return jsonify([s.to_dict() for s in students])


@api_bp.get("/students/<int:sid>")
def get_student(sid):
    return jsonify(records().get_student(sid).to_dict())


@api_bp.post("/students")
def create_student():
    student = records().create_student(parse_body(StudentCreate))
    return jsonify({"success": True, "message": "Student added successfully", "id": student.id}), 201


@api_bp.put("/students/<int:sid>")
def update_student(sid):
    records().update_student(sid, parse_body(StudentUpdate))
    return jsonify({"success": True, "message": "Student updated successfully"})


@api_bp.delete("/students/<int:sid>")
def delete_student(sid):
    records().delete_student(sid)
    return jsonify({"success": True, "message": "Student deleted successfully"})


# -----------------------------
# Marks
# -----------------------------
@api_bp.get("/marks/<int:student_id>")
def student_marks(student_id):
    return jsonify(records().marks_for_student(student_id))


@api_bp.post("/marks")
def add_marks():
    entry = records().add_mark(parse_body(MarkCreate))
    return jsonify({"success": True, "message": "Marks added successfully", "id": entry.id}), 201


@api_bp.put("/marks/<int:mark_id>")
def update_marks(mark_id):
    records().update_mark(mark_id, parse_body(MarkUpdate))
    return jsonify({"success": True, "message": "Marks updated successfully"})


@api_bp.delete("/marks/<int:mark_id>")
def delete_marks(mark_id):
    records().delete_mark(mark_id)
    return jsonify({"success": True, "message": "Marks deleted successfully"})


@api_bp.get("/marks-summary")
def marks_summary():
    return jsonify(reports().marks_summary())


# -----------------------------
# Attendance
# -----------------------------
@api_bp.get("/attendance/<int:student_id>")
def student_attendance(student_id):
    return jsonify(records().attendance_for_student(
        student_id, parse_day("startDate"), parse_day("endDate")
    ))


@api_bp.post("/attendance")
def mark_attendance():
    body = parse_body(AttendanceUpsert)
    record, created = records().upsert_attendance(body.student_id, body.date, body.status)
    if created:
        return jsonify({"success": True, "message": "Attendance added successfully", "id": record.id})
    return jsonify({"success": True, "message": "Attendance updated successfully", "id": record.id})


@api_bp.get("/attendance-summary")
def attendance_summary():
    return jsonify(reports().attendance_summary())


@api_bp.get("/attendance/export")
def export_attendance():
    buf = attendance_excel.attendance_workbook(db.session)
    return send_file(
        buf,
        as_attachment=True,
        download_name=attendance_excel.EXPORT_FILENAME,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


# -----------------------------
# Dashboard
# -----------------------------
@api_bp.get("/dashboard/stats")
def dashboard_stats():
    return jsonify(reports().dashboard_stats())


@api_bp.get("/dashboard/department-chart")
def department_chart():
    return jsonify(reports().department_chart())


@api_bp.get("/dashboard/year-chart")
def year_chart():
    return jsonify(reports().year_chart())


@api_bp.get("/dashboard/recent-activities")
def recent_activities():
    return jsonify([e.to_dict() for e in ActivityLog(db.session).recent(15)])


# -----------------------------
# Admin panel (any logged-in principal)
# -----------------------------
@api_bp.get("/admin/users")
def admin_users():
    return jsonify(reports().all_users())


@api_bp.get("/admin/all-students")
def admin_all_students():
    return jsonify(reports().all_students())


@api_bp.get("/admin/all-marks")
def admin_all_marks():
    return jsonify(reports().all_marks())


@api_bp.get("/admin/all-attendance")
def admin_all_attendance():
    return jsonify(reports().all_attendance())
