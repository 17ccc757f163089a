from registrar.extensions import db
from registrar.models import SessionToken, as_utc, utcnow
from datetime import timedelta

NEW_STUDENT = {
    "name": "Ravi Kumar", "register_number": "EE22A001", "department": "EEE",
    "year": 1, "email": "ravi@school.edu", "phone": "+919111111111",
}


def test_student_crud(admin_client):
    res = admin_client.post("/api/students", json=NEW_STUDENT)
    assert res.status_code == 201
    sid = res.get_json()["id"]

    assert admin_client.get(f"/api/students/{sid}").get_json()["register_number"] == "EE22A001"

    update = {k: v for k, v in NEW_STUDENT.items() if k != "register_number"}
    update["year"] = 2
    assert admin_client.put(f"/api/students/{sid}", json=update).status_code == 200
    assert admin_client.get(f"/api/students/{sid}").get_json()["year"] == 2

    assert admin_client.delete(f"/api/students/{sid}").status_code == 200
    res = admin_client.get(f"/api/students/{sid}")
    assert res.status_code == 404
    assert res.get_json() == {"error": "Student not found"}


def test_duplicate_student_is_400(admin_client):
    admin_client.post("/api/students", json=NEW_STUDENT)
    res = admin_client.post("/api/students", json=NEW_STUDENT)
    assert res.status_code == 400
    assert res.get_json()["error"] == "Register number or email already exists"


def test_student_validation(admin_client):
    res = admin_client.post("/api/students", json={"name": "x"})
    assert res.status_code == 400
    assert res.get_json()["error"].startswith("missing field")


def test_student_list_filters(admin_client):
    rows = admin_client.get("/api/students?department=CSE&year=1").get_json()
    assert {r["register_number"] for r in rows} == {"CS21A001", "CS21A002"}
    rows = admin_client.get("/api/students?search=sarah").get_json()
    assert [r["name"] for r in rows] == ["Sarah Wilson"]
    assert admin_client.get("/api/students?year=abc").status_code == 400


def test_marks_routes(admin_client):
    sid = admin_client.get("/api/students?search=CS21A001").get_json()[0]["id"]
    res = admin_client.post("/api/marks", json={"student_id": sid, "subject": "Maths", "marks": 75})
    assert res.status_code == 201
    mark_id = res.get_json()["id"]

    body = admin_client.get(f"/api/marks/{sid}").get_json()
    assert body["total"] == 75 and body["percentage"] == 75.0

    res = admin_client.put(f"/api/marks/{mark_id}", json={"subject": "Maths", "marks": 150, "max_marks": 100})
    assert res.status_code == 400

    assert admin_client.delete(f"/api/marks/{mark_id}").status_code == 200
    body = admin_client.get(f"/api/marks/{sid}").get_json()
    assert (body["total"], body["average"], body["percentage"]) == (0, 0, 0)

    summary = admin_client.get("/api/marks-summary").get_json()
    assert len(summary) == 5


def test_marks_for_unknown_student(admin_client):
    res = admin_client.post("/api/marks", json={"student_id": 999, "subject": "Maths", "marks": 10})
    assert res.status_code == 404


def test_attendance_routes(admin_client):
    sid = admin_client.get("/api/students?search=CS21A002").get_json()[0]["id"]
    payload = {"student_id": sid, "date": "2024-05-01", "status": "Present"}
    res = admin_client.post("/api/attendance", json=payload)
    assert res.get_json()["message"] == "Attendance added successfully"
    res = admin_client.post("/api/attendance", json={**payload, "status": "Absent"})
    assert res.get_json()["message"] == "Attendance updated successfully"

    body = admin_client.get(f"/api/attendance/{sid}?startDate=2024-05-01&endDate=2024-05-31").get_json()
    assert body["total"] == 1
    assert body["absent"] == 1
    assert body["percentage"] == 0

    res = admin_client.post("/api/attendance", json={**payload, "status": "Late"})
    assert res.status_code == 400
    assert admin_client.get(f"/api/attendance/{sid}?startDate=May").status_code == 400

    rows = admin_client.get("/api/attendance-summary").get_json()
    assert len(rows) == 5


def test_attendance_export(admin_client):
    sid = admin_client.get("/api/students?search=IT21A001").get_json()[0]["id"]
    admin_client.post("/api/attendance", json={"student_id": sid, "date": "2024-05-01", "status": "Leave"})
    res = admin_client.get("/api/attendance/export")
    assert res.status_code == 200
    assert res.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert res.data[:2] == b"PK"


def test_dashboard_routes(admin_client):
    stats = admin_client.get("/api/dashboard/stats").get_json()
    assert stats["totalStudents"] == 5
    assert admin_client.get("/api/dashboard/department-chart").status_code == 200
    assert admin_client.get("/api/dashboard/year-chart").get_json()[0] == {"year": 1, "count": 2}

    activities = admin_client.get("/api/dashboard/recent-activities").get_json()
    assert activities[0]["action"] == "LOGIN"
    assert len(activities) <= 15


def test_admin_listings_need_only_a_session(client):
    client.post("/api/auth/login", json={"username": "user@school.edu", "password": "user123"})
    for path in ("/api/admin/users", "/api/admin/all-students", "/api/admin/all-marks",
                 "/api/admin/all-attendance"):
        assert client.get(path).status_code == 200


def test_expired_session_row_is_ignored_by_default(admin_client, app):
    with app.app_context():
        for row in SessionToken.query.all():
            row.expires_at = utcnow() - timedelta(hours=1)
        db.session.commit()
    assert admin_client.get("/api/students").status_code == 200


def test_expired_session_row_rejected_when_enforced(admin_client, app):
    app.config["ENFORCE_SESSION_EXPIRY"] = True
    assert admin_client.get("/api/students").status_code == 200
    with app.app_context():
        row = SessionToken.query.one()
        assert as_utc(row.expires_at) > utcnow()
        row.expires_at = utcnow() - timedelta(hours=1)
        db.session.commit()
    assert admin_client.get("/api/students").status_code == 401
    assert admin_client.get("/api/auth/status").get_json() == {"authenticated": False}
