# src/registrar/models.py
from datetime import datetime, timezone
from flask import current_app, session as cookie
from flask_login import UserMixin
from .extensions import db, login_manager


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Return a timezone-aware UTC datetime (SQLite hands back naive values)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_utc(dt):
    """Serialize datetime to ISO 8601 UTC with trailing Z."""
    if dt is None:
        return None
    return as_utc(dt).isoformat().replace("+00:00", "Z")


# ---------- Principals ----------
class AdminAccount(db.Model, UserMixin):
    __tablename__ = "admin"
    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(200), unique=True)
    phone = db.Column(db.String(20))
    role = db.Column(db.String(16), nullable=False, default="admin")
    auth_provider = db.Column(db.String(16), nullable=False, default="email")

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # ids of both principal tables share one cookie namespace
    def get_id(self):
        return f"admin:{self.id}"

    @property
    def principal_name(self):
        return self.username


class UserAccount(db.Model, UserMixin):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)

    uid = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=True)
    # phone-only accounts have no email
    phone = db.Column(db.String(20), index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    display_name = db.Column(db.String(150))
    photo_url = db.Column(db.String(500))

    auth_provider = db.Column(db.String(16), nullable=False, default="email")
    # "email", "phone", "google" or "facebook"
    provider_id = db.Column(db.String(500))

    email_verified = db.Column(db.Boolean, default=False, nullable=False)
    phone_verified = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    last_login = db.Column(db.DateTime, default=utcnow, nullable=False)

    def get_id(self):
        return f"user:{self.id}"

    @property
    def role(self):
        return "user"

    @property
    def principal_name(self):
        return self.email or self.phone

    def to_dict(self):
        return {
            "id": self.id,
            "uid": self.uid,
            "email": self.email,
            "display_name": self.display_name,
            "phone": self.phone,
            "auth_provider": self.auth_provider,
            "email_verified": self.email_verified,
            "phone_verified": self.phone_verified,
            "created_at": iso_utc(self.created_at),
            "last_login": iso_utc(self.last_login),
        }


# ---------- Verification ledger ----------
class OtpChallenge(db.Model):
    __tablename__ = "otp_verification"
    id = db.Column(db.Integer, primary_key=True)

    phone = db.Column(db.String(20), nullable=False, index=True)
    code = db.Column(db.String(6), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    verified = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)


class EmailVerificationToken(db.Model):
    __tablename__ = "email_verification"
    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(200), nullable=False, index=True)
    token = db.Column(db.String(128), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    verified = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)


# ---------- Session ----------
class SessionToken(db.Model):
    __tablename__ = "sessions"
    id = db.Column(db.Integer, primary_key=True)

    session_token = db.Column(db.String(128), unique=True, nullable=False)
    principal_id = db.Column(db.Integer, nullable=False)
    role = db.Column(db.String(16), nullable=False)
    # "admin" rows point at admin.id, "user" rows at users.id
    expires_at = db.Column(db.DateTime, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)


# ---------- Academic records ----------
class Student(db.Model):
    __tablename__ = "students"
    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(150), nullable=False)
    register_number = db.Column(db.String(50), unique=True, nullable=False)
    department = db.Column(db.String(100), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    phone = db.Column(db.String(20))
    email_verified = db.Column(db.Boolean, default=False, nullable=False)
    phone_verified = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # relationships
    marks = db.relationship(
        "MarkEntry",
        backref="student",
        lazy=True,
        cascade="all,delete-orphan"
    )
    attendance = db.relationship(
        "AttendanceRecord",
        backref="student",
        lazy=True,
        cascade="all,delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "register_number": self.register_number,
            "department": self.department,
            "year": self.year,
            "email": self.email,
            "phone": self.phone,
            "email_verified": self.email_verified,
            "phone_verified": self.phone_verified,
            "created_at": iso_utc(self.created_at),
            "updated_at": iso_utc(self.updated_at),
        }


class MarkEntry(db.Model):
    __tablename__ = "marks"
    id = db.Column(db.Integer, primary_key=True)

    student_id = db.Column(
        db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject = db.Column(db.String(150), nullable=False)
    marks = db.Column(db.Integer, nullable=False)
    max_marks = db.Column(db.Integer, nullable=False, default=100)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "subject": self.subject,
            "marks": self.marks,
            "max_marks": self.max_marks,
            "created_at": iso_utc(self.created_at),
        }


class AttendanceRecord(db.Model):
    __tablename__ = "attendance"
    id = db.Column(db.Integer, primary_key=True)

    student_id = db.Column(
        db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(10), nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("student_id", "date", name="uq_attendance_student_day"),
        db.CheckConstraint("status IN ('Present', 'Absent', 'Leave')", name="ck_attendance_status"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "date": self.date.isoformat(),
            "status": self.status,
            "created_at": iso_utc(self.created_at),
        }


# ---------- Activity log ----------
class ActivityLogEntry(db.Model):
    __tablename__ = "activity_log"
    id = db.Column(db.Integer, primary_key=True)

    action = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "action": self.action,
            "description": self.description,
            "created_at": iso_utc(self.created_at),
        }


@login_manager.user_loader
def load_principal(principal_id):
    role, _, pk = principal_id.partition(":")
    try:
        pk = int(pk)
    except ValueError:
        return None
    model = {"admin": AdminAccount, "user": UserAccount}.get(role)
    if model is None:
        return None

    if current_app.config.get("ENFORCE_SESSION_EXPIRY"):
        row = SessionToken.query.filter_by(session_token=cookie.get("session_token")).first()
        if row is None or utcnow() > as_utc(row.expires_at):
            return None
    return db.session.get(model, pk)
