import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
INSTANCE_DIR = Path(__file__).resolve().parents[2] / "instance"


def _flag(name, default):
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{INSTANCE_DIR / 'student_management.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")

    # drop, recreate and seed every table when the app starts
    RESET_DB_ON_START = _flag("RESET_DB_ON_START", "true")
    SEED_DEMO_DATA = _flag("SEED_DEMO_DATA", "true")

    OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "300"))
    EMAIL_TOKEN_TTL_SECONDS = int(os.getenv("EMAIL_TOKEN_TTL_SECONDS", str(24 * 3600)))
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", str(24 * 3600)))
    PERMANENT_SESSION_LIFETIME = SESSION_TTL_SECONDS

    # None -> werkzeug's default method
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD") or None

    # also require the persisted session row to be alive on every request
    ENFORCE_SESSION_EXPIRY = _flag("ENFORCE_SESSION_EXPIRY", "false")
    ENFORCE_MARKS_LIMIT = _flag("ENFORCE_MARKS_LIMIT", "true")

    TIMEZONE = os.getenv("TIMEZONE", "Asia/Kolkata")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
