import logging

from .extensions import db
from .models import AdminAccount, Student, UserAccount
from .services.authentication.credentials import CredentialStore, new_uid

logger = logging.getLogger(__name__)

DEFAULT_ADMIN = {"username": "admin", "password": "admin123", "email": "admin@school.edu"}

SAMPLE_USERS = [
    {"email": "user@school.edu", "name": "Demo User", "phone": "+919876543210", "password": "user123"},
    {"email": "student@school.edu", "name": "Demo Student", "phone": "+919876543211", "password": "student123"},
]

SAMPLE_STUDENTS = [
    {"name": "John Doe", "register_number": "CS21A001", "department": "CSE", "year": 1,
     "email": "john.cs21a001@school.edu", "phone": "+919999999901"},
    {"name": "Jane Smith", "register_number": "CS21A002", "department": "CSE", "year": 1,
     "email": "jane.cs21a002@school.edu", "phone": "+919999999902"},
    {"name": "Mike Johnson", "register_number": "EC21A001", "department": "ECE", "year": 2,
     "email": "mike.ec21a001@school.edu", "phone": "+919999999903"},
    {"name": "Sarah Wilson", "register_number": "ME21A001", "department": "MECH", "year": 2,
     "email": "sarah.me21a001@school.edu", "phone": "+919999999904"},
    {"name": "Tom Brown", "register_number": "IT21A001", "department": "IT", "year": 3,
     "email": "tom.it21a001@school.edu", "phone": "+919999999905"},
]


def reset_database(app):
    """Drop every table, create them again and load the demo data."""
    db.drop_all()
    db.create_all()
    if app.config.get("SEED_DEMO_DATA", True):
        seed(CredentialStore(db.session, app.config.get("PASSWORD_HASH_METHOD")))


def seed(credentials):
    db.session.add(AdminAccount(
        username=DEFAULT_ADMIN["username"],
        email=DEFAULT_ADMIN["email"],
        password_hash=credentials.hash_password(DEFAULT_ADMIN["password"]),
    ))
    for u in SAMPLE_USERS:
        db.session.add(UserAccount(
            uid=new_uid("user_"),
            email=u["email"],
            password_hash=credentials.hash_password(u["password"]),
            display_name=u["name"],
            phone=u["phone"],
            email_verified=True,
            auth_provider="email",
        ))
    for s in SAMPLE_STUDENTS:
        db.session.add(Student(email_verified=True, **s))
    db.session.commit()

    logger.info("Default admin user created: %s / %s", DEFAULT_ADMIN["username"], DEFAULT_ADMIN["password"])
    logger.info("Seeded %d sample users and %d sample students", len(SAMPLE_USERS), len(SAMPLE_STUDENTS))
