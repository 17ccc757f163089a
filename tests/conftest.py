import pytest

from registrar import create_app
from registrar.config import Config
from registrar.extensions import db


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret"
    RESET_DB_ON_START = True
    SEED_DEMO_DATA = True
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    ENFORCE_SESSION_EXPIRY = False
    ENFORCE_MARKS_LIMIT = True


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    res = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert res.status_code == 200
    return client


@pytest.fixture
def ctx(app):
    with app.test_request_context():
        yield app
