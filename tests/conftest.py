from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app
from app.core.config import Config
from app.core.extensions import db
from app.core.mail import Mailer, init_mailer
from app.core.models import seed_demo_data


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-jwt-secret"
    FRONTEND_URL = "http://frontend.test"


class RecordingMailer(Mailer):
    def __init__(self) -> None:
        super().__init__("smtp.test", 25, "", "", "no-reply@example.com")
        self.sent: list[dict[str, str]] = []
        self.fail = False

    def send(self, to: str, subject: str, body_text: str, body_html: str | None = None) -> bool:
        if self.fail:
            return False
        self.sent.append({"to": to, "subject": subject, "text": body_text})
        return True


@pytest.fixture
def app(tmp_path):
    class _Config(TestConfig):
        EXPORT_DIR = str(tmp_path / "exports")

    app = create_app(_Config)
    init_mailer(app, RecordingMailer())
    # Requests push their own app context so per-request state (the loaded
    # user on ``g``) does not leak between calls.
    with app.app_context():
        db.create_all()
        seed_demo_data(db.session)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def mailer(app) -> RecordingMailer:
    return app.extensions["mailer"]


@pytest.fixture
def login(client):
    def _login(email: str = "admin@example.com", password: str = "admin123"):
        return client.post("/api/auth/login", json={"email": email, "password": password})

    return _login


@pytest.fixture
def auth_headers(login):
    response = login()
    token = response.get_json()["data"]["tokens"]["accessToken"]
    return {"Authorization": f"Bearer {token}"}
