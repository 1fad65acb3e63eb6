"""
Shared fixtures.

The app is pointed at an in-memory SQLite database before it is imported,
tables are rebuilt for every test, and outgoing email is captured by a fake.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["MAIL_BACKEND"] = "console"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from main import app
from api.v1.models.user import User
from api.v1.utils.database import Base, SessionLocal, engine
from api.v1.utils.dependencies import get_email_service
from api.v1.utils.exceptions import EmailDeliveryError

API = "/api/v1"


class FakeEmailService:
    def __init__(self):
        self.otps = []
        self.welcomes = []
        self.fail_otp = False
        self.fail_welcome = False

    def send_otp(self, email, full_name, otp):
        if self.fail_otp:
            raise EmailDeliveryError()
        self.otps.append({"email": email, "full_name": full_name, "otp": otp})

    def send_welcome_email(self, email, full_name):
        if self.fail_welcome:
            raise EmailDeliveryError()
        self.welcomes.append(email)

    def last_otp(self, email):
        for sent in reversed(self.otps):
            if sent["email"] == email:
                return sent["otp"]
        return None


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def mailer():
    return FakeEmailService()


@pytest.fixture
def client(mailer):
    app.dependency_overrides[get_email_service] = lambda: mailer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


def fetch_user(email):
    with SessionLocal() as session:
        return session.scalar(select(User).where(User.email == email))


def register_and_activate(client, mailer, full_name="Alice", email="alice@x.com", pin="1234"):
    response = client.post(
        f"{API}/auth/register", json={"fullName": full_name, "email": email}
    )
    assert response.status_code in (200, 201), response.text

    response = client.post(
        f"{API}/auth/verify-otp",
        json={"email": email, "otp": mailer.last_otp(email.lower())},
    )
    assert response.status_code == 200, response.text

    response = client.post(
        f"{API}/auth/set-pin",
        json={"email": email, "pin": pin, "confirmPin": pin},
    )
    assert response.status_code == 200, response.text
    return response.json()["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client, mailer):
    return bearer(register_and_activate(client, mailer))


@pytest.fixture
def bob(client, mailer):
    return bearer(
        register_and_activate(client, mailer, full_name="Bob", email="bob@y.com", pin="4321")
    )
