"""
Pytest configuration and fixtures.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_ENV"] = "test"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["SENDGRID_FROM_EMAIL"] = ""
os.environ["EMAIL_RETRY_DELAY_SECONDS"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from printshop.main import app
from printshop.core.deps import get_db
from printshop.core.security import hash_password, create_access_token
from printshop.database import Base
from printshop.models.auth_models import User, ROLE_ADMIN, ROLE_USER, STATUS_ACTIVE
from printshop.services import email_service

PASSWORD = "Secret@123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enforce_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    """Session for arranging data and checking results outside the app."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """API test client bound to the per-test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def outbox(monkeypatch):
    """Capture outgoing mail instead of calling SendGrid."""
    sent = []

    def otp_mail(to_email, otp, purpose):
        sent.append({"to": to_email, "otp": otp, "purpose": purpose})

    def verification_mail(to_email, token):
        sent.append({"to": to_email, "token": token, "kind": "verify"})

    def reset_mail(to_email, token):
        sent.append({"to": to_email, "token": token, "kind": "reset"})

    monkeypatch.setattr(email_service, "send_otp_email", otp_mail)
    monkeypatch.setattr(email_service, "send_verification_email", verification_mail)
    monkeypatch.setattr(email_service, "send_password_reset_email", reset_mail)
    return sent


def make_user(db, email, role=ROLE_USER, status=STATUS_ACTIVE, verified=True, name="Test User", password=PASSWORD):
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        status=status,
        email_verified=verified,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bearer(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def regular_user(db):
    return make_user(db, "user@mail.com", name="Regular User")


@pytest.fixture
def admin_user(db):
    return make_user(db, "admin@mail.com", role=ROLE_ADMIN, name="Admin User")


@pytest.fixture
def user_headers(regular_user):
    return bearer(regular_user)


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture
def cart():
    return {
        "items": [
            {"name": "Visiting Cards", "quantity": 2, "options": {"paper": "matte", "sides": 2}},
            {"name": "Stickers", "description": "Round", "icon": "🏷️", "quantity": 100},
        ],
        "customerInfo": {"name": "Asha", "email": "asha@mail.com", "phone": "9876543210"},
        "deliveryInfo": {"deliveryType": "delivery", "deliveryAddress": "12 Strand Rd", "deliveryDate": "2026-11-02"},
        "preferences": {"urgency": "urgent", "contactMethod": "whatsapp"},
    }
