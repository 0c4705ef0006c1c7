"""Shared pytest fixtures."""

import os

# Must be set before the app (and its settings) are imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core import database
from app.core.database import Base, get_redis
from app.core.security import UserRole, create_token_pair, get_password_hash
from app.models.user import User

TEST_PASSWORD = "TestPassword123"

@pytest.fixture(scope="session")
def client():
    # Entering the client runs the startup hook, which calls init_db()
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture(autouse=True)
def test_db(client):
    Base.metadata.create_all(bind=database.engine)
    yield
    Base.metadata.drop_all(bind=database.engine)

@pytest.fixture(autouse=True)
def redis_mock():
    """Rate limiter store; an unseen key means a fresh window."""
    mock = MagicMock()
    mock.get.return_value = None
    app.dependency_overrides[get_redis] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_redis, None)

@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def make_user(db):
    def _make_user(name, role=UserRole.PATIENT, email=None, is_active=True):
        user = User(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@example.com",
            password_hash=get_password_hash(TEST_PASSWORD),
            role=role,
            is_active=is_active,
            is_verified=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user

def auth_headers(user):
    tokens = create_token_pair(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {tokens.access_token}"}

def future(days=1, hours=0):
    return (datetime.utcnow() + timedelta(days=days, hours=hours)).isoformat()

@pytest.fixture
def people(make_user):
    """Two patients, two doctors and an admin."""
    return {
        "p": make_user("Pat Patient"),
        "q": make_user("Quinn Patient"),
        "d": make_user("Dana Doctor", role=UserRole.DOCTOR),
        "e": make_user("Eli Doctor", role=UserRole.DOCTOR),
        "a": make_user("Ada Admin", role=UserRole.ADMIN),
    }

@pytest.fixture
def book(client):
    """Book an appointment through the API and return its JSON body."""
    def _book(caller, doctor, patient=None, days=1, reason="Annual checkup", **extra):
        payload = {
            "doctor": doctor.id,
            "appointmentDate": future(days),
            "appointmentTime": "10:30",
            "reason": reason,
            **extra,
        }
        if patient is not None:
            payload["patient"] = patient.id
        response = client.post("/api/appointments", json=payload, headers=auth_headers(caller))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _book

@pytest.fixture
def record(client):
    """Create a health record through the API and return its JSON body."""
    def _record(caller, patient, title="Routine vitals", record_type="vital-signs", **extra):
        payload = {"patient": patient.id, "recordType": record_type, "title": title, **extra}
        response = client.post("/api/health-records", json=payload, headers=auth_headers(caller))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _record

@pytest.fixture
def care(client):
    """Assign a preventive care item through the API and return its JSON body."""
    def _care(caller, patient, title="Flu vaccination", days=3, care_type="vaccination", **extra):
        payload = {
            "patient": patient.id,
            "careType": care_type,
            "title": title,
            "scheduledDate": future(days),
            **extra,
        }
        response = client.post("/api/preventive-care", json=payload, headers=auth_headers(caller))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _care
