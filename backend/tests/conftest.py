"""Pytest fixtures: file-backed SQLite database, fresh schema per test."""
import os
import uuid

SQLITE_URL = "sqlite:///./test.db"

# The application's own engine (lifespan seeding, scheduler sessions) must
# point at the same file as the test engine.
os.environ["DATABASE_URL"] = SQLITE_URL
os.environ["SYSTEM_USER_ID"] = "999"

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from ecotrack.config import settings
from ecotrack.database import Base, get_db
from ecotrack.main import app
from ecotrack.models.system import AUTO_APPROVE_LOGS, SystemSetting
from ecotrack.services import verification_service

# Import all models so they register with Base.metadata
from ecotrack.models.user import User                        # noqa: F401
from ecotrack.models.event import Event                      # noqa: F401
from ecotrack.models.participant import EventParticipant     # noqa: F401
from ecotrack.models.recycling_log import RecyclingLog       # noqa: F401
from ecotrack.models.notification import Notification        # noqa: F401
from ecotrack.models.system import SystemLog                 # noqa: F401


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session bound to the test engine."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Store uploaded images under a per-test directory."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


# ---------------------------------------------------------------------------
# Helpers: drive the API and return the JSON response dict
# ---------------------------------------------------------------------------
def as_user(user: dict) -> dict:
    """Headers identifying ``user`` as the caller."""
    return {"X-User-Id": str(user["id"])}


def create_test_user(client: TestClient, name: str = "Test User", role: str = "student",
                     email: str = None) -> dict:
    """Helper: POST /api/users and return response JSON."""
    email = email or f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:8]}@campus.edu"
    resp = client.post("/api/users/", json={"name": name, "email": email, "role": role})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(client: TestClient, organizer: dict, title: str = "Campus Cleanup",
                      reward: int = 10, **extra) -> dict:
    """Helper: POST /api/events and return response JSON."""
    payload = {
        "title": title,
        "event_type": "cleanup",
        "location": "Main Quad",
        "event_date": "2026-11-01T10:00:00+00:00",
        "eco_points_reward": reward,
        **extra,
    }
    resp = client.post("/api/events/", json=payload, headers=as_user(organizer))
    assert resp.status_code == 201, resp.text
    return resp.json()


def register_for_event(client: TestClient, user: dict, event: dict) -> dict:
    resp = client.post(f"/api/events/{event['id']}/register", headers=as_user(user))
    assert resp.status_code == 201, resp.text
    return resp.json()


def submit(client: TestClient, user: dict, files: dict = None, **fields):
    """POST /api/recycling/submit with form fields; returns the raw response."""
    data = {key: str(value) for key, value in fields.items() if value is not None}
    return client.post("/api/recycling/submit", data=data, files=files, headers=as_user(user))


def submit_ok(client: TestClient, user: dict, **fields) -> dict:
    """Submit and return the created log."""
    resp = submit(client, user, **fields)
    assert resp.status_code == 201, resp.text
    return resp.json()["log"]


def set_auto_approval(db, enabled: bool) -> None:
    """Write the auto-approval toggle straight to the settings table."""
    value = "true" if enabled else "false"
    setting = db.query(SystemSetting).filter(SystemSetting.setting_key == AUTO_APPROVE_LOGS).first()
    if setting is None:
        db.add(SystemSetting(setting_key=AUTO_APPROVE_LOGS, setting_value=value))
    else:
        setting.setting_value = value
    db.commit()


def setup_campus(client: TestClient):
    """An admin, an organizer, and a student registered for one event."""
    admin = create_test_user(client, name="Ada Admin", role="admin")
    organizer = create_test_user(client, name="Olu Organizer", role="organizer")
    student = create_test_user(client, name="Sam Student", role="student")
    event = create_test_event(client, organizer, reward=20)
    register_for_event(client, student, event)
    return admin, organizer, student, event


def approve_in_between(monkeypatch, session_factory, approver_id: int) -> None:
    """Commit a competing approval right after the engine has read the log as pending.

    Only the first read is interleaved; the competing approval itself runs
    through the unpatched path.
    """
    load_pending = verification_service._load_pending
    state = {"done": False}

    def _load_then_compete(db, log_id):
        log = load_pending(db, log_id)
        if not state["done"]:
            state["done"] = True
            other = session_factory()
            try:
                verification_service.approve_log(other, log_id, approver_id)
            finally:
                other.close()
        return log

    monkeypatch.setattr(verification_service, "_load_pending", _load_then_compete)
