"""Pytest fixtures — file-backed SQLite database per test, isolated and fast."""
import os
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

# Must be set before rollcall.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from rollcall.config import settings
from rollcall.database import Base, get_db
from rollcall.main import app
from rollcall.services.repository import RsvpRepository

# Import all models so they register with Base.metadata
from rollcall.models.event import Event, EventCoOrganizer  # noqa: F401
from rollcall.models.rsvp import EventRsvp  # noqa: F401
from rollcall.models.attendance_audit import AttendanceAuditEntry  # noqa: F401
from rollcall.models.feedback import EventFeedback  # noqa: F401

ORGANIZER = "organizer-1"


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'rollcall-test.db'}",
        connect_args={"check_same_thread": False, "timeout": 10},
    )

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
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def repo(db):
    return RsvpRepository(db)


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


@pytest.fixture(scope="function")
def cron_key(monkeypatch):
    """Configure a cron key for the duration of one test."""
    monkeypatch.setattr(settings, "CRON_API_KEY", "test-cron-key")
    return "test-cron-key"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def create_test_event(
    db,
    organizer_id: str = ORGANIZER,
    capacity: Optional[int] = None,
    waitlist_enabled: bool = True,
    co_organizers: Iterable[str] = (),
    start_time_utc: Optional[datetime] = None,
    title: str = "Test Event",
) -> str:
    """Insert an event row directly and return its id (events are managed elsewhere)."""
    event_id = str(uuid.uuid4())
    event_row = Event(
        event_id=event_id,
        title=title,
        organizer_id=organizer_id,
        capacity=capacity,
        waitlist_enabled=waitlist_enabled,
        start_time_utc=start_time_utc or datetime.now(timezone.utc),
    )
    event_row.co_organizers = [EventCoOrganizer(user_id=user_id) for user_id in co_organizers]
    db.add(event_row)
    db.commit()
    return event_id


def auth(user_id: str) -> dict:
    """Headers identifying the caller."""
    return {settings.AUTH_HEADER: user_id}
