"""
Shared pytest fixtures.

Every test gets its own in-memory SQLite database so that services can
commit and roll back freely without leaking state between tests.
"""

import os

# Set testing mode BEFORE any app imports
os.environ["STUDIO_ENVIRONMENT"] = "test"
os.environ["STUDIO_DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

from datetime import datetime, timedelta
from typing import Any, Callable, Generator, Iterator

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from studio_scheduler.api.dependencies import get_db
from studio_scheduler.core.identity import Actor
from studio_scheduler.database import Base
from studio_scheduler.main import app
from studio_scheduler.models.booking import Booking, BookingStatus
from studio_scheduler.models.calendar_event import CalendarEvent, EventType

# Import models so Base.metadata is populated for create_all.
import studio_scheduler.models  # noqa: F401


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def member() -> Actor:
    return Actor(user_id="member-1", user_name="Ana Dancer", role="member")


@pytest.fixture
def other_member() -> Actor:
    return Actor(user_id="member-2", user_name="Ben Mover", role="member")


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin-1", user_name="Studio Admin", role="admin")


@pytest.fixture
def make_booking(db: Session) -> Callable[..., Booking]:
    """Insert a booking directly, bypassing admission checks."""

    def _make(**overrides: Any) -> Booking:
        start = overrides.pop("start_time", datetime(2025, 3, 10, 18, 0))
        fields = {
            "studio_id": "studio-1-big",
            "user_id": "member-1",
            "user_name": "Ana Dancer",
            "start_time": start,
            "end_time": overrides.pop("end_time", start + timedelta(hours=1)),
            "purpose": "Rehearsal",
            "status": BookingStatus.PENDING.value,
        }
        fields.update(overrides)
        booking = Booking(**fields)
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def make_event(db: Session) -> Callable[..., CalendarEvent]:
    def _make(**overrides: Any) -> CalendarEvent:
        start = overrides.pop("start_time", datetime(2025, 3, 10, 18, 0))
        fields = {
            "title": "Salsa Basics",
            "studio_id": "studio-1-big",
            "event_type": EventType.CLASS.value,
            "start_time": start,
            "end_time": overrides.pop("end_time", start + timedelta(hours=1)),
            "instructor_name": "Carla",
        }
        fields.update(overrides)
        event = CalendarEvent(**fields)
        db.add(event)
        db.commit()
        return event

    return _make


@pytest.fixture
def client(session_factory: sessionmaker) -> Generator[TestClient, None, None]:
    def _override_get_db() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(actor: Actor) -> dict:
    return {"X-User-Id": actor.user_id, "X-User-Name": actor.user_name, "X-User-Role": actor.role}


@pytest.fixture
def member_headers(member: Actor) -> dict:
    return auth_headers(member)


@pytest.fixture
def admin_headers(admin: Actor) -> dict:
    return auth_headers(admin)


@pytest.fixture
def other_member_headers(other_member: Actor) -> dict:
    return auth_headers(other_member)
