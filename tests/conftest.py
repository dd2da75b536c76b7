import os
import tempfile
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

_TEST_DB_DIR = tempfile.mkdtemp(prefix="ticketing-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ["DB_CONNECT_MAX_RETRIES"] = "1"

import pytest
from fastapi.testclient import TestClient

from src.api.auth import issue_token
from src.application.account_service import hash_password, to_principal
from src.domain.principal import Role
from src.domain.state_machine import EventStatus
from src.infrastructure.db.models import Base, Event
from src.infrastructure.db.session import SessionLocal, engine, get_db_session
from src.infrastructure.repositories.user_repository import UserRepository
from src.main import app

PASSWORD = "password123"
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _insert_user(session, role: Role, name: str | None):
    suffix = uuid4().hex[:8]
    user = UserRepository(session).insert(
        name=name or f"{role.value}-{suffix}",
        email=f"{role.value}-{suffix}@example.com",
        password_hash=_PASSWORD_HASH,
        role=role,
    )
    return to_principal(user)


def _insert_event(session, organizer_id, status, total_seats, price, title, date=None):
    event = Event(
        title=title,
        description="An evening of live music",
        date=date or datetime(2030, 6, 1, 19, 0) + timedelta(minutes=len(title)),
        location="Main Hall",
        price=Decimal(price),
        total_seats=total_seats,
        available_seats=total_seats,
        organizer_id=organizer_id,
        status=status,
    )
    session.add(event)
    session.flush()
    return event


# -----------------------------
# Helpers sharing the test's own session (unit tests)
# -----------------------------
@pytest.fixture
def add_user(db):
    def _add(role: Role = Role.USER, name: str | None = None):
        return _insert_user(db, role, name)

    return _add


@pytest.fixture
def add_event(db):
    def _add(
        organizer_id: str | None,
        status: EventStatus = EventStatus.APPROVED,
        total_seats: int = 50,
        price: str = "20.00",
        title: str = "Jazz Night",
        date: datetime | None = None,
    ) -> Event:
        return _insert_event(db, organizer_id, status, total_seats, price, title, date)

    return _add


# -----------------------------
# Helpers committing through their own session (HTTP tests)
# -----------------------------
@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seed_user():
    def _seed(role: Role = Role.USER, name: str | None = None):
        with get_db_session() as session:
            return _insert_user(session, role, name)

    return _seed


@pytest.fixture
def seed_event():
    def _seed(
        organizer_id: str | None,
        status: EventStatus = EventStatus.APPROVED,
        total_seats: int = 50,
        price: str = "20.00",
        title: str = "Jazz Night",
        date: datetime | None = None,
    ) -> str:
        with get_db_session() as session:
            return _insert_event(session, organizer_id, status, total_seats, price, title, date).id

    return _seed


@pytest.fixture
def auth_headers():
    def _headers(principal) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(principal)}"}

    return _headers


@pytest.fixture
def read_event():
    def _read(event_id: str) -> Event | None:
        with get_db_session() as session:
            event = session.get(Event, event_id)
            if event is not None:
                session.expunge(event)
            return event

    return _read
