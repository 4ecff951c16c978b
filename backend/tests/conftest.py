"""
Shared fixtures: an in-memory SQLite database per test, a FastAPI TestClient
wired to it, and factories for users, calendars and auth headers.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REVOCATION_BACKEND"] = "memory"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["SMTP_HOST"] = ""
os.environ["AUTH_RATE_LIMIT"] = "1000/minute"
os.environ["FRONTEND_URL"] = "https://calendar.acme.io"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import chronos.models  # noqa: F401
from chronos.core.limiter import limiter
from chronos.core.revocation import InMemoryRevocationStore, get_revocation_store
from chronos.core.security import create_access_token, get_password_hash
from chronos.db import get_session
from chronos.main import app
from chronos.models import User
from chronos.schemas import CalendarCreate
from chronos.services.calendars import create_calendar, ensure_main_calendar

PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="session")
def password_hash() -> str:
    # bcrypt is slow on purpose; hash once per run
    return get_password_hash(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def revocation_store() -> InMemoryRevocationStore:
    return InMemoryRevocationStore()


@pytest.fixture
def client(session, revocation_store):
    def _get_session_override():
        yield session

    app.dependency_overrides[get_session] = _get_session_override
    app.dependency_overrides[get_revocation_store] = lambda: revocation_store
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session, password_hash):
    def _make_user(username: str, email: str | None = None, **kwargs) -> User:
        kwargs.setdefault("is_email_verified", True)
        user = User(
            username=username,
            email=email or f"{username}@acme.io",
            hashed_password=password_hash,
            **kwargs,
        )
        session.add(user)
        session.flush()
        ensure_main_calendar(session, user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def owner(make_user) -> User:
    return make_user("olivia", full_name="Olivia Owner")


@pytest.fixture
def guest(make_user) -> User:
    return make_user("gustav", full_name="Gustav Guest")


@pytest.fixture
def outsider(make_user) -> User:
    return make_user("otto")


@pytest.fixture
def make_calendar(session):
    def _make_calendar(user: User, name: str = "Team", **kwargs):
        calendar = create_calendar(session, user, CalendarCreate(name=name, **kwargs))
        session.commit()
        session.refresh(calendar)
        return calendar

    return _make_calendar


@pytest.fixture
def calendar(owner, make_calendar):
    return make_calendar(owner, "Team")


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers
