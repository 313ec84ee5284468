"""Pytest configuration and fixtures."""

import os
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.api.dependencies import get_routine_service
from src.database import Base, get_db
from src.main import app
from src.services.routine_service import RoutineService
from src.services.routine_store import RoutineStore


class AuthHeaders(dict):
    """Dict subclass that also stores the user's id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


class FrozenClock:
    """Callable clock for RoutineService that only moves when told to.

    A non-zero ``tick`` advances the clock after every read.
    """

    def __init__(self, now: datetime, tick: timedelta = timedelta(0)):
        self.now = now
        self.tick = tick

    def __call__(self) -> datetime:
        now = self.now
        self.now += self.tick
        return now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/routine_tracker", "/routine_tracker_test"
    )
else:
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday
START = datetime(2025, 1, 6, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def clock():
    return FrozenClock(START)


@pytest.fixture(scope="function")
def client(db, clock):
    """Create a test client with database and clock overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_routine_service():
        return RoutineService(RoutineStore(db), clock=clock)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_routine_service] = override_get_routine_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str, name: str = "Test User") -> AuthHeaders:
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": "testpass123", "name": name},
    )
    assert response.status_code == 201
    data = response.json()
    # Tests authenticate with the header only
    client.cookies.clear()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=email,
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register(client, "test@example.com")


@pytest.fixture
def other_auth_headers(client):
    """A second, unrelated user."""
    return register(client, "other@example.com", name="Other User")


@pytest.fixture
def morning_routine(client, auth_headers):
    """A daily routine with three steps."""
    response = client.post(
        "/api/v1/routines",
        headers=auth_headers,
        json={
            "title": "Morning routine",
            "description": "Start the day",
            "group": "Health",
            "frequency": "daily",
            "steps": [
                {"title": "Stretch", "order": 0},
                {"title": "Meditate", "order": 1},
                {"title": "Journal", "order": 2},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()
