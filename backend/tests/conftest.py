"""Pytest configuration for tests directory."""
from datetime import datetime, timedelta

import pytest

from tourney.infra.db.base import Base, build_engine, build_session_factory
from tourney.infra.db.repositories.notification_repo import NotificationRepositoryImpl
from tourney.infra.memory.notification_store import InMemoryNotificationStore
from tourney.infra.security.jwt import create_access_token
from tourney.settings import Settings

TEST_SECRET = "test-secret-key"


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that need a real DB (deselect with '-m \"not integration\"')"
    )


class StepClock:
    """Deterministic clock: each call returns the current time, then advances by ``step``."""

    def __init__(self, start: datetime = datetime(2026, 3, 1, 12, 0, 0), step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def memory_store(clock):
    return InMemoryNotificationStore(clock=clock)


@pytest.fixture
async def sql_store(clock):
    """SQLAlchemy store over in-memory SQLite."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield NotificationRepositoryImpl(build_session_factory(engine), clock=clock)
    await engine.dispose()


@pytest.fixture(params=["memory", "sql"])
async def store(request, clock):
    """Every store backend; tests using this run once per backend."""
    if request.param == "memory":
        yield InMemoryNotificationStore(clock=clock)
        return
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield NotificationRepositoryImpl(build_session_factory(engine), clock=clock)
    await engine.dispose()


@pytest.fixture
def settings():
    return Settings(
        notification_store_backend="memory",
        secret_key=TEST_SECRET,
        create_tables_on_startup=False,
    )


@pytest.fixture
def user_token():
    def _token(user_id: str, role: str = "user") -> str:
        return create_access_token(user_id, TEST_SECRET, role=role)
    return _token


@pytest.fixture
def auth_headers(user_token):
    def _headers(user_id: str, role: str = "user") -> dict:
        return {"Authorization": f"Bearer {user_token(user_id, role)}"}
    return _headers
