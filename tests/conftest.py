"""
Fixtures shared by unit and integration tests.

Database tests run against a private in-memory SQLite database built by
init_db(), the same path production takes on startup. JWT_SECRET is set
here, before anything loads settings, so config/.env is never needed.
"""

import os
from collections.abc import AsyncGenerator

os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only-0123456789")

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from adminui.backend.core import database
from adminui.backend.core.database import init_db
from adminui.backend.core.rate_limiter import get_rate_limiter

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    # One shared connection: every session must see the same :memory: database
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(db_session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """
    A session on the test database, for repository and service tests.

    Usage:
        async def test_record(db_session):
            entry = await ActivityService(db_session).record("admin", "login")
    """
    async with db_session_factory() as session:
        yield session


@pytest.fixture
def use_test_database(
    monkeypatch: pytest.MonkeyPatch,
    db_engine: AsyncEngine,
    db_session_factory: async_sessionmaker[AsyncSession],
) -> async_sessionmaker[AsyncSession]:
    """Make get_db_session() and get_session_factory() hand out test sessions (API, health, bot)."""
    monkeypatch.setattr(database, "_engine", db_engine)
    monkeypatch.setattr(database, "_async_session_factory", db_session_factory)
    return db_session_factory


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    get_rate_limiter().reset()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
