"""
VerseRank Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for pure unit tests (no database)
    ├── sqlite_engine: file-backed sqlite+aiosqlite engine with all tables
    │   └── session_factory: sessions bound to that engine
    │       ├── db_session: one session for a test body
    │       ├── create_user: inserts a user with a given verse count
    │       └── test_client: HTTPX AsyncClient with get_db_session overridden

A real SQLite file (not :memory:) is used so several sessions can hold
separate connections; the concurrency tests depend on that.
"""

import os
import tempfile

# Override settings for testing BEFORE any verserank imports
os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='verserank_test_')}/app.db"
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["PRINCIPAL_HEADER"] = "X-User-ID"

import itertools
from datetime import datetime
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from verserank.database import Base, build_engine, build_session_factory, get_db_session
from verserank.models import User
from verserank.services.rank_calculator import calculate_rank


# ══════════════════════════════════════════════════════════════════════════
# Unit-test doubles
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute = AsyncMock(side_effect=[lock_result, dup_result])
        await progress_service.record_memorization(mock_db_session, ...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# SQLite-backed fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """Fresh database file per test, schema created from the ORM metadata."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'verserank.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return build_session_factory(sqlite_engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def create_user(session_factory):
    """
    Factory fixture inserting a user with a consistent cached rank.

    Usage:
        user_id = await create_user(verses_memorized=3)
    """
    counter = itertools.count(1)

    async def _create(
        verses_memorized: int = 0,
        rank_updated_at: Optional[datetime] = None,
        username: Optional[str] = None,
    ) -> int:
        n = next(counter)
        async with session_factory() as session:
            user = User(
                username=username or f"user{n}",
                email=f"user{n}@example.com",
                verses_memorized=verses_memorized,
                current_rank=calculate_rank(verses_memorized).current_rank.level,
                rank_updated_at=rank_updated_at,
            )
            session.add(user)
            await session.commit()
            return user.id

    return _create


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to a fresh app whose sessions come from the
    per-test SQLite database.

    Usage:
        response = await test_client.get("/api/progress", headers={"X-User-ID": "1"})
    """
    from verserank.main import create_app

    app = create_app()

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
