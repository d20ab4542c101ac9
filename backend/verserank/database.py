"""
VerseRank Backend: Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place. Services never
       import the engine; they receive an AsyncSession per call.
How:   build_engine() creates an async engine (pooled for PostgreSQL,
       writer-serialized for SQLite). get_db_session() yields one session per
       request and commits on success / rolls back on error.
Who:   Route handlers via Depends(get_db_session); tests via build_engine().

Write Serialization:
    The progression recorder locks the user row with SELECT ... FOR UPDATE.
    PostgreSQL honours that. SQLite has no row locks and drops FOR UPDATE,
    so every SQLite transaction is opened with BEGIN IMMEDIATE instead: the
    second writer waits for the first to commit (up to the driver's busy
    timeout) and then reads the committed counter.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from verserank.config import settings


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """Emit BEGIN IMMEDIATE for every SQLite transaction (see module docstring)."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        # Let SQLAlchemy issue BEGIN itself instead of the sqlite3 module
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    PostgreSQL gets the configured pool; SQLite gets the driver default pool
    (pool_size/max_overflow are not valid for every SQLite pool class) and
    the BEGIN IMMEDIATE hook.
    """
    if database_url.startswith("sqlite"):
        engine = create_async_engine(
            database_url,
            echo=settings.log_level == "DEBUG",
        )
        _serialize_sqlite_writers(engine)
        return engine

    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,  # Recycle after 1 hour to avoid stale connections
        echo=settings.log_level == "DEBUG",
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: services read attributes after committing
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = build_engine(settings.database_url)
async_session_factory = build_session_factory(engine)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object, which Alembic reads for --autogenerate and
    the test suite uses for create_all().
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits (a no-op when the service already committed)
        4. On error: rolls back
        5. Always: closes the session (returns connection to pool)

    Raises:
        Any exception is propagated to the global error handlers.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close all pooled connections. Called from the lifespan shutdown hook."""
    await engine.dispose()
