"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The engine is built once by ``create_app`` from the Settings object and kept
on ``app.state``; ``get_db`` hands each request its own session.
"""

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from pasal.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for ``settings.database_url``."""
    if settings.database_url.startswith("sqlite"):
        kwargs = {}
        if _is_in_memory(settings.database_url):
            # One shared connection, otherwise every checkout sees an empty DB.
            kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        engine = create_async_engine(settings.database_url, echo=settings.debug, **kwargs)
        _enable_sqlite_foreign_keys(engine)
        return engine

    # Connection pool: min 5, max 20 connections.
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=15,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Session factory: each request gets its own session.
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _is_in_memory(url: str) -> bool:
    return url.endswith("://") or ":memory:" in url


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def get_db(request: Request) -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
