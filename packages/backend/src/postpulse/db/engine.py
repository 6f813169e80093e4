"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

An AsyncSession must never be used by two tasks at once. Code that may run
concurrently (nested GraphQL resolvers, subscription events) takes the
factory from get_session_factory() and opens its own short-lived session.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from postpulse.config import settings


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """SQLite ignores FOREIGN KEY constraints unless asked per connection."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _fk_pragma(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Connection pool: min 5, max 20 connections.
# SQLite picks its own pool class and rejects the sizing arguments.
_pool_kwargs = {} if settings.is_sqlite else {"pool_size": 5, "max_overflow": 15}

# echo=True in dev to see SQL queries.
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_pool_kwargs,
)
if settings.is_sqlite:
    enable_sqlite_foreign_keys(engine)

# Session factory — each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency — the factory itself, for callers that need
    one session per unit of concurrent work instead of one per request."""
    return async_session_factory
