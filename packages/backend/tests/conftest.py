"""Test fixtures — a fresh SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI + Strawberry:

1. Each test gets its own database file and its own PubSub relay.
2. get_db and get_pubsub are swapped via app.dependency_overrides, which
   also reaches the GraphQL context (its context_getter uses Depends()).
3. The engine uses NullPool, so every session opens a connection in
   whichever event loop is running. That lets the same database serve both
   the async httpx client (pytest-asyncio's loop) and Starlette's sync
   TestClient (its own portal loop, needed for WebSocket subscriptions).

POSTPULSE_DATABASE_URL is pointed at in-memory SQLite before the app is
imported, so the global engine (health checks, lifespan) never needs a
real PostgreSQL server.
"""

import os

os.environ.setdefault("POSTPULSE_DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine, pool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from starlette.testclient import TestClient

from postpulse.db.engine import enable_sqlite_foreign_keys, get_db, get_session_factory
from postpulse.db.models import Base
from postpulse.main import app
from postpulse.realtime.pubsub import PubSub, get_pubsub


@pytest.fixture()
def db_path(tmp_path):
    """SQLite file with the schema created (synchronously, no loop needed)."""
    path = tmp_path / "postpulse-test.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return path


@pytest.fixture()
def session_factory(db_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        poolclass=pool.NullPool,
    )
    enable_sqlite_foreign_keys(engine)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
def relay():
    """A private relay per test, so listener counts start at zero."""
    return PubSub()


@pytest.fixture()
def overrides(session_factory, relay):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pubsub] = lambda: relay
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Direct session for seeding or inspecting the database."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(overrides):
    """Async HTTP client bound to the app (no network)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def sync_client(overrides):
    """Starlette TestClient — the only client here that speaks WebSocket."""
    with TestClient(app) as tc:
        yield tc


@pytest.fixture()
def gql(client):
    """Run a GraphQL operation over HTTP and return the JSON body."""

    async def run(query: str, **variables):
        resp = await client.post("/graphql", json={"query": query, "variables": variables})
        assert resp.status_code == 200, resp.text
        return resp.json()

    return run


@pytest_asyncio.fixture()
async def author(gql):
    """A user to attach posts to."""
    body = await gql(
        "mutation ($email: String!, $name: String!) "
        "{ createUser(email: $email, name: $name) { id email name } }",
        email="ada@example.com",
        name="Ada",
    )
    return body["data"]["createUser"]
