"""Per-operation GraphQL context.

Learn: Strawberry's FastAPI integration resolves context_getter through
FastAPI's dependency system, so the database session and the relay come
from the same Depends() providers the REST routes use, and tests can swap
them via app.dependency_overrides.

Session ownership:
- `db` is one AsyncSession per HTTP request. Only root Query/Mutation
  resolvers use it; they run one at a time within a request.
- `session_factory` is for everything that can run concurrently: nested
  field resolvers (graphql-core resolves list items and sibling fields in
  parallel) and anything reached from a subscription. Each resolution opens
  and closes its own session.

Over a WebSocket, context_getter runs once per connection, so the context
(and its `db`) is shared by every subscription operation on that socket for
as long as it stays open. Subscription code must not touch `db`; the
session is never used there, so it never checks out a connection.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from strawberry.fastapi import BaseContext

from postpulse.db.engine import get_db, get_session_factory
from postpulse.realtime.pubsub import PubSub, get_pubsub


class Context(BaseContext):
    def __init__(
        self,
        db: AsyncSession,
        pubsub: PubSub,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        super().__init__()
        self.db = db
        self.pubsub = pubsub
        self.session_factory = session_factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """A private, short-lived session for one resolution."""
        async with self.session_factory() as session:
            yield session


async def get_context(
    db: AsyncSession = Depends(get_db),
    pubsub: PubSub = Depends(get_pubsub),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> Context:
    return Context(db=db, pubsub=pubsub, session_factory=session_factory)
