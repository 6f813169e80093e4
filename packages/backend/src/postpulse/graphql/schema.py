"""GraphQL schema — queries, mutations, subscriptions, and the router.

Learn: Resolvers are thin. Each one builds a service from the context and
forwards to it; the service owns the database work and the publish.

Subscription lifecycle, per operation:
1. The client sends `subscribe` over the WebSocket; Strawberry starts the
   resolver's async generator in its own task.
2. The generator opens one relay handle with `async with`, so the listener
   is registered before the first payload can be awaited.
3. The operation ends one of three ways: the client sends `complete`, the
   socket disconnects (Strawberry cancels the task), or the server shuts
   down (PubSub.close_all() ends iteration). In every case the `async with`
   block exits and the listener is released.
"""

from typing import AsyncGenerator, Optional

import strawberry
from strawberry.fastapi import GraphQLRouter
from strawberry.subscriptions import GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL
from strawberry.types import Info

from postpulse.config import settings
from postpulse.graphql.context import Context, get_context
from postpulse.graphql.types import Post, User
from postpulse.realtime.topics import POST_ADDED, POST_DELETED, POST_UPDATED
from postpulse.services.post_service import PostService
from postpulse.services.user_service import UserService


@strawberry.type
class Query:
    @strawberry.field
    async def posts(self, info: Info[Context, None]) -> list[Post]:
        posts = await PostService(info.context.db).list_posts()
        return [Post.from_model(p) for p in posts]

    @strawberry.field
    async def post(self, info: Info[Context, None], id: int) -> Optional[Post]:
        post = await PostService(info.context.db).get_post(id)
        return Post.from_model(post) if post else None

    @strawberry.field
    async def users(self, info: Info[Context, None]) -> list[User]:
        users = await UserService(info.context.db).list_users()
        return [User.from_model(u) for u in users]

    @strawberry.field
    async def user(self, info: Info[Context, None], id: int) -> Optional[User]:
        user = await UserService(info.context.db).get_user(id)
        return User.from_model(user) if user else None


def _posts(info: Info[Context, None]) -> PostService:
    return PostService(info.context.db, info.context.pubsub)


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def create_post(
        self, info: Info[Context, None], title: str, content: str, author_id: int
    ) -> Post:
        post = await _posts(info).create_post(
            title=title, content=content, author_id=author_id
        )
        return Post.from_model(post)

    @strawberry.mutation
    async def update_post(
        self,
        info: Info[Context, None],
        id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Post:
        post = await _posts(info).update_post(id, title=title, content=content)
        return Post.from_model(post)

    @strawberry.mutation
    async def delete_post(self, info: Info[Context, None], id: int) -> Post:
        post = await _posts(info).delete_post(id)
        return Post.from_model(post)

    @strawberry.mutation
    async def create_user(self, info: Info[Context, None], email: str, name: str) -> User:
        user = await UserService(info.context.db).create_user(email=email, name=name)
        return User.from_model(user)


@strawberry.type
class Subscription:
    @strawberry.subscription
    async def post_added(self, info: Info[Context, None]) -> AsyncGenerator[Post, None]:
        async with info.context.pubsub.subscribe(POST_ADDED) as sub:
            async for post in sub:
                yield Post.from_model(post)

    @strawberry.subscription
    async def post_updated(self, info: Info[Context, None]) -> AsyncGenerator[Post, None]:
        async with info.context.pubsub.subscribe(POST_UPDATED) as sub:
            async for post in sub:
                yield Post.from_model(post)

    @strawberry.subscription
    async def post_deleted(self, info: Info[Context, None]) -> AsyncGenerator[Post, None]:
        async with info.context.pubsub.subscribe(POST_DELETED) as sub:
            async for post in sub:
                yield Post.from_model(post)


schema = strawberry.Schema(query=Query, mutation=Mutation, subscription=Subscription)


def get_graphql_router() -> GraphQLRouter:
    """Build the /graphql router (HTTP + WebSocket on the same path)."""
    return GraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide="graphiql" if settings.graphql_ide else None,
        subscription_protocols=[GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL],
    )
