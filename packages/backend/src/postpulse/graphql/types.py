"""GraphQL object types.

Learn: These are wire types, separate from the ORM models. from_model()
copies the scalar columns so a type never holds on to a session, which
matters for subscription payloads: they were loaded by another request's
session that is long closed by the time a subscriber serializes them.

Nested resolvers (Post.author, User.posts) open their own session through
Context.session(): they run concurrently, and on a WebSocket every
operation on the socket shares one context.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import strawberry
from strawberry.types import Info

from postpulse.db import models
from postpulse.services.post_service import PostService
from postpulse.services.user_service import UserService


@strawberry.type
class User:
    id: int
    email: str
    name: str
    created_at: datetime

    @classmethod
    def from_model(cls, user: models.User) -> "User":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            created_at=user.created_at,
        )

    @strawberry.field
    async def posts(self, info: Info) -> list["Post"]:
        async with info.context.session() as db:
            posts = await PostService(db).list_posts(author_id=self.id)
        return [Post.from_model(p) for p in posts]


@strawberry.type
class Post:
    id: int
    title: str
    content: str
    author_id: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, post: models.Post) -> "Post":
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            author_id=post.author_id,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )

    @strawberry.field
    async def author(self, info: Info) -> Optional[User]:
        async with info.context.session() as db:
            user = await UserService(db).get_user(self.author_id)
        return User.from_model(user) if user else None
