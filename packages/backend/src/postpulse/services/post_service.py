"""Post service — CRUD over posts, plus live-update publishing.

Learn: Service layer separates business logic from the transport.
GraphQL resolvers call services, services call the database and, after a
successful commit, publish to the relay. Commit and publish are not
atomic: a crash in between loses the notification but never the row.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postpulse.db.models import Post, utcnow
from postpulse.realtime.pubsub import PubSub
from postpulse.realtime.topics import POST_ADDED, POST_DELETED, POST_UPDATED

logger = structlog.get_logger()


class PostNotFoundError(Exception):
    """Raised when a post id doesn't exist in the store."""

    def __init__(self, post_id: int):
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class PostService:
    """Business logic for posts."""

    def __init__(self, db: AsyncSession, pubsub: PubSub | None = None):
        self.db = db
        self.pubsub = pubsub

    # ─── Reads ──────────────────────────────────────────

    async def list_posts(self, author_id: int | None = None) -> list[Post]:
        query = select(Post).order_by(Post.id)
        if author_id is not None:
            query = query.where(Post.author_id == author_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_post(self, post_id: int) -> Post | None:
        return await self.db.get(Post, post_id)

    # ─── Writes ─────────────────────────────────────────

    async def create_post(self, title: str, content: str, author_id: int) -> Post:
        post = Post(title=title, content=content, author_id=author_id)
        self.db.add(post)
        await self.db.commit()

        delivered = self._publish(POST_ADDED, post)
        logger.info("post.created", post_id=post.id, subscribers=delivered)
        return post

    async def update_post(
        self,
        post_id: int,
        title: str | None = None,
        content: str | None = None,
    ) -> Post:
        """Partial update: None means leave the field as it is."""
        post = await self._require(post_id)
        if title is not None:
            post.title = title
        if content is not None:
            post.content = content
        post.updated_at = utcnow()
        await self.db.commit()

        delivered = self._publish(POST_UPDATED, post)
        logger.info("post.updated", post_id=post.id, subscribers=delivered)
        return post

    async def delete_post(self, post_id: int) -> Post:
        """Delete and return the removed post (its fields stay readable)."""
        post = await self._require(post_id)
        await self.db.delete(post)
        await self.db.commit()

        delivered = self._publish(POST_DELETED, post)
        logger.info("post.deleted", post_id=post_id, subscribers=delivered)
        return post

    # ─── Helpers ────────────────────────────────────────

    async def _require(self, post_id: int) -> Post:
        post = await self.get_post(post_id)
        if post is None:
            raise PostNotFoundError(post_id)
        return post

    def _publish(self, topic: str, post: Post) -> int:
        if self.pubsub is None:
            return 0
        return self.pubsub.publish(topic, post)
