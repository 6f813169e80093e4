"""User service — the authors that posts point at."""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postpulse.db.models import User

logger = structlog.get_logger()


class UserService:
    """Business logic for users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, email: str, name: str) -> User:
        user = User(email=email, name=name)
        self.db.add(user)
        await self.db.commit()
        logger.info("user.created", user_id=user.id)
        return user

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def get_user(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)
