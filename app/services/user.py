"""Profile reads and updates."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User

PROFILE_FIELDS = ("name", "bio", "goals", "interests", "profile_image_key")


class UserService:

    async def get_user(self, db: AsyncSession, user_id: UUID) -> User | None:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def update_profile(self, db: AsyncSession, user: User, **fields) -> User:
        """Partial profile update. Unknown keys and None values are ignored."""
        for key in PROFILE_FIELDS:
            value = fields.get(key)
            if value is not None:
                setattr(user, key, value)
        await db.flush()
        return user


# Singleton
user_service = UserService()
