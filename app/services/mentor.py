"""Mentor service: catalog queries and owner/admin-guarded mutations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, UnauthorizedError
from app.models.mentor import Mentor
from app.models.user import User


def category_matches(categories: list[str], category: str) -> bool:
    """Case-insensitive containment in either direction."""
    wanted = category.lower()
    return any(wanted in c.lower() or c.lower() in wanted for c in categories or [])


class MentorService:

    async def list_active(self, db: AsyncSession) -> list[Mentor]:
        result = await db.execute(
            select(Mentor)
            .where(Mentor.is_active.is_(True))
            .order_by(Mentor.name.asc())
        )
        return list(result.scalars().all())

    async def list_all(self, db: AsyncSession) -> list[Mentor]:
        result = await db.execute(select(Mentor).order_by(Mentor.name.asc()))
        return list(result.scalars().all())

    async def list_by_category(self, db: AsyncSession, category: str) -> list[Mentor]:
        mentors = await self.list_active(db)
        return [m for m in mentors if category_matches(m.categories, category)]

    async def list_owned(self, db: AsyncSession, user_id: UUID) -> list[Mentor]:
        result = await db.execute(
            select(Mentor)
            .where(Mentor.created_by == user_id)
            .order_by(Mentor.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_mentor(
        self,
        db: AsyncSession,
        mentor_id: UUID,
        *,
        include_inactive: bool = False,
    ) -> Mentor:
        """Return the mentor or raise NotFoundError (inactive counts as missing)."""
        result = await db.execute(select(Mentor).where(Mentor.id == mentor_id))
        mentor = result.scalar_one_or_none()
        if not mentor or (not mentor.is_active and not include_inactive):
            raise NotFoundError("Mentor", mentor_id)
        return mentor

    def ensure_can_edit(self, mentor: Mentor, user: User) -> None:
        if user.is_admin or (mentor.created_by is not None and mentor.created_by == user.id):
            return
        raise UnauthorizedError(f"User {user.id} cannot modify mentor {mentor.id}")

    async def create_mentor(
        self,
        db: AsyncSession,
        *,
        name: str,
        bio: str,
        categories: list[str],
        persona_prompt: str,
        created_by: UUID,
        profile_image_key: str | None = None,
    ) -> Mentor:
        mentor = Mentor(
            name=name,
            bio=bio,
            categories=categories,
            persona_prompt=persona_prompt,
            profile_image_key=profile_image_key,
            created_by=created_by,
            is_active=True,
        )
        db.add(mentor)
        await db.flush()
        return mentor

    async def update_mentor(self, db: AsyncSession, mentor: Mentor, **fields) -> Mentor:
        """Partial update; None values are ignored."""
        for key, value in fields.items():
            if value is not None:
                setattr(mentor, key, value)
        await db.flush()
        return mentor

    async def set_active(self, db: AsyncSession, mentor: Mentor, is_active: bool) -> Mentor:
        mentor.is_active = is_active
        await db.flush()
        return mentor


# Singleton
mentor_service = MentorService()
