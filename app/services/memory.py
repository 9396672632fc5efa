"""Memory service: CRUD for the per user/mentor memory record."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.memory import MentorMemory


class MemoryService:
    """Manages the cross-session memory of each user/mentor relationship.

    At most one record exists per pair. Key points are replaced wholesale on
    every summarization; concurrent writers race last-write-wins.
    """

    async def get_memory(
        self,
        db: AsyncSession,
        user_id: UUID,
        mentor_id: UUID,
    ) -> MentorMemory | None:
        result = await db.execute(
            select(MentorMemory)
            .where(MentorMemory.user_id == user_id)
            .where(MentorMemory.mentor_id == mentor_id)
        )
        return result.scalar_one_or_none()

    async def save_key_points(
        self,
        db: AsyncSession,
        user_id: UUID,
        mentor_id: UUID,
        key_points: list[str],
    ) -> MentorMemory:
        """Replace the key points and bump the conversation counter by one.

        Creates the record on the first summarization for the pair.
        """
        now = datetime.now(UTC)
        memory = await self.get_memory(db, user_id, mentor_id)
        if memory:
            memory.key_points = list(key_points)
            memory.conversation_count = (memory.conversation_count or 0) + 1
            memory.last_updated = now
        else:
            memory = MentorMemory(
                user_id=user_id,
                mentor_id=mentor_id,
                key_points=list(key_points),
                conversation_count=1,
                last_updated=now,
            )
            db.add(memory)
        await db.flush()
        return memory

    async def delete_memory(
        self,
        db: AsyncSession,
        user_id: UUID,
        mentor_id: UUID,
    ) -> None:
        await db.execute(
            delete(MentorMemory)
            .where(MentorMemory.user_id == user_id)
            .where(MentorMemory.mentor_id == mentor_id)
        )

    # ── Admin views ──────────────────────────────────────────────

    async def list_memories(
        self,
        db: AsyncSession,
        *,
        user_id: UUID | None = None,
        mentor_id: UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[MentorMemory]:
        stmt = (
            select(MentorMemory)
            .order_by(MentorMemory.last_updated.desc())
            .limit(limit)
            .offset(offset)
        )
        if user_id is not None:
            stmt = stmt.where(MentorMemory.user_id == user_id)
        if mentor_id is not None:
            stmt = stmt.where(MentorMemory.mentor_id == mentor_id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def memory_stats(self, db: AsyncSession) -> dict:
        """Aggregate counters for the admin dashboard."""
        result = await db.execute(
            select(
                func.count(MentorMemory.id),
                func.count(func.distinct(MentorMemory.user_id)),
                func.coalesce(func.sum(MentorMemory.conversation_count), 0),
            )
        )
        total, users, conversations = result.one()
        return {
            "total_memories": int(total or 0),
            "users_with_memory": int(users or 0),
            "summarized_conversations": int(conversations or 0),
        }


# Singleton
memory_service = MemoryService()
