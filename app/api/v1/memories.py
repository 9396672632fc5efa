"""Memory endpoints: what a mentor remembers about the caller."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from app.deps import AdminUser, CurrentUser, DbSession
from app.schemas.memory import MemoryRead, MemoryStats
from app.services.memory import memory_service

router = APIRouter()


@router.get("/mentors/{mentor_id}", response_model=MemoryRead)
async def get_my_memory(mentor_id: UUID, user: CurrentUser, db: DbSession) -> MemoryRead:
    memory = await memory_service.get_memory(db, user.id, mentor_id)
    if not memory:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No memory for this mentor yet",
        )
    return MemoryRead.model_validate(memory)


@router.delete("/mentors/{mentor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def forget_me(mentor_id: UUID, user: CurrentUser, db: DbSession) -> None:
    """Clear the mentor's memory of the caller. Chats are kept."""
    await memory_service.delete_memory(db, user.id, mentor_id)
    await db.commit()


@router.get("", response_model=list[MemoryRead])
async def list_memories(
    admin: AdminUser,
    db: DbSession,
    user_id: UUID | None = None,
    mentor_id: UUID | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[MemoryRead]:
    memories = await memory_service.list_memories(
        db, user_id=user_id, mentor_id=mentor_id, limit=limit, offset=offset,
    )
    return [MemoryRead.model_validate(m) for m in memories]


@router.get("/stats", response_model=MemoryStats)
async def memory_stats(admin: AdminUser, db: DbSession) -> MemoryStats:
    return MemoryStats(**await memory_service.memory_stats(db))
