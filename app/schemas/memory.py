"""Mentor memory schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class MemoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    mentor_id: UUID
    key_points: list[str]
    conversation_count: int
    last_updated: datetime


class MemoryStats(BaseModel):
    total_memories: int
    users_with_memory: int
    summarized_conversations: int
