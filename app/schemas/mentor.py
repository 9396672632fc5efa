"""Mentor schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MentorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    bio: str = Field(..., min_length=1)
    categories: list[str] = Field(default_factory=list)
    persona_prompt: str = Field(..., min_length=1)
    profile_image_key: str | None = Field(None, max_length=512)


class MentorUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    bio: str | None = None
    categories: list[str] | None = None
    persona_prompt: str | None = Field(None, min_length=1)
    profile_image_key: str | None = Field(None, max_length=512)


class MentorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    bio: str
    categories: list[str]
    persona_prompt: str
    profile_image_key: str | None
    profile_image_url: str | None = None
    is_active: bool
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime
