"""User profile schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str | None
    name: str | None
    bio: str | None
    goals: str | None
    interests: str | None
    profile_image_key: str | None
    profile_image_url: str | None = None
    is_admin: bool
    created_at: datetime


class UserUpdate(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    name: str | None = Field(None, max_length=255)
    bio: str | None = None
    goals: str | None = None
    interests: str | None = None
    profile_image_key: str | None = Field(None, max_length=512)
