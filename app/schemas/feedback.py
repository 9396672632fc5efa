"""Feedback schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FeedbackCreate(BaseModel):
    message: str = Field(..., max_length=5000)
    email: str | None = Field(None, max_length=320)


class FeedbackRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    message: str
    email: str | None
    user_id: UUID | None
    user_name: str | None = None
    is_resolved: bool
    created_at: datetime


class FeedbackResolve(BaseModel):
    is_resolved: bool = True
