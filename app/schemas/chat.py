"""Chat and message schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ChatCreate(BaseModel):
    mentor_id: UUID
    title: str | None = Field(None, min_length=1, max_length=255)


class ChatRename(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)


class ChatRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    mentor_id: UUID
    title: str
    is_active: bool
    last_message_at: datetime | None
    created_at: datetime


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    chat_id: UUID
    content: str
    is_from_user: bool
    image_key: str | None
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime


class ChatDetail(ChatRead):
    """Chat with its messages in chronological order."""

    messages: list[MessageRead] = []


class MessageSend(BaseModel):
    content: str = Field(..., min_length=1, max_length=20000)
    image_key: str | None = Field(None, max_length=512)


class SendResponse(BaseModel):
    user_message: MessageRead
    reply: MessageRead


class StreamAccepted(BaseModel):
    """Returned with 202; the reply arrives as a growing assistant message."""

    user_message: MessageRead
    status: str = "streaming"


class DeletedCount(BaseModel):
    deleted: int
