"""Pydantic schemas for API request/response validation."""

from app.schemas.user import UserRead, UserUpdate
from app.schemas.mentor import MentorCreate, MentorRead, MentorUpdate
from app.schemas.chat import (
    ChatCreate,
    ChatDetail,
    ChatRead,
    ChatRename,
    DeletedCount,
    MessageRead,
    MessageSend,
    SendResponse,
    StreamAccepted,
)
from app.schemas.document import (
    DocumentCreate,
    DocumentGenerateRequest,
    DocumentRead,
    DocumentSnippet,
)
from app.schemas.memory import MemoryRead, MemoryStats
from app.schemas.feedback import FeedbackCreate, FeedbackRead, FeedbackResolve
from app.schemas.upload import ImageUploadRequest, ImageUploadResponse
from app.schemas.demo import DemoChatRequest, DemoChatResponse, DemoTurnIn

__all__ = [
    "UserRead",
    "UserUpdate",
    "MentorCreate",
    "MentorRead",
    "MentorUpdate",
    "ChatCreate",
    "ChatDetail",
    "ChatRead",
    "ChatRename",
    "DeletedCount",
    "MessageRead",
    "MessageSend",
    "SendResponse",
    "StreamAccepted",
    "DocumentCreate",
    "DocumentGenerateRequest",
    "DocumentRead",
    "DocumentSnippet",
    "MemoryRead",
    "MemoryStats",
    "FeedbackCreate",
    "FeedbackRead",
    "FeedbackResolve",
    "ImageUploadRequest",
    "ImageUploadResponse",
    "DemoChatRequest",
    "DemoChatResponse",
    "DemoTurnIn",
]
