"""Knowledge document schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.knowledge_document import DocumentSource


class DocumentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    source_type: DocumentSource = DocumentSource.MANUAL


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    mentor_id: UUID
    title: str
    content: str
    source_type: DocumentSource
    is_active: bool
    uploaded_by: UUID | None
    created_at: datetime


class DocumentSnippet(BaseModel):
    """Search hit; content truncated for prompt use."""

    title: str
    content: str


class DocumentGenerateRequest(BaseModel):
    topic: str = Field(..., min_length=1, max_length=500)
    count: int = Field(3, ge=1, le=10)
