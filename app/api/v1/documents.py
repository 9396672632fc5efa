"""Knowledge base endpoints: per-mentor documents."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.deps import LLM, CurrentUser, DbSession
from app.schemas.document import (
    DocumentCreate,
    DocumentGenerateRequest,
    DocumentRead,
    DocumentSnippet,
)
from app.services.knowledge import knowledge_service
from app.services.mentor import mentor_service

# Mounted under /mentors
mentor_documents_router = APIRouter()

# Mounted under /documents
router = APIRouter()


@mentor_documents_router.get("/{mentor_id}/documents", response_model=list[DocumentRead])
async def list_documents(mentor_id: UUID, user: CurrentUser, db: DbSession) -> list[DocumentRead]:
    mentor = await mentor_service.get_mentor(db, mentor_id)
    documents = await knowledge_service.list_active_documents(db, mentor.id)
    return [DocumentRead.model_validate(d) for d in documents]


@mentor_documents_router.post(
    "/{mentor_id}/documents",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_document(
    mentor_id: UUID,
    data: DocumentCreate,
    user: CurrentUser,
    db: DbSession,
) -> DocumentRead:
    """Add a document to a mentor's knowledge base (mentor creator only)."""
    mentor = await mentor_service.get_mentor(db, mentor_id, include_inactive=True)
    document = await knowledge_service.create_document(
        db,
        mentor=mentor,
        user=user,
        title=data.title,
        content=data.content,
        source_type=data.source_type,
    )
    await db.commit()
    await db.refresh(document)
    return DocumentRead.model_validate(document)


@mentor_documents_router.get(
    "/{mentor_id}/documents/search",
    response_model=list[DocumentSnippet],
)
async def search_documents(
    mentor_id: UUID,
    user: CurrentUser,
    db: DbSession,
    q: str = Query(..., min_length=1),
) -> list[DocumentSnippet]:
    """Same matching the chat pipeline uses for its knowledge block."""
    mentor = await mentor_service.get_mentor(db, mentor_id)
    snippets = await knowledge_service.search(db, mentor.id, q)
    return [DocumentSnippet(title=s.title, content=s.content) for s in snippets]


@mentor_documents_router.post(
    "/{mentor_id}/documents/generate",
    response_model=list[DocumentRead],
    status_code=status.HTTP_201_CREATED,
)
async def generate_documents(
    mentor_id: UUID,
    data: DocumentGenerateRequest,
    user: CurrentUser,
    db: DbSession,
    llm: LLM,
) -> list[DocumentRead]:
    """Draft knowledge entries on a topic with the LLM and store them."""
    mentor = await mentor_service.get_mentor(db, mentor_id, include_inactive=True)
    documents = await knowledge_service.generate_documents(
        db,
        llm,
        mentor=mentor,
        user=user,
        topic=data.topic,
        count=data.count,
    )
    await db.commit()
    return [DocumentRead.model_validate(d) for d in documents]


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: UUID, user: CurrentUser, db: DbSession) -> None:
    await knowledge_service.delete_document(db, document_id, user)
    await db.commit()
