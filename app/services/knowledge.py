"""Knowledge base service: mentor documents, keyword search, AI generation.

Search is a case-insensitive substring match on title or content, not a
semantic search. Results are capped in count and snippet length so the
prompt size stays predictable.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, UnauthorizedError, UpstreamProtocolError
from app.core.llm import LLMClient
from app.core.logging import get_logger
from app.models.knowledge_document import DocumentSource, KnowledgeDocument
from app.models.mentor import Mentor
from app.models.user import User

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 3
DEFAULT_SNIPPET_CHARS = 500


@dataclass(frozen=True)
class KnowledgeSnippet:
    """A matched document, truncated for prompt injection."""

    title: str
    content: str


def truncate_snippet(content: str, max_chars: int) -> str:
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + "..."


def match_documents(
    documents: list[KnowledgeDocument],
    query: str,
    *,
    limit: int = DEFAULT_MAX_RESULTS,
    snippet_chars: int = DEFAULT_SNIPPET_CHARS,
) -> list[KnowledgeSnippet]:
    """First ``limit`` documents whose title or content contains ``query``.

    Documents are taken in the order given (storage order).
    """
    needle = query.strip().lower()
    if not needle:
        return []

    matches: list[KnowledgeSnippet] = []
    for doc in documents:
        if needle in doc.title.lower() or needle in doc.content.lower():
            matches.append(
                KnowledgeSnippet(
                    title=doc.title,
                    content=truncate_snippet(doc.content, snippet_chars),
                )
            )
            if len(matches) >= limit:
                break
    return matches


# ── AI-assisted generation ───────────────────────────────────────────

GENERATE_SYSTEM_PROMPT = """\
You write knowledge base entries for an AI mentor persona. Each entry is a \
self-contained note the mentor can draw on when answering mentees.

Respond ONLY with valid JSON in the format:
{
  "documents": [
    {"title": "Short title", "content": "Several paragraphs of useful content"}
  ]
}"""

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_generated_documents(raw: str) -> list[dict]:
    """Parse the generation JSON, tolerating markdown code fences.

    Raises UpstreamProtocolError when the payload is not the expected shape.
    """
    cleaned = _FENCE_RE.sub("", (raw or "").strip()).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("knowledge_generation_bad_json", raw=raw[:2000], cleaned=cleaned[:2000])
        raise UpstreamProtocolError("Generated knowledge is not valid JSON") from e

    items = data.get("documents") if isinstance(data, dict) else data
    if not isinstance(items, list):
        logger.error("knowledge_generation_bad_shape", raw=raw[:2000], cleaned=cleaned[:2000])
        raise UpstreamProtocolError("Generated knowledge has no document list")

    documents = [
        {"title": str(item["title"]).strip(), "content": str(item["content"]).strip()}
        for item in items
        if isinstance(item, dict) and item.get("title") and item.get("content")
    ]
    if not documents:
        logger.error("knowledge_generation_empty", raw=raw[:2000], cleaned=cleaned[:2000])
        raise UpstreamProtocolError("Generated knowledge contains no usable documents")
    return documents


class KnowledgeService:

    async def list_active_documents(
        self,
        db: AsyncSession,
        mentor_id: UUID,
    ) -> list[KnowledgeDocument]:
        result = await db.execute(
            select(KnowledgeDocument)
            .where(KnowledgeDocument.mentor_id == mentor_id)
            .where(KnowledgeDocument.is_active.is_(True))
            .order_by(KnowledgeDocument.created_at.asc())
        )
        return list(result.scalars().all())

    async def search(
        self,
        db: AsyncSession,
        mentor_id: UUID,
        query: str,
        *,
        limit: int = DEFAULT_MAX_RESULTS,
        snippet_chars: int = DEFAULT_SNIPPET_CHARS,
    ) -> list[KnowledgeSnippet]:
        documents = await self.list_active_documents(db, mentor_id)
        return match_documents(documents, query, limit=limit, snippet_chars=snippet_chars)

    def ensure_mentor_owner(self, mentor: Mentor, user: User) -> None:
        if mentor.created_by is None or mentor.created_by != user.id:
            raise UnauthorizedError(
                f"User {user.id} cannot add documents to mentor {mentor.id}",
                user_message="Only the mentor's creator can manage its knowledge base.",
            )

    async def create_document(
        self,
        db: AsyncSession,
        *,
        mentor: Mentor,
        user: User,
        title: str,
        content: str,
        source_type: DocumentSource = DocumentSource.MANUAL,
    ) -> KnowledgeDocument:
        self.ensure_mentor_owner(mentor, user)
        document = KnowledgeDocument(
            mentor_id=mentor.id,
            title=title,
            content=content,
            source_type=source_type.value,
            uploaded_by=user.id,
            is_active=True,
        )
        db.add(document)
        await db.flush()
        return document

    async def delete_document(
        self,
        db: AsyncSession,
        document_id: UUID,
        user: User,
    ) -> KnowledgeDocument:
        """Soft-delete a document. Only its uploader may do so."""
        result = await db.execute(
            select(KnowledgeDocument).where(KnowledgeDocument.id == document_id)
        )
        document = result.scalar_one_or_none()
        if not document or not document.is_active:
            raise NotFoundError("Document", document_id)
        if document.uploaded_by != user.id:
            raise UnauthorizedError(f"User {user.id} cannot delete document {document_id}")
        document.is_active = False
        await db.flush()
        return document

    async def generate_documents(
        self,
        db: AsyncSession,
        llm: LLMClient,
        *,
        mentor: Mentor,
        user: User,
        topic: str,
        count: int = 3,
    ) -> list[KnowledgeDocument]:
        """Ask the LLM for knowledge entries on ``topic`` and store them."""
        self.ensure_mentor_owner(mentor, user)

        user_prompt = (
            f"Mentor: {mentor.name}\n"
            f"Persona: {mentor.persona_prompt}\n\n"
            f"Write {count} knowledge base entries about: {topic}"
        )
        raw = await llm.complete(
            [
                {"role": "system", "content": GENERATE_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=2000,
            temperature=0.5,
        )
        items = parse_generated_documents(raw)

        documents = []
        for item in items[:count]:
            documents.append(
                await self.create_document(
                    db,
                    mentor=mentor,
                    user=user,
                    title=item["title"][:255],
                    content=item["content"],
                    source_type=DocumentSource.AI_GENERATED,
                )
            )

        logger.info(
            "knowledge_generated",
            mentor_id=str(mentor.id),
            topic=topic[:100],
            document_count=len(documents),
        )
        return documents


# Singleton
knowledge_service = KnowledgeService()
