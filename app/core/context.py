"""Context retriever: history, memory and knowledge for one incoming message.

Only the chat and its mentor are required; every other lookup degrades to
an empty result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.models.chat import Chat
from app.models.memory import MentorMemory
from app.models.mentor import Mentor
from app.models.message import Message
from app.services.chat import chat_service
from app.services.knowledge import KnowledgeSnippet, knowledge_service
from app.services.memory import memory_service
from app.services.mentor import mentor_service

logger = get_logger(__name__)
settings = get_settings()


@dataclass
class RetrievedContext:
    """Everything the prompt assembler needs besides the user profile."""

    chat: Chat
    mentor: Mentor
    history: list[Message] = field(default_factory=list)
    memory: MentorMemory | None = None
    documents: list[KnowledgeSnippet] = field(default_factory=list)


async def retrieve_context(
    db: AsyncSession,
    *,
    chat_id: UUID,
    user_id: UUID,
    message_text: str,
    mentor_id: UUID | None = None,
    exclude_message_id: UUID | None = None,
) -> RetrievedContext:
    """Load bounded history, relationship memory and matching documents.

    ``exclude_message_id`` keeps the just-persisted incoming message out of
    the replayed history, since it is appended separately as the final turn.
    """
    chat = await chat_service.get_owned_chat(db, chat_id, user_id)
    if mentor_id is not None and chat.mentor_id != mentor_id:
        raise NotFoundError("Chat", chat_id)
    mentor = await mentor_service.get_mentor(db, chat.mentor_id)

    history = await chat_service.recent_messages(
        db,
        chat.id,
        limit=settings.history_limit,
        exclude_id=exclude_message_id,
    )
    memory = await memory_service.get_memory(db, user_id, mentor.id)
    documents = await knowledge_service.search(
        db,
        mentor.id,
        message_text,
        limit=settings.knowledge_max_results,
        snippet_chars=settings.knowledge_snippet_chars,
    )

    logger.debug(
        "context_retrieved",
        chat_id=str(chat.id),
        history_count=len(history),
        memory_points=len(memory.key_points) if memory else 0,
        document_count=len(documents),
    )

    return RetrievedContext(
        chat=chat,
        mentor=mentor,
        history=history,
        memory=memory,
        documents=documents,
    )
