"""Conversation service: the send-message pipeline.

Flow for one user message:
1. Persist the user message (always before any reply work starts)
2. Retrieve history, memory and knowledge
3. Resolve the attached image, if any, to a URL
4. Assemble the prompt
5. Invoke the LLM (blocking here, or streaming in the worker)
6. Schedule follow-ups: title after the first exchange, memory every few messages
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.completion import CompletionInvoker
from app.core.context import RetrievedContext, retrieve_context
from app.core.exceptions import NotFoundError
from app.core.llm import LLMClient
from app.core.logging import bind_context, get_logger
from app.core.memory_summarizer import should_summarize
from app.core.prompt_assembler import AssembledPrompt, IncomingMessage, assemble_prompt
from app.core.tasks import (
    TASK_GENERATE_TITLE,
    TASK_STREAM_REPLY,
    TASK_SUMMARIZE_MEMORY,
    TaskOutcome,
    TaskQueue,
    record_task_outcome,
)
from app.models.chat import Chat
from app.models.message import Message
from app.models.user import User
from app.services.chat import chat_service
from app.services.mentor import mentor_service
from app.services.storage import BlobStorage

logger = get_logger(__name__)
settings = get_settings()


@dataclass
class SendResult:
    user_message: Message
    reply: Message | None = None


class ConversationService:
    """Wires retrieval, assembly and completion for a chat turn."""

    def __init__(
        self,
        llm: LLMClient,
        blobs: BlobStorage,
        tasks: TaskQueue,
    ) -> None:
        self.llm = llm
        self.blobs = blobs
        self.tasks = tasks
        self.invoker = CompletionInvoker(
            llm,
            flush_interval_ms=settings.stream_flush_interval_ms,
        )

    # ── Entry points ─────────────────────────────────────────────

    async def send_message(
        self,
        db: AsyncSession,
        *,
        user: User,
        chat_id: UUID,
        content: str,
        image_key: str | None = None,
    ) -> SendResult:
        """Blocking mode: reply is generated and persisted before returning."""
        bind_context(chat_id=str(chat_id))
        chat = await chat_service.get_owned_chat(db, chat_id, user.id)
        await mentor_service.get_mentor(db, chat.mentor_id)

        prior_count = await chat_service.count_messages(db, chat.id)
        user_message = await chat_service.save_message(
            db, chat=chat, content=content, is_from_user=True, image_key=image_key,
        )
        await db.commit()

        ctx = await retrieve_context(
            db,
            chat_id=chat.id,
            user_id=user.id,
            message_text=content,
            exclude_message_id=user_message.id,
        )
        prompt = await self.build_prompt(ctx, user=user, content=content, image_key=image_key)
        reply = await self.invoker.invoke(db, prompt, chat=chat)

        await chat_service.touch_chat(db, chat.id)
        await db.commit()

        await self.schedule_followups(
            chat,
            prior_count=prior_count,
            first_message=content,
            default_title=ctx.mentor.default_chat_title,
        )
        return SendResult(user_message=user_message, reply=reply)

    async def start_streaming_reply(
        self,
        db: AsyncSession,
        *,
        user: User,
        chat_id: UUID,
        content: str,
        image_key: str | None = None,
    ) -> SendResult:
        """Streaming mode: persist the user message and hand the reply to the worker."""
        bind_context(chat_id=str(chat_id))
        chat = await chat_service.get_owned_chat(db, chat_id, user.id)
        await mentor_service.get_mentor(db, chat.mentor_id)
        self.llm.ensure_configured()

        prior_count = await chat_service.count_messages(db, chat.id)
        user_message = await chat_service.save_message(
            db, chat=chat, content=content, is_from_user=True, image_key=image_key,
        )
        await chat_service.touch_chat(db, chat.id)
        await db.commit()

        await self.tasks.enqueue(
            TASK_STREAM_REPLY,
            chat_id=str(chat.id),
            user_id=str(user.id),
            message_id=str(user_message.id),
            prior_count=prior_count,
        )
        return SendResult(user_message=user_message)

    async def stream_reply(
        self,
        db: AsyncSession,
        *,
        chat_id: UUID,
        user_id: UUID,
        message_id: UUID,
        prior_count: int,
        user: User | None = None,
    ) -> Message:
        """Worker side of streaming mode. Re-raises completion failures."""
        bind_context(chat_id=str(chat_id))
        user_message = await chat_service.get_message(db, message_id)
        if not user_message or user_message.chat_id != chat_id:
            raise NotFoundError("Message", message_id)

        ctx = await retrieve_context(
            db,
            chat_id=chat_id,
            user_id=user_id,
            message_text=user_message.content,
            exclude_message_id=user_message.id,
        )
        prompt = await self.build_prompt(
            ctx,
            user=user,
            content=user_message.content,
            image_key=user_message.image_key,
        )
        reply = await self.invoker.invoke_streaming(db, prompt, chat=ctx.chat)

        await chat_service.touch_chat(db, chat_id)
        await db.commit()

        await self.schedule_followups(
            ctx.chat,
            prior_count=prior_count,
            first_message=user_message.content,
            default_title=ctx.mentor.default_chat_title,
        )
        return reply

    # ── Pipeline helpers ─────────────────────────────────────────

    async def resolve_image_url(self, image_key: str | None) -> str | None:
        """URL for the attached image; None means fall back to a text-only turn."""
        if not image_key:
            return None
        try:
            url = await self.blobs.get_url(image_key)
        except Exception as e:
            logger.warning("image_url_resolution_failed", image_key=image_key, error=str(e))
            return None
        if not url:
            logger.info("image_url_missing", image_key=image_key)
        return url

    async def build_prompt(
        self,
        ctx: RetrievedContext,
        *,
        user: User | None,
        content: str,
        image_key: str | None,
    ) -> AssembledPrompt:
        image_url = await self.resolve_image_url(image_key)
        return assemble_prompt(
            mentor=ctx.mentor,
            message=IncomingMessage(text=content, image_key=image_key, image_url=image_url),
            user=user,
            memory=ctx.memory,
            documents=ctx.documents,
            history=ctx.history,
            history_limit=settings.history_limit,
            max_memory_points=settings.memory_max_key_points,
            max_documents=settings.knowledge_max_results,
        )

    async def schedule_followups(
        self,
        chat: Chat,
        *,
        prior_count: int,
        first_message: str,
        default_title: str,
    ) -> list[str]:
        """Enqueue title and memory tasks whose preconditions now hold.

        ``prior_count`` is the number of messages before this exchange; the
        exchange itself adds two.
        """
        scheduled: list[str] = []

        if prior_count == 0:
            if await self._enqueue_followup(
                TASK_GENERATE_TITLE,
                chat_id=str(chat.id),
                first_message=first_message,
                default_title=default_title,
            ):
                scheduled.append(TASK_GENERATE_TITLE)

        total = prior_count + 2
        if should_summarize(total):
            if await self._enqueue_followup(
                TASK_SUMMARIZE_MEMORY,
                chat_id=str(chat.id),
                user_id=str(chat.user_id),
                mentor_id=str(chat.mentor_id),
            ):
                scheduled.append(TASK_SUMMARIZE_MEMORY)

        if scheduled:
            logger.info(
                "followups_scheduled",
                chat_id=str(chat.id),
                total_messages=total,
                tasks=scheduled,
            )
        return scheduled

    async def _enqueue_followup(self, name: str, **payload) -> bool:
        """Enqueue a background enrichment; a queue outage never fails the reply."""
        try:
            await self.tasks.enqueue(name, **payload)
        except Exception as e:
            record_task_outcome(
                TaskOutcome.failure(name, f"enqueue failed: {e}"),
                chat_id=payload.get("chat_id"),
            )
            return False
        return True
