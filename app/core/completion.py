"""Completion invoker: calls the LLM and persists the assistant reply.

Blocking mode stores one finished message. Streaming mode stores an empty
placeholder first and overwrites it with the accumulated text as fragments
arrive, so any reader polling the message sees it grow. Either way exactly
one message is created per call.
"""

from __future__ import annotations

import time
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UpstreamProtocolError
from app.core.llm import LLMClient
from app.core.logging import get_logger
from app.core.prompt_assembler import AssembledPrompt
from app.models.chat import Chat
from app.models.message import Message
from app.services.chat import chat_service

logger = get_logger(__name__)

APOLOGY_MESSAGE = (
    "I apologize, but I'm having trouble generating a response right now. Please try again."
)

BLOCKING_MAX_TOKENS = 1000
STREAMING_MAX_TOKENS = 500
TEMPERATURE = 0.7


class CompletionInvoker:
    """Runs one completion for an assembled prompt."""

    def __init__(self, llm: LLMClient, *, flush_interval_ms: int = 0) -> None:
        self.llm = llm
        self.flush_interval_ms = flush_interval_ms

    def select_model(self, prompt: AssembledPrompt) -> str:
        """Vision model when the final turn carries an image, light model otherwise."""
        if prompt.is_multimodal:
            return self.llm.config.vision_model
        return self.llm.config.chat_model

    async def invoke(
        self,
        db: AsyncSession,
        prompt: AssembledPrompt,
        *,
        chat: Chat,
    ) -> Message:
        """Blocking completion. Persists and returns the assistant message."""
        model = self.select_model(prompt)
        started = time.monotonic()
        text = await self.llm.complete(
            prompt.to_openai_messages(),
            model=model,
            max_tokens=BLOCKING_MAX_TOKENS,
            temperature=TEMPERATURE,
        )
        if not text.strip():
            raise UpstreamProtocolError("LLM returned an empty completion")

        message = await chat_service.save_message(
            db,
            chat=chat,
            content=text,
            is_from_user=False,
        )
        logger.info(
            "completion_finished",
            chat_id=str(chat.id),
            model=model,
            mode="blocking",
            response_len=len(text),
            latency_ms=int((time.monotonic() - started) * 1000),
        )
        return message

    async def invoke_streaming(
        self,
        db: AsyncSession,
        prompt: AssembledPrompt,
        *,
        chat: Chat,
    ) -> Message:
        """Streaming completion into a placeholder message.

        On failure, cancellation included, the placeholder is overwritten
        with an apology and the original error is re-raised.
        """
        self.llm.ensure_configured()
        model = self.select_model(prompt)

        placeholder = await chat_service.save_message(
            db,
            chat=chat,
            content="",
            is_from_user=False,
        )
        await db.commit()
        message_id = placeholder.id
        chat_id = str(chat.id)

        full_response = ""
        flushed = ""
        last_flush_time = time.monotonic()
        started = last_flush_time

        try:
            async for fragment in self.llm.stream(
                prompt.to_openai_messages(),
                model=model,
                max_tokens=STREAMING_MAX_TOKENS,
                temperature=TEMPERATURE,
            ):
                full_response += fragment
                now = time.monotonic()
                if (now - last_flush_time) * 1000 >= self.flush_interval_ms:
                    await self._write(db, message_id, full_response)
                    flushed = full_response
                    last_flush_time = now

            if not full_response:
                raise UpstreamProtocolError("No response content from the LLM stream")

            # Flush the tail held back by the batch interval
            if full_response != flushed:
                await self._write(db, message_id, full_response)

        except BaseException as e:
            logger.warning(
                "streaming_completion_failed",
                chat_id=chat_id,
                message_id=str(message_id),
                error=str(e) or type(e).__name__,
                partial_len=len(full_response),
            )
            if await self._write_apology(db, message_id):
                placeholder.content = APOLOGY_MESSAGE
            raise

        placeholder.content = full_response
        logger.info(
            "completion_finished",
            chat_id=chat_id,
            model=model,
            mode="streaming",
            response_len=len(full_response),
            latency_ms=int((time.monotonic() - started) * 1000),
        )
        return placeholder

    async def _write(self, db: AsyncSession, message_id: UUID, content: str) -> None:
        await chat_service.update_message_content(db, message_id, content)
        await db.commit()

    async def _write_apology(self, db: AsyncSession, message_id: UUID) -> bool:
        """Replace the placeholder text with the apology on a clean transaction."""
        try:
            await db.rollback()
            await self._write(db, message_id, APOLOGY_MESSAGE)
        except Exception as e:
            logger.error(
                "apology_write_failed",
                message_id=str(message_id),
                error=str(e),
            )
            return False
        return True
