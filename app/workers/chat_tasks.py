"""Chat worker tasks: streaming replies and post-reply enrichments.

Each task opens its own session. Streaming failures are re-raised after the
placeholder message has been replaced with the apology; memory and title
tasks are best-effort and always return a status dict.
"""

from __future__ import annotations

from uuid import UUID

from app.config import get_settings
from app.core.exceptions import MagisterError
from app.core.llm import LLMClient, LLMConfig
from app.core.logging import bind_context, get_logger
from app.core.memory_summarizer import summarize_memory as _summarize_memory
from app.core.tasks import (
    TASK_GENERATE_TITLE,
    TASK_STREAM_REPLY,
    TASK_SUMMARIZE_MEMORY,
    ArqTaskQueue,
    TaskOutcome,
)
from app.core.titles import generate_title as _generate_title
from app.database import async_session_maker
from app.services.conversation import ConversationService
from app.services.storage import storage_service
from app.services.user import user_service

settings = get_settings()
logger = get_logger(__name__)


def _get_llm(ctx: dict) -> LLMClient:
    if "llm" not in ctx:
        ctx["llm"] = LLMClient(LLMConfig.from_settings(settings))
    return ctx["llm"]


def _outcome_dict(outcome: TaskOutcome) -> dict:
    if outcome.ok:
        return {"status": "ok", "task": outcome.task, "detail": outcome.detail}
    return {"status": "error", "task": outcome.task, "message": outcome.error}


async def stream_reply(
    ctx: dict,
    chat_id: str,
    user_id: str,
    message_id: str,
    prior_count: int,
) -> dict:
    """Arq task: stream the assistant reply for a persisted user message."""
    bind_context(task=TASK_STREAM_REPLY, chat_id=chat_id, user_id=user_id)

    service = ConversationService(
        _get_llm(ctx),
        storage_service,
        ArqTaskQueue(ctx["redis"]),
    )

    async with async_session_maker() as db:
        try:
            user = await user_service.get_user(db, UUID(user_id))
            reply = await service.stream_reply(
                db,
                chat_id=UUID(chat_id),
                user_id=UUID(user_id),
                message_id=UUID(message_id),
                prior_count=prior_count,
                user=user,
            )
        except MagisterError as e:
            logger.warning("stream_reply_failed", code=e.code, error=str(e))
            raise
        except Exception:
            logger.exception("stream_reply_exception")
            await db.rollback()
            raise

    return {
        "status": "ok",
        "message_id": str(reply.id),
        "response_len": len(reply.content),
    }


async def summarize_memory(
    ctx: dict,
    chat_id: str,
    user_id: str,
    mentor_id: str,
) -> dict:
    """Arq task: refresh the user/mentor memory from a chat."""
    bind_context(task=TASK_SUMMARIZE_MEMORY, chat_id=chat_id, user_id=user_id)

    async with async_session_maker() as db:
        outcome = await _summarize_memory(
            db,
            _get_llm(ctx),
            chat_id=UUID(chat_id),
            user_id=UUID(user_id),
            mentor_id=UUID(mentor_id),
        )
    return _outcome_dict(outcome)


async def generate_title(
    ctx: dict,
    chat_id: str,
    first_message: str,
    default_title: str,
) -> dict:
    """Arq task: name a chat after its first message."""
    bind_context(task=TASK_GENERATE_TITLE, chat_id=chat_id)

    async with async_session_maker() as db:
        outcome = await _generate_title(
            db,
            _get_llm(ctx),
            chat_id=UUID(chat_id),
            first_message=first_message,
            default_title=default_title,
        )
    return _outcome_dict(outcome)
