"""Memory summarizer: folds a chat's user messages into the relationship memory.

Runs as a best-effort background task every few messages. The LLM is asked
to consolidate old and new information into at most five key points, which
then replace the previous list.
"""

from __future__ import annotations

import re
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.llm import LLMClient
from app.core.logging import get_logger
from app.core.tasks import TASK_SUMMARIZE_MEMORY, TaskOutcome, run_best_effort
from app.services.chat import chat_service
from app.services.memory import memory_service

logger = get_logger(__name__)
settings = get_settings()

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert at extracting and summarizing key information for mentorship contexts."
)

_BULLET_RE = re.compile(r"^(?:[-*•]+\s*|\d+[.)]\s+)")


def should_summarize(
    total_messages: int,
    *,
    minimum: int | None = None,
    interval: int | None = None,
) -> bool:
    """True once the chat has ``minimum`` messages and the count is a multiple of ``interval``."""
    minimum = settings.memory_trigger_min_messages if minimum is None else minimum
    interval = settings.memory_trigger_interval if interval is None else interval
    return total_messages >= minimum and total_messages % interval == 0


def build_summary_prompt(user_text: str, existing_points: list[str]) -> str:
    existing = ""
    if existing_points:
        bullets = "\n".join(f"- {point}" for point in existing_points)
        existing = f"\nExisting memory about this user:\n{bullets}"

    return f"""Extract key information about this user that would be valuable for future conversations. Focus on:
- Business ideas, projects, or ventures they're working on
- Professional goals and aspirations
- Challenges or problems they're facing
- Personal interests relevant to mentorship
- Important context about their background or situation
- Recurring themes or topics they discuss

User's messages from this conversation:
{user_text}{existing}

Return 3-5 concise bullet points of the most important information to remember about this user. Each point should be specific and actionable for future mentorship. If there's overlap with existing memory, consolidate or update the information rather than repeating it.

Format as a simple list, one point per line, without bullet symbols:"""


def parse_key_points(text: str, limit: int | None = None) -> list[str]:
    """Split the LLM reply into trimmed, non-empty points, capped at ``limit``."""
    limit = settings.memory_max_key_points if limit is None else limit
    points = []
    for line in (text or "").splitlines():
        point = _BULLET_RE.sub("", line.strip()).strip()
        if point:
            points.append(point)
    return points[:limit]


async def _summarize(
    db: AsyncSession,
    llm: LLMClient,
    *,
    chat_id: UUID,
    user_id: UUID,
    mentor_id: UUID,
) -> TaskOutcome:
    messages = await chat_service.list_messages(db, chat_id)
    if len(messages) < settings.memory_min_history:
        return TaskOutcome.skipped(TASK_SUMMARIZE_MEMORY, "not enough messages")

    user_text = "\n".join(m.content for m in messages if m.is_from_user and m.content)
    if not user_text.strip():
        return TaskOutcome.skipped(TASK_SUMMARIZE_MEMORY, "no user text")

    existing = await memory_service.get_memory(db, user_id, mentor_id)
    existing_points = list(existing.key_points or []) if existing else []

    reply = await llm.complete(
        [
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": build_summary_prompt(user_text, existing_points)},
        ],
        max_tokens=300,
        temperature=0.3,
    )
    key_points = parse_key_points(reply)
    if not key_points:
        return TaskOutcome.skipped(TASK_SUMMARIZE_MEMORY, "empty summary")

    memory = await memory_service.save_key_points(db, user_id, mentor_id, key_points)
    await db.commit()
    return TaskOutcome.success(
        TASK_SUMMARIZE_MEMORY,
        f"{len(key_points)} key points, conversation_count={memory.conversation_count}",
    )


async def summarize_memory(
    db: AsyncSession,
    llm: LLMClient,
    *,
    chat_id: UUID,
    user_id: UUID,
    mentor_id: UUID,
) -> TaskOutcome:
    """Re-derive the user/mentor memory from this chat. Never raises."""

    async def _run() -> TaskOutcome:
        try:
            return await _summarize(
                db, llm, chat_id=chat_id, user_id=user_id, mentor_id=mentor_id,
            )
        except Exception:
            await db.rollback()
            raise

    return await run_best_effort(
        TASK_SUMMARIZE_MEMORY,
        _run,
        chat_id=str(chat_id),
        mentor_id=str(mentor_id),
    )
