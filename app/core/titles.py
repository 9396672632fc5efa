"""Title generator: names a chat after its first message."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.llm import LLMClient
from app.core.tasks import TASK_GENERATE_TITLE, TaskOutcome, run_best_effort
from app.services.chat import chat_service

TITLE_SYSTEM_PROMPT = (
    "Generate a short, descriptive title (max 6 words) for a chat conversation based on "
    "the first message. Return only the title, no quotes or extra text."
)

MAX_TITLE_WORDS = 6
MAX_TITLE_CHARS = 255


def clean_title(raw: str) -> str:
    title = (raw or "").strip().strip("\"'“”‘’").strip()
    words = title.split()
    if len(words) > MAX_TITLE_WORDS:
        title = " ".join(words[:MAX_TITLE_WORDS])
    return title[:MAX_TITLE_CHARS]


async def generate_title(
    db: AsyncSession,
    llm: LLMClient,
    *,
    chat_id: UUID,
    first_message: str,
    default_title: str,
) -> TaskOutcome:
    """Patch the chat title from the first message. Never raises.

    The title is only written while the chat still has ``default_title``,
    so a rename made by the user in the meantime wins.
    """

    async def _run() -> TaskOutcome:
        reply = await llm.complete(
            [
                {"role": "system", "content": TITLE_SYSTEM_PROMPT},
                {"role": "user", "content": first_message},
            ],
            max_tokens=20,
            temperature=0.3,
        )
        title = clean_title(reply)
        if not title:
            return TaskOutcome.skipped(TASK_GENERATE_TITLE, "empty title")

        try:
            updated = await chat_service.update_title_if_default(
                db, chat_id, title=title, default_title=default_title,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if not updated:
            return TaskOutcome.skipped(TASK_GENERATE_TITLE, "title already changed")
        return TaskOutcome.success(TASK_GENERATE_TITLE, title)

    return await run_best_effort(TASK_GENERATE_TITLE, _run, chat_id=str(chat_id))
