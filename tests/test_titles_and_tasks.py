"""Tests for title generation and best-effort task outcomes."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch


from app.core.exceptions import UpstreamServerError
from app.core.tasks import ArqTaskQueue, TaskOutcome, run_best_effort
from app.core.titles import clean_title, generate_title
from tests.factories import fake_llm


# ── Title cleanup ───────────────────────────────────────────────


class TestCleanTitle:
    def test_strips_quotes_and_whitespace(self):
        assert clean_title('  "Launching a Bakery"  ') == "Launching a Bakery"

    def test_caps_at_six_words(self):
        assert clean_title("one two three four five six seven eight") == "one two three four five six"

    def test_empty(self):
        assert clean_title("  ") == ""


# ── generate_title (mocked LLM) ─────────────────────────────────


class TestGenerateTitle:
    async def test_patches_default_title(self, db, chat, mentor):
        llm = fake_llm(complete='"Funding a Coffee Startup"')
        with patch("app.core.titles.chat_service") as chats:
            chats.update_title_if_default = AsyncMock(return_value=True)
            outcome = await generate_title(
                db,
                llm,
                chat_id=chat.id,
                first_message="How do I raise money for my coffee startup?",
                default_title=mentor.default_chat_title,
            )

        assert outcome.ok
        assert outcome.detail == "Funding a Coffee Startup"
        kwargs = chats.update_title_if_default.await_args.kwargs
        assert kwargs == {"title": "Funding a Coffee Startup", "default_title": "Chat with Grace"}
        assert llm.complete.await_args.kwargs == {"max_tokens": 20, "temperature": 0.3}

    async def test_user_rename_wins(self, db, chat, mentor):
        with patch("app.core.titles.chat_service") as chats:
            chats.update_title_if_default = AsyncMock(return_value=False)
            outcome = await generate_title(
                db,
                fake_llm(complete="Some Title"),
                chat_id=chat.id,
                first_message="hi",
                default_title=mentor.default_chat_title,
            )

        assert outcome.ok
        assert outcome.detail == "skipped: title already changed"

    async def test_llm_failure_never_raises(self, db, chat, mentor):
        with patch("app.core.titles.chat_service") as chats:
            chats.update_title_if_default = AsyncMock()
            outcome = await generate_title(
                db,
                fake_llm(complete=UpstreamServerError("down")),
                chat_id=chat.id,
                first_message="hi",
                default_title=mentor.default_chat_title,
            )

        assert not outcome.ok
        chats.update_title_if_default.assert_not_awaited()


# ── Best-effort outcomes ────────────────────────────────────────


class TestRunBestEffort:
    async def test_success_passes_through(self):
        async def _ok() -> TaskOutcome:
            return TaskOutcome.success("demo", "done")

        outcome = await run_best_effort("demo", _ok)
        assert outcome == TaskOutcome(task="demo", ok=True, detail="done")

    async def test_exception_becomes_failure(self):
        async def _boom() -> TaskOutcome:
            raise RuntimeError("kaput")

        outcome = await run_best_effort("demo", _boom, chat_id="c1")
        assert outcome.ok is False
        assert outcome.error == "RuntimeError: kaput"

    async def test_failures_are_recorded(self):
        async def _boom() -> TaskOutcome:
            raise ValueError("bad")

        with patch("app.core.tasks.logger") as logger:
            await run_best_effort("demo", _boom)
        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "background_task_failed"


# ── Arq queue ───────────────────────────────────────────────────


class TestArqTaskQueue:
    async def test_enqueue_forwards_payload(self):
        pool = MagicMock()
        pool.enqueue_job = AsyncMock(return_value=MagicMock(job_id="job-1"))
        queue = ArqTaskQueue(pool)

        await queue.enqueue("generate_title", chat_id="c1", first_message="hi")

        pool.enqueue_job.assert_awaited_once_with("generate_title", chat_id="c1", first_message="hi")

    async def test_duplicate_job_is_not_an_error(self):
        pool = MagicMock()
        pool.enqueue_job = AsyncMock(return_value=None)
        await ArqTaskQueue(pool).enqueue("summarize_memory", chat_id="c1")
