"""Tests for the arq task functions."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from app.core.exceptions import UpstreamServerError
from app.core.tasks import TASK_GENERATE_TITLE, TASK_SUMMARIZE_MEMORY, TaskOutcome
from app.workers import chat_tasks
from tests.factories import fake_llm, make_message


@pytest.fixture
def session(db):
    """Route the task's own session factory to the mocked session."""
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=db)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    with patch("app.workers.chat_tasks.async_session_maker", factory):
        yield db


@pytest.fixture
def worker_ctx() -> dict:
    return {"redis": MagicMock(), "llm": fake_llm()}


# ── stream_reply ───────────────────────────────────────────────────


class TestStreamReplyTask:
    @pytest.fixture
    def service(self, user):
        service = MagicMock()
        with patch("app.workers.chat_tasks.ConversationService", return_value=service), \
             patch("app.workers.chat_tasks.user_service") as users:
            users.get_user = AsyncMock(return_value=user)
            yield service

    async def test_returns_reply_summary(self, session, worker_ctx, service, chat, user):
        reply = make_message(chat, "Here is my advice.", is_from_user=False)
        service.stream_reply = AsyncMock(return_value=reply)
        message_id = uuid4()

        result = await chat_tasks.stream_reply(
            worker_ctx, str(chat.id), str(user.id), str(message_id), 4,
        )

        assert result == {"status": "ok", "message_id": str(reply.id), "response_len": 18}
        kwargs = service.stream_reply.await_args.kwargs
        assert kwargs["chat_id"] == chat.id
        assert kwargs["message_id"] == message_id
        assert kwargs["prior_count"] == 4
        assert kwargs["user"] is user

    async def test_upstream_failure_is_reraised(self, session, worker_ctx, service, chat, user):
        service.stream_reply = AsyncMock(side_effect=UpstreamServerError("stream reset"))

        with pytest.raises(UpstreamServerError):
            await chat_tasks.stream_reply(worker_ctx, str(chat.id), str(user.id), str(uuid4()), 0)

    async def test_unexpected_failure_rolls_back_and_reraises(self, session, worker_ctx, service, chat, user):
        service.stream_reply = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await chat_tasks.stream_reply(worker_ctx, str(chat.id), str(user.id), str(uuid4()), 0)
        session.rollback.assert_awaited_once()


# ── Best-effort enrichments ────────────────────────────────────────


class TestEnrichmentTasks:
    async def test_summarize_memory_reports_ok(self, session, worker_ctx, chat):
        outcome = TaskOutcome.success(TASK_SUMMARIZE_MEMORY, "3 key points")
        with patch("app.workers.chat_tasks._summarize_memory", AsyncMock(return_value=outcome)) as run:
            result = await chat_tasks.summarize_memory(
                worker_ctx, str(chat.id), str(chat.user_id), str(chat.mentor_id),
            )

        assert result == {"status": "ok", "task": TASK_SUMMARIZE_MEMORY, "detail": "3 key points"}
        assert run.await_args.kwargs["mentor_id"] == chat.mentor_id
        assert run.await_args.args == (session, worker_ctx["llm"])

    async def test_summarize_memory_reports_error(self, session, worker_ctx, chat):
        outcome = TaskOutcome.failure(TASK_SUMMARIZE_MEMORY, "upstream_server_error")
        with patch("app.workers.chat_tasks._summarize_memory", AsyncMock(return_value=outcome)):
            result = await chat_tasks.summarize_memory(
                worker_ctx, str(chat.id), str(chat.user_id), str(chat.mentor_id),
            )

        assert result == {
            "status": "error",
            "task": TASK_SUMMARIZE_MEMORY,
            "message": "upstream_server_error",
        }

    async def test_generate_title_passes_default_title(self, session, worker_ctx, chat):
        outcome = TaskOutcome.skipped(TASK_GENERATE_TITLE, "title already changed")
        with patch("app.workers.chat_tasks._generate_title", AsyncMock(return_value=outcome)) as run:
            result = await chat_tasks.generate_title(
                worker_ctx, str(chat.id), "How do I price my cakes?", "Chat with Grace",
            )

        assert result["status"] == "ok"
        assert result["detail"] == "skipped: title already changed"
        kwargs = run.await_args.kwargs
        assert kwargs["chat_id"] == chat.id
        assert kwargs["default_title"] == "Chat with Grace"
