"""Tests for context retrieval and the bounded history query."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from app.core.context import retrieve_context
from app.core.exceptions import NotFoundError
from app.services.chat import chat_service
from app.services.knowledge import KnowledgeSnippet
from tests.factories import make_memory, make_message


@pytest.fixture
def sources(chat, mentor):
    """Patch the services the retriever reads from."""
    with patch("app.core.context.chat_service") as chats, \
         patch("app.core.context.mentor_service") as mentors, \
         patch("app.core.context.memory_service") as memories, \
         patch("app.core.context.knowledge_service") as knowledge:
        chats.get_owned_chat = AsyncMock(return_value=chat)
        chats.recent_messages = AsyncMock(return_value=[])
        mentors.get_mentor = AsyncMock(return_value=mentor)
        memories.get_memory = AsyncMock(return_value=None)
        knowledge.search = AsyncMock(return_value=[])
        yield chats, mentors, memories, knowledge


# ── retrieve_context (mocked services) ─────────────────────────────


class TestRetrieveContext:
    async def test_collects_every_source(self, db, user, mentor, chat, sources):
        chats, _, memories, knowledge = sources
        history = [make_message(chat, "Hi"), make_message(chat, "Hello!", is_from_user=False)]
        memory = make_memory(user, mentor, ["Building a bakery"])
        snippet = KnowledgeSnippet(title="Pricing", content="Charge more.")
        chats.recent_messages.return_value = history
        memories.get_memory.return_value = memory
        knowledge.search.return_value = [snippet]

        ctx = await retrieve_context(db, chat_id=chat.id, user_id=user.id, message_text="pricing")

        assert ctx.chat is chat
        assert ctx.mentor is mentor
        assert ctx.history == history
        assert ctx.memory is memory
        assert ctx.documents == [snippet]
        memories.get_memory.assert_awaited_once_with(db, user.id, mentor.id)

    async def test_caps_are_forwarded(self, db, user, mentor, chat, sources):
        chats, _, _, knowledge = sources
        incoming_id = uuid4()

        await retrieve_context(
            db,
            chat_id=chat.id,
            user_id=user.id,
            message_text="funding",
            exclude_message_id=incoming_id,
        )

        chats.recent_messages.assert_awaited_once_with(db, chat.id, limit=10, exclude_id=incoming_id)
        knowledge.search.assert_awaited_once_with(db, mentor.id, "funding", limit=3, snippet_chars=500)

    async def test_missing_memory_is_none(self, db, user, chat, sources):
        ctx = await retrieve_context(db, chat_id=chat.id, user_id=user.id, message_text="hi")
        assert ctx.memory is None
        assert ctx.history == []
        assert ctx.documents == []

    async def test_mentor_mismatch_is_not_found(self, db, user, chat, sources):
        chats, mentors, _, _ = sources

        with pytest.raises(NotFoundError):
            await retrieve_context(
                db, chat_id=chat.id, user_id=user.id, message_text="hi", mentor_id=uuid4(),
            )
        mentors.get_mentor.assert_not_awaited()
        chats.recent_messages.assert_not_awaited()

    async def test_inactive_mentor_is_not_found(self, db, user, chat, sources):
        chats, mentors, _, _ = sources
        mentors.get_mentor.side_effect = NotFoundError("Mentor", chat.mentor_id)

        with pytest.raises(NotFoundError):
            await retrieve_context(db, chat_id=chat.id, user_id=user.id, message_text="hi")
        chats.recent_messages.assert_not_awaited()

    async def test_foreign_chat_is_not_found(self, db, user, chat, sources):
        chats, _, _, knowledge = sources
        chats.get_owned_chat.side_effect = NotFoundError("Chat", chat.id)

        with pytest.raises(NotFoundError):
            await retrieve_context(db, chat_id=chat.id, user_id=uuid4(), message_text="hi")
        knowledge.search.assert_not_awaited()


# ── ChatService.recent_messages ────────────────────────────────────


class TestRecentMessages:
    def _db_returning(self, db, rows):
        result = MagicMock()
        result.scalars.return_value.all.return_value = rows
        db.execute = AsyncMock(return_value=result)
        return db

    def _compiled(self, db):
        stmt = db.execute.await_args.args[0]
        return stmt.compile(dialect=postgresql.dialect())

    async def test_returns_oldest_first(self, db, chat):
        newest_first = [make_message(chat, "m3"), make_message(chat, "m2"), make_message(chat, "m1")]
        self._db_returning(db, newest_first)

        history = await chat_service.recent_messages(db, chat.id, limit=3)

        assert [m.content for m in history] == ["m1", "m2", "m3"]

    async def test_query_orders_by_seq_desc_and_limits(self, db, chat):
        self._db_returning(db, [])

        await chat_service.recent_messages(db, chat.id, limit=10)

        compiled = self._compiled(db)
        sql = str(compiled)
        assert "ORDER BY messages.seq DESC" in sql
        assert "LIMIT" in sql
        assert 10 in compiled.params.values()
        assert "messages.id !=" not in sql

    async def test_excluded_message_filtered_in_query(self, db, chat):
        self._db_returning(db, [])
        incoming_id = uuid4()

        await chat_service.recent_messages(db, chat.id, limit=10, exclude_id=incoming_id)

        compiled = self._compiled(db)
        assert "messages.id !=" in str(compiled)
        assert incoming_id in compiled.params.values()
