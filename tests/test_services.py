"""Tests for the CRUD services: mentors, chats, memory and feedback."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from app.core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from app.services.chat import chat_service
from app.services.feedback import feedback_service
from app.services.memory import memory_service
from app.services.mentor import category_matches, mentor_service
from app.services.storage import StorageService
from tests.factories import make_memory, make_mentor, make_user


def _result(scalar=None, count: int | None = None) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = count
    return result


# ── Mentors ─────────────────────────────────────────────────────


class TestCategoryMatches:
    def test_case_insensitive(self):
        assert category_matches(["Entrepreneurship"], "entrepreneurship")

    def test_query_contained_in_category(self):
        assert category_matches(["Business Strategy"], "strategy")

    def test_category_contained_in_query(self):
        assert category_matches(["Tech"], "Tech Startups")

    def test_no_match(self):
        assert not category_matches(["Fitness"], "Finance")


class TestMentorService:
    def test_creator_can_edit(self, user):
        mentor = make_mentor(created_by=user.id)
        mentor_service.ensure_can_edit(mentor, user)

    def test_admin_can_edit_any(self):
        mentor_service.ensure_can_edit(make_mentor(created_by=None), make_user(is_admin=True))

    def test_stranger_cannot_edit(self, user):
        with pytest.raises(UnauthorizedError):
            mentor_service.ensure_can_edit(make_mentor(created_by=make_user().id), user)

    async def test_inactive_mentor_is_not_found(self, db):
        mentor = make_mentor(is_active=False)
        db.execute = AsyncMock(return_value=_result(mentor))

        with pytest.raises(NotFoundError):
            await mentor_service.get_mentor(db, mentor.id)
        assert await mentor_service.get_mentor(db, mentor.id, include_inactive=True) is mentor

    async def test_update_ignores_none(self, db, mentor):
        await mentor_service.update_mentor(db, mentor, name="Grace Hopper", bio=None)
        assert mentor.name == "Grace Hopper"
        assert mentor.bio == "Serial founder"


# ── Chats ───────────────────────────────────────────────────────


class TestChatService:
    async def test_foreign_chat_is_not_found(self, db, chat):
        db.execute = AsyncMock(return_value=_result(chat))
        with pytest.raises(NotFoundError):
            await chat_service.get_owned_chat(db, chat.id, make_user().id)

    async def test_inactive_chat_is_not_found(self, db, chat, user):
        chat.is_active = False
        db.execute = AsyncMock(return_value=_result(chat))
        with pytest.raises(NotFoundError):
            await chat_service.get_owned_chat(db, chat.id, user.id)

    async def test_default_title(self, db, user, mentor):
        chat = await chat_service.create_chat(db, user_id=user.id, mentor=mentor)
        assert chat.title == "Chat with Grace"

    async def test_deleting_last_chat_forgets_memory(self, db, chat):
        db.execute = AsyncMock(side_effect=[MagicMock(), MagicMock(), _result(count=0)])
        with patch("app.services.chat.memory_service") as memories:
            memories.delete_memory = AsyncMock()
            await chat_service.delete_chat(db, chat)
        memories.delete_memory.assert_awaited_once_with(db, chat.user_id, chat.mentor_id)

    async def test_memory_kept_while_other_chats_remain(self, db, chat):
        db.execute = AsyncMock(side_effect=[MagicMock(), MagicMock(), _result(count=2)])
        with patch("app.services.chat.memory_service") as memories:
            memories.delete_memory = AsyncMock()
            await chat_service.delete_chat(db, chat)
        memories.delete_memory.assert_not_awaited()

    async def test_title_guard_reports_no_update(self, db, chat):
        result = MagicMock(rowcount=0)
        db.execute = AsyncMock(return_value=result)
        updated = await chat_service.update_title_if_default(
            db, chat.id, title="New", default_title="Chat with Grace",
        )
        assert updated is False


# ── Memory ──────────────────────────────────────────────────────


class TestMemoryService:
    async def test_first_summary_inserts(self, db, user, mentor):
        db.execute = AsyncMock(return_value=_result(None))
        memory = await memory_service.save_key_points(db, user.id, mentor.id, ["a", "b"])
        db.add.assert_called_once_with(memory)
        assert memory.key_points == ["a", "b"]
        assert memory.conversation_count == 1

    async def test_later_summary_replaces_and_counts(self, db, user, mentor):
        existing = make_memory(user, mentor, ["old"], count=3)
        db.execute = AsyncMock(return_value=_result(existing))
        memory = await memory_service.save_key_points(db, user.id, mentor.id, ["new"])
        assert memory is existing
        assert memory.key_points == ["new"]
        assert memory.conversation_count == 4
        db.add.assert_not_called()


# ── Feedback ────────────────────────────────────────────────────


class TestFeedbackService:
    async def test_message_trimmed(self, db):
        feedback = await feedback_service.submit(db, message="  Love it  ", email=" ")
        assert feedback.message == "Love it"
        assert feedback.email is None

    async def test_empty_message_rejected(self, db):
        with pytest.raises(ValidationError):
            await feedback_service.submit(db, message="   ")
        db.add.assert_not_called()


# ── Storage (mocked boto3) ──────────────────────────────────────


class TestStorageService:
    def _service(self, client: MagicMock) -> StorageService:
        service = StorageService()
        service._client = client
        return service

    async def test_missing_object_resolves_to_none(self):
        client = MagicMock()
        client.head_object.side_effect = ClientError({"Error": {"Code": "404"}}, "HeadObject")

        assert await self._service(client).get_url("images/missing.png") is None
        client.generate_presigned_url.assert_not_called()

    async def test_existing_object_gets_presigned_url(self):
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://bucket/images/a.png?sig"

        url = await self._service(client).get_url("images/a.png")

        assert url == "https://bucket/images/a.png?sig"
        assert client.generate_presigned_url.call_args.args[0] == "get_object"

    async def test_upload_key_uses_extension(self):
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://bucket/put"

        key, url = await self._service(client).generate_upload_url(
            content_type="image/png", prefix="messages/u1",
        )

        assert key.startswith("messages/u1/")
        assert key.endswith(".png")
        assert url == "https://bucket/put"
