"""Chat service: chats, messages and the delete cascade."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.chat import Chat
from app.models.mentor import Mentor
from app.models.message import Message
from app.services.memory import memory_service


class ChatService:
    """Data access for chats and their messages.

    A chat exclusively owns its messages; deleting a chat deletes them, and
    deleting the last chat with a mentor also drops the user's memory of
    that mentor.
    """

    # ── Chats ────────────────────────────────────────────────────

    async def get_chat(self, db: AsyncSession, chat_id: UUID) -> Chat | None:
        result = await db.execute(select(Chat).where(Chat.id == chat_id))
        return result.scalar_one_or_none()

    async def get_owned_chat(
        self,
        db: AsyncSession,
        chat_id: UUID,
        user_id: UUID,
    ) -> Chat:
        """Return an active chat owned by ``user_id`` or raise NotFoundError."""
        chat = await self.get_chat(db, chat_id)
        if not chat or chat.user_id != user_id or not chat.is_active:
            raise NotFoundError("Chat", chat_id)
        return chat

    async def list_chats(self, db: AsyncSession, user_id: UUID) -> list[Chat]:
        result = await db.execute(
            select(Chat)
            .where(Chat.user_id == user_id)
            .where(Chat.is_active.is_(True))
            .order_by(Chat.last_message_at.desc().nulls_last(), Chat.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_chat(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        mentor: Mentor,
        title: str | None = None,
    ) -> Chat:
        chat = Chat(
            user_id=user_id,
            mentor_id=mentor.id,
            title=title or mentor.default_chat_title,
            is_active=True,
        )
        db.add(chat)
        await db.flush()
        return chat

    async def rename_chat(self, db: AsyncSession, chat: Chat, title: str) -> Chat:
        chat.title = title
        await db.flush()
        return chat

    async def update_title_if_default(
        self,
        db: AsyncSession,
        chat_id: UUID,
        *,
        title: str,
        default_title: str,
    ) -> bool:
        """Set the title only while the chat still carries its placeholder.

        Returns False when the user renamed the chat in the meantime.
        """
        result = await db.execute(
            update(Chat)
            .where(Chat.id == chat_id)
            .where(Chat.title == default_title)
            .values(title=title)
        )
        return (result.rowcount or 0) > 0

    async def touch_chat(self, db: AsyncSession, chat_id: UUID) -> None:
        await db.execute(
            update(Chat)
            .where(Chat.id == chat_id)
            .values(last_message_at=datetime.now(UTC))
        )

    # ── Messages ─────────────────────────────────────────────────

    async def count_messages(self, db: AsyncSession, chat_id: UUID) -> int:
        result = await db.execute(
            select(func.count()).select_from(Message).where(Message.chat_id == chat_id)
        )
        return int(result.scalar_one())

    async def list_messages(self, db: AsyncSession, chat_id: UUID) -> list[Message]:
        """All messages of a chat in chronological order."""
        result = await db.execute(
            select(Message)
            .where(Message.chat_id == chat_id)
            .order_by(Message.seq.asc())
        )
        return list(result.scalars().all())

    async def recent_messages(
        self,
        db: AsyncSession,
        chat_id: UUID,
        *,
        limit: int,
        exclude_id: UUID | None = None,
    ) -> list[Message]:
        """The ``limit`` most recent messages, oldest first."""
        stmt = (
            select(Message)
            .where(Message.chat_id == chat_id)
            .order_by(Message.seq.desc())
            .limit(limit)
        )
        if exclude_id is not None:
            stmt = stmt.where(Message.id != exclude_id)
        result = await db.execute(stmt)
        return list(reversed(result.scalars().all()))

    async def get_message(self, db: AsyncSession, message_id: UUID) -> Message | None:
        result = await db.execute(select(Message).where(Message.id == message_id))
        return result.scalar_one_or_none()

    async def save_message(
        self,
        db: AsyncSession,
        *,
        chat: Chat,
        content: str,
        is_from_user: bool,
        image_key: str | None = None,
    ) -> Message:
        message = Message(
            chat_id=chat.id,
            user_id=chat.user_id,
            mentor_id=chat.mentor_id,
            content=content,
            is_from_user=is_from_user,
            image_key=image_key,
        )
        db.add(message)
        await db.flush()
        return message

    async def update_message_content(
        self,
        db: AsyncSession,
        message_id: UUID,
        content: str,
    ) -> None:
        """Overwrite a message's content (used while streaming)."""
        await db.execute(
            update(Message)
            .where(Message.id == message_id)
            .values(content=content)
        )

    # ── Deletion cascade ─────────────────────────────────────────

    async def delete_chat(self, db: AsyncSession, chat: Chat) -> None:
        await db.execute(delete(Message).where(Message.chat_id == chat.id))
        await db.execute(delete(Chat).where(Chat.id == chat.id))

        remaining = await db.execute(
            select(func.count())
            .select_from(Chat)
            .where(Chat.user_id == chat.user_id)
            .where(Chat.mentor_id == chat.mentor_id)
        )
        if int(remaining.scalar_one()) == 0:
            await memory_service.delete_memory(db, chat.user_id, chat.mentor_id)

    async def delete_chats_with_mentor(
        self,
        db: AsyncSession,
        user_id: UUID,
        mentor_id: UUID,
    ) -> int:
        """Delete every chat of the user with a mentor, plus their memory."""
        result = await db.execute(
            select(Chat.id)
            .where(Chat.user_id == user_id)
            .where(Chat.mentor_id == mentor_id)
        )
        chat_ids = list(result.scalars().all())

        if chat_ids:
            await db.execute(delete(Message).where(Message.chat_id.in_(chat_ids)))
            await db.execute(delete(Chat).where(Chat.id.in_(chat_ids)))

        await memory_service.delete_memory(db, user_id, mentor_id)
        return len(chat_ids)


# Singleton
chat_service = ChatService()
