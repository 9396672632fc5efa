"""Chat endpoints: chats, messages and the send pipeline."""

from uuid import UUID

from fastapi import APIRouter, status

from app.deps import Conversation, CurrentUser, DbSession
from app.models.message import Message
from app.schemas.chat import (
    ChatCreate,
    ChatDetail,
    ChatRead,
    ChatRename,
    DeletedCount,
    MessageRead,
    MessageSend,
    SendResponse,
    StreamAccepted,
)
from app.services.chat import chat_service
from app.services.mentor import mentor_service
from app.services.storage import storage_service

router = APIRouter()


async def _message_read(message: Message) -> MessageRead:
    read = MessageRead.model_validate(message)
    if message.image_key:
        read.image_url = await storage_service.get_url(message.image_key)
    return read


@router.get("", response_model=list[ChatRead])
async def list_chats(user: CurrentUser, db: DbSession) -> list[ChatRead]:
    """Own active chats, most recently used first."""
    chats = await chat_service.list_chats(db, user.id)
    return [ChatRead.model_validate(c) for c in chats]


@router.post("", response_model=ChatRead, status_code=status.HTTP_201_CREATED)
async def create_chat(data: ChatCreate, user: CurrentUser, db: DbSession) -> ChatRead:
    mentor = await mentor_service.get_mentor(db, data.mentor_id)
    chat = await chat_service.create_chat(db, user_id=user.id, mentor=mentor, title=data.title)
    await db.commit()
    await db.refresh(chat)
    return ChatRead.model_validate(chat)


@router.get("/{chat_id}", response_model=ChatDetail)
async def get_chat(chat_id: UUID, user: CurrentUser, db: DbSession) -> ChatDetail:
    """Chat with its messages; attached image keys are resolved to URLs."""
    chat = await chat_service.get_owned_chat(db, chat_id, user.id)
    messages = await chat_service.list_messages(db, chat.id)
    return ChatDetail(
        **ChatRead.model_validate(chat).model_dump(),
        messages=[await _message_read(m) for m in messages],
    )


@router.patch("/{chat_id}", response_model=ChatRead)
async def rename_chat(
    chat_id: UUID,
    data: ChatRename,
    user: CurrentUser,
    db: DbSession,
) -> ChatRead:
    chat = await chat_service.get_owned_chat(db, chat_id, user.id)
    await chat_service.rename_chat(db, chat, data.title)
    await db.commit()
    return ChatRead.model_validate(chat)


@router.delete("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chat(chat_id: UUID, user: CurrentUser, db: DbSession) -> None:
    """Delete a chat and its messages.

    Deleting the last chat with a mentor also forgets the memory of that mentor.
    """
    chat = await chat_service.get_owned_chat(db, chat_id, user.id)
    await chat_service.delete_chat(db, chat)
    await db.commit()


@router.delete("/mentors/{mentor_id}", response_model=DeletedCount)
async def delete_chats_with_mentor(
    mentor_id: UUID,
    user: CurrentUser,
    db: DbSession,
) -> DeletedCount:
    deleted = await chat_service.delete_chats_with_mentor(db, user.id, mentor_id)
    await db.commit()
    return DeletedCount(deleted=deleted)


@router.get("/{chat_id}/messages", response_model=list[MessageRead])
async def list_messages(chat_id: UUID, user: CurrentUser, db: DbSession) -> list[MessageRead]:
    """Messages in order; poll this while a streamed reply is growing."""
    chat = await chat_service.get_owned_chat(db, chat_id, user.id)
    messages = await chat_service.list_messages(db, chat.id)
    return [await _message_read(m) for m in messages]


@router.post("/{chat_id}/messages", response_model=SendResponse)
async def send_message(
    chat_id: UUID,
    data: MessageSend,
    user: CurrentUser,
    db: DbSession,
    conversation: Conversation,
) -> SendResponse:
    """Send a message and wait for the mentor's reply."""
    result = await conversation.send_message(
        db,
        user=user,
        chat_id=chat_id,
        content=data.content,
        image_key=data.image_key,
    )
    return SendResponse(
        user_message=await _message_read(result.user_message),
        reply=await _message_read(result.reply),
    )


@router.post(
    "/{chat_id}/messages/stream",
    response_model=StreamAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def send_message_streaming(
    chat_id: UUID,
    data: MessageSend,
    user: CurrentUser,
    db: DbSession,
    conversation: Conversation,
) -> StreamAccepted:
    """Send a message; the reply is streamed into a new assistant message by the worker."""
    result = await conversation.start_streaming_reply(
        db,
        user=user,
        chat_id=chat_id,
        content=data.content,
        image_key=data.image_key,
    )
    return StreamAccepted(user_message=await _message_read(result.user_message))
