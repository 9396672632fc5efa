"""FastAPI dependencies: session, current user and pipeline wiring."""

from collections.abc import AsyncIterator
from typing import Annotated
from uuid import UUID

from arq import create_pool
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.llm import LLMClient, LLMConfig
from app.core.logging import bind_context
from app.core.tasks import ArqTaskQueue, TaskQueue
from app.database import async_session_maker
from app.models.user import User
from app.services.conversation import ConversationService
from app.services.storage import storage_service
from app.services.user import user_service
from app.workers.settings import redis_settings

settings = get_settings()


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a session; commit on success, roll back on error."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    db: DbSession,
    x_user_id: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve the caller from the identity header set by the auth proxy."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        user_uuid = UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user identity",
        )

    user = await user_service.get_user(db, user_uuid)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    bind_context(user_id=str(user.id))
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_optional_user(
    db: DbSession,
    x_user_id: Annotated[str | None, Header()] = None,
) -> User | None:
    """Like get_current_user, but anonymous callers get None."""
    if not x_user_id:
        return None
    return await get_current_user(db, x_user_id)


OptionalUser = Annotated[User | None, Depends(get_optional_user)]


async def get_admin_user(user: CurrentUser) -> User:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


AdminUser = Annotated[User, Depends(get_admin_user)]


def get_llm_client() -> LLMClient:
    return LLMClient(LLMConfig.from_settings(settings))


async def get_task_queue() -> AsyncIterator[TaskQueue]:
    """Arq-backed queue for one request; the pool is closed afterwards."""
    pool = await create_pool(redis_settings)
    try:
        yield ArqTaskQueue(pool)
    finally:
        await pool.close()


LLM = Annotated[LLMClient, Depends(get_llm_client)]


def get_conversation_service(
    llm: LLM,
    tasks: Annotated[TaskQueue, Depends(get_task_queue)],
) -> ConversationService:
    return ConversationService(llm, storage_service, tasks)


Conversation = Annotated[ConversationService, Depends(get_conversation_service)]
