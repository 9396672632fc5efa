"""User profile endpoints."""

from fastapi import APIRouter

from app.deps import CurrentUser, DbSession
from app.schemas.user import UserRead, UserUpdate
from app.services.storage import storage_service
from app.services.user import user_service

router = APIRouter()


async def _to_read(user) -> UserRead:
    read = UserRead.model_validate(user)
    if user.profile_image_key:
        read.profile_image_url = await storage_service.get_url(user.profile_image_key)
    return read


@router.get("/me", response_model=UserRead)
async def get_me(user: CurrentUser) -> UserRead:
    return await _to_read(user)


@router.patch("/me", response_model=UserRead)
async def update_me(
    data: UserUpdate,
    user: CurrentUser,
    db: DbSession,
) -> UserRead:
    """Update profile fields used to personalise mentor replies."""
    await user_service.update_profile(db, user, **data.model_dump(exclude_unset=True))
    await db.commit()
    return await _to_read(user)
