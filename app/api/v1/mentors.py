"""Mentor endpoints: catalogue, creation and lifecycle."""

from uuid import UUID

from fastapi import APIRouter, status

from app.deps import AdminUser, CurrentUser, DbSession
from app.models.mentor import Mentor
from app.schemas.mentor import MentorCreate, MentorRead, MentorUpdate
from app.services.mentor import mentor_service
from app.services.storage import storage_service

router = APIRouter()


async def _to_read(mentor: Mentor) -> MentorRead:
    read = MentorRead.model_validate(mentor)
    if mentor.profile_image_key:
        read.profile_image_url = await storage_service.get_url(mentor.profile_image_key)
    return read


@router.get("", response_model=list[MentorRead])
async def list_mentors(
    user: CurrentUser,
    db: DbSession,
    category: str | None = None,
) -> list[MentorRead]:
    """Active mentors, optionally filtered by category."""
    if category:
        mentors = await mentor_service.list_by_category(db, category)
    else:
        mentors = await mentor_service.list_active(db)
    return [await _to_read(m) for m in mentors]


@router.get("/all", response_model=list[MentorRead])
async def list_all_mentors(admin: AdminUser, db: DbSession) -> list[MentorRead]:
    """Every mentor including deactivated ones (admin only)."""
    return [await _to_read(m) for m in await mentor_service.list_all(db)]


@router.get("/mine", response_model=list[MentorRead])
async def list_my_mentors(user: CurrentUser, db: DbSession) -> list[MentorRead]:
    return [await _to_read(m) for m in await mentor_service.list_owned(db, user.id)]


@router.get("/{mentor_id}", response_model=MentorRead)
async def get_mentor(mentor_id: UUID, user: CurrentUser, db: DbSession) -> MentorRead:
    mentor = await mentor_service.get_mentor(db, mentor_id)
    return await _to_read(mentor)


@router.post("", response_model=MentorRead, status_code=status.HTTP_201_CREATED)
async def create_mentor(
    data: MentorCreate,
    user: CurrentUser,
    db: DbSession,
) -> MentorRead:
    mentor = await mentor_service.create_mentor(
        db,
        name=data.name,
        bio=data.bio,
        categories=data.categories,
        persona_prompt=data.persona_prompt,
        profile_image_key=data.profile_image_key,
        created_by=user.id,
    )
    await db.commit()
    await db.refresh(mentor)
    return await _to_read(mentor)


@router.patch("/{mentor_id}", response_model=MentorRead)
async def update_mentor(
    mentor_id: UUID,
    data: MentorUpdate,
    user: CurrentUser,
    db: DbSession,
) -> MentorRead:
    mentor = await mentor_service.get_mentor(db, mentor_id, include_inactive=True)
    mentor_service.ensure_can_edit(mentor, user)
    await mentor_service.update_mentor(db, mentor, **data.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(mentor)
    return await _to_read(mentor)


@router.post("/{mentor_id}/deactivate", response_model=MentorRead)
async def deactivate_mentor(mentor_id: UUID, user: CurrentUser, db: DbSession) -> MentorRead:
    mentor = await mentor_service.get_mentor(db, mentor_id, include_inactive=True)
    mentor_service.ensure_can_edit(mentor, user)
    await mentor_service.set_active(db, mentor, False)
    await db.commit()
    await db.refresh(mentor)
    return await _to_read(mentor)


@router.post("/{mentor_id}/reactivate", response_model=MentorRead)
async def reactivate_mentor(mentor_id: UUID, user: CurrentUser, db: DbSession) -> MentorRead:
    mentor = await mentor_service.get_mentor(db, mentor_id, include_inactive=True)
    mentor_service.ensure_can_edit(mentor, user)
    await mentor_service.set_active(db, mentor, True)
    await db.commit()
    await db.refresh(mentor)
    return await _to_read(mentor)
