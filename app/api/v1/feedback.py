"""Feedback endpoints: public submission, admin moderation."""

from uuid import UUID

from fastapi import APIRouter, status

from app.deps import AdminUser, DbSession, OptionalUser
from app.models.feedback import Feedback
from app.schemas.feedback import FeedbackCreate, FeedbackRead, FeedbackResolve
from app.services.feedback import feedback_service

router = APIRouter()


def _to_read(feedback: Feedback, user_name: str | None = None) -> FeedbackRead:
    read = FeedbackRead.model_validate(feedback)
    read.user_name = user_name
    return read


@router.post("", response_model=FeedbackRead, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    data: FeedbackCreate,
    user: OptionalUser,
    db: DbSession,
) -> FeedbackRead:
    """Anyone may submit; signed-in users are linked to their feedback."""
    feedback = await feedback_service.submit(
        db,
        message=data.message,
        email=data.email or (user.email if user else None),
        user_id=user.id if user else None,
    )
    await db.commit()
    await db.refresh(feedback)
    return _to_read(feedback, user.name if user else None)


@router.get("", response_model=list[FeedbackRead])
async def list_feedback(admin: AdminUser, db: DbSession) -> list[FeedbackRead]:
    rows = await feedback_service.list_feedback(db)
    return [_to_read(feedback, user_name) for feedback, user_name in rows]


@router.patch("/{feedback_id}", response_model=FeedbackRead)
async def resolve_feedback(
    feedback_id: UUID,
    data: FeedbackResolve,
    admin: AdminUser,
    db: DbSession,
) -> FeedbackRead:
    feedback = await feedback_service.set_resolved(db, feedback_id, data.is_resolved)
    await db.commit()
    return _to_read(feedback)


@router.delete("/{feedback_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_feedback(feedback_id: UUID, admin: AdminUser, db: DbSession) -> None:
    await feedback_service.delete_feedback(db, feedback_id)
    await db.commit()
