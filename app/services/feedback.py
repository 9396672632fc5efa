"""Feedback service: submissions and admin moderation."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models.feedback import Feedback
from app.models.user import User


class FeedbackService:

    async def submit(
        self,
        db: AsyncSession,
        *,
        message: str,
        email: str | None = None,
        user_id: UUID | None = None,
    ) -> Feedback:
        text = (message or "").strip()
        if not text:
            raise ValidationError(
                "Empty feedback message",
                user_message="Feedback message cannot be empty.",
            )
        feedback = Feedback(
            message=text,
            email=(email or "").strip() or None,
            user_id=user_id,
            is_resolved=False,
        )
        db.add(feedback)
        await db.flush()
        return feedback

    async def list_feedback(self, db: AsyncSession) -> list[tuple[Feedback, str | None]]:
        """Newest first, paired with the submitting user's display name."""
        result = await db.execute(
            select(Feedback, User.name, User.email)
            .outerjoin(User, User.id == Feedback.user_id)
            .order_by(Feedback.created_at.desc())
        )
        rows = []
        for feedback, name, email in result.all():
            user_name = None
            if feedback.user_id is not None:
                user_name = name or email or "Unknown User"
            rows.append((feedback, user_name))
        return rows

    async def _get(self, db: AsyncSession, feedback_id: UUID) -> Feedback:
        result = await db.execute(select(Feedback).where(Feedback.id == feedback_id))
        feedback = result.scalar_one_or_none()
        if not feedback:
            raise NotFoundError("Feedback", feedback_id)
        return feedback

    async def set_resolved(
        self,
        db: AsyncSession,
        feedback_id: UUID,
        is_resolved: bool,
    ) -> Feedback:
        feedback = await self._get(db, feedback_id)
        feedback.is_resolved = is_resolved
        await db.flush()
        return feedback

    async def delete_feedback(self, db: AsyncSession, feedback_id: UUID) -> None:
        await self._get(db, feedback_id)
        await db.execute(delete(Feedback).where(Feedback.id == feedback_id))


# Singleton
feedback_service = FeedbackService()
