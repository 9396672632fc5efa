"""Mentor memory model: summarized key points per user/mentor pair."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class MentorMemory(Base):
    """Cross-session memory scoped to a user + mentor pair.

    Rewritten wholesale by the memory summarizer (max 5 key points).
    Injected into the mentor's system prompt.
    """

    __tablename__ = "mentor_memories"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "mentor_id",
            name="uq_mentor_memory_user_mentor",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    mentor_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("mentors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    key_points: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    # Structure: ["Building a B2B SaaS for dentists", ...]  (max 5)

    conversation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
