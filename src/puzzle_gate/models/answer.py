"""SQLAlchemy models for minigame answer keys and player submissions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from puzzle_gate.db.session import Base
from puzzle_gate.db.time import utcnow
from puzzle_gate.models.user import User

VERIFICATION_INSTANT = "instant"
VERIFICATION_PENDING = "pending"
VERIFICATION_APPROVED = "approved"
VERIFICATION_REJECTED = "rejected"


class MinigameAnswer(Base):
    """Expected answer for one question of a minigame."""

    __tablename__ = "minigame_answers"
    __table_args__ = (
        UniqueConstraint("minigame_name", "answer_key", name="uq_minigame_answers_name_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    minigame_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    answer_key: Mapped[str] = mapped_column(String(100), nullable=False)
    # Plain text, or a JSON document compared structurally.
    answer_value: Mapped[str] = mapped_column(Text, nullable=False)
    requires_admin_verification: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class AnswerSubmission(Base):
    """A player's answer, checked instantly or queued for an administrator.

    Pending rows keep ``is_correct`` false until a reviewer approves them.
    """

    __tablename__ = "answer_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    minigame_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    answer_key: Mapped[str] = mapped_column(String(100), nullable=False)
    submitted_answer: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verification_status: Mapped[str] = mapped_column(
        String(16), default=VERIFICATION_INSTANT, nullable=False, index=True
    )
    verified_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    user: Mapped[User] = relationship("User", foreign_keys=[user_id])
    verifier: Mapped[User | None] = relationship("User", foreign_keys=[verified_by])
