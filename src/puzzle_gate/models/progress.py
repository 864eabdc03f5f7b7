"""SQLAlchemy model for a player's saved puzzle progress."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from puzzle_gate.db.session import Base
from puzzle_gate.db.time import utcnow
from puzzle_gate.models.user import User


class PlayerProgress(Base):
    """Puzzle board state and score, one row per player."""

    __tablename__ = "player_progresses"
    __table_args__ = (
        Index("ix_player_progresses_score_id", "score", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    # Puzzle piece numbers the player has unlocked so far.
    discovered_puzzles: Mapped[list[Any]] = mapped_column(JSON, default=list, nullable=False)
    # Board slots in order; None marks an empty slot.
    puzzle_board: Mapped[list[Any]] = mapped_column(JSON, default=list, nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed_games: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    user: Mapped[User] = relationship("User")
