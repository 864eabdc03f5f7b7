"""Data access helpers for player progress."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from puzzle_gate.models.progress import PlayerProgress
from puzzle_gate.repositories.pagination import paginate

__all__ = ["ProgressRepository"]


class ProgressRepository:
    """Thin wrapper around database access for saved progress."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_for_user(self, user_id: int) -> PlayerProgress | None:
        """Return the progress row owned by ``user_id``, if any."""
        return self.session.scalars(
            select(PlayerProgress).where(PlayerProgress.user_id == user_id)
        ).first()

    def add(self, progress: PlayerProgress) -> PlayerProgress:
        """Stage a new progress row and flush it."""
        self.session.add(progress)
        self.session.flush()
        return progress

    def leaderboard_page(self, *, page: int = 1, per_page: int = 10) -> tuple[list[PlayerProgress], int]:
        """Return progress rows by descending score, earliest row first on ties."""
        stmt = (
            select(PlayerProgress)
            .order_by(PlayerProgress.score.desc(), PlayerProgress.id.asc())
        )
        return paginate(self.session, stmt, page, per_page)
