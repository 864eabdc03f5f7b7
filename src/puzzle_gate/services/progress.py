"""Saving and ranking players' puzzle progress."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from puzzle_gate.models import PlayerProgress, User
from puzzle_gate.repositories.progress_repo import ProgressRepository

logger = logging.getLogger(__name__)

__all__ = ["get_progress", "save_progress", "leaderboard"]


def get_progress(db: Session, user: User) -> PlayerProgress | None:
    """Return the caller's saved progress, or None before the first save."""
    return ProgressRepository(db).get_for_user(user.id)


def save_progress(
    db: Session,
    user: User,
    *,
    discovered_puzzles: Sequence[int],
    puzzle_board: Sequence[int | None],
    score: int,
    completed_games: int | None = None,
) -> PlayerProgress:
    """Create or overwrite the caller's progress.

    ``completed_games`` keeps its stored value when omitted.
    """
    repo = ProgressRepository(db)
    progress = repo.get_for_user(user.id)
    if progress is None:
        try:
            progress = repo.add(
                PlayerProgress(
                    user_id=user.id,
                    discovered_puzzles=list(discovered_puzzles),
                    puzzle_board=list(puzzle_board),
                    score=score,
                    completed_games=completed_games or 0,
                )
            )
            db.commit()
            logger.info("Created progress for user %s (score %s)", user.id, score)
            return progress
        except IntegrityError:
            # A concurrent first save won the unique user_id slot.
            db.rollback()
            progress = repo.get_for_user(user.id)
            if progress is None:
                raise

    progress.discovered_puzzles = list(discovered_puzzles)
    progress.puzzle_board = list(puzzle_board)
    progress.score = score
    if completed_games is not None:
        progress.completed_games = completed_games
    db.commit()
    db.refresh(progress)
    logger.info("Saved progress for user %s (score %s)", user.id, score)
    return progress


def leaderboard(db: Session, *, page: int = 1, per_page: int = 10) -> tuple[list[PlayerProgress], int]:
    """Return one page of the score ranking plus the number of ranked players."""
    return ProgressRepository(db).leaderboard_page(page=page, per_page=per_page)
