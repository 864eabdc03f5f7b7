"""Saved puzzle progress and the public leaderboard."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from puzzle_gate.api.v1.dependencies import CurrentUserDep, LocaleDep, SessionDep
from puzzle_gate.core.i18n import t
from puzzle_gate.schemas.common import PageMeta
from puzzle_gate.schemas.progress import (
    LeaderboardEntry,
    LeaderboardPage,
    ProgressData,
    ProgressResponse,
    ProgressSaveRequest,
)
from puzzle_gate.services import progress as progress_service

router = APIRouter(tags=["progress"])


@router.get("/players/progress", response_model=ProgressResponse)
def read_progress(current_user: CurrentUserDep, db: SessionDep) -> ProgressResponse:
    """Return the caller's saved progress; ``data`` is null before the first save."""
    progress = progress_service.get_progress(db, current_user)
    if progress is None:
        return ProgressResponse(data=None)
    return ProgressResponse(data=ProgressData.model_validate(progress))


@router.post("/players/progress", response_model=ProgressResponse)
def save_progress(
    payload: ProgressSaveRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    locale: LocaleDep,
) -> ProgressResponse:
    """Overwrite the caller's progress with the submitted snapshot."""
    progress = progress_service.save_progress(
        db,
        current_user,
        discovered_puzzles=payload.discovered_puzzles,
        puzzle_board=payload.puzzle_board,
        score=payload.score,
        completed_games=payload.completed_games,
    )
    return ProgressResponse(
        message=t("success.progress_saved", locale),
        data=ProgressData.model_validate(progress),
    )


@router.get("/leaderboard", response_model=LeaderboardPage)
def leaderboard(
    db: SessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 10,
) -> LeaderboardPage:
    """Rank players by score. Phone numbers are never exposed."""
    items, total = progress_service.leaderboard(db, page=page, per_page=per_page)
    first_rank = (page - 1) * per_page + 1
    return LeaderboardPage(
        meta=PageMeta.build(total, page, per_page),
        data=[
            LeaderboardEntry(
                rank=first_rank + offset,
                player_id=item.user.player_id,
                full_name=item.user.full_name,
                score=item.score,
                completed_games=item.completed_games,
            )
            for offset, item in enumerate(items)
        ],
    )
