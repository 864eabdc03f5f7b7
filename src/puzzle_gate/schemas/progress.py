"""Player progress and leaderboard schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from puzzle_gate.schemas.common import PageMeta


class ProgressSaveRequest(BaseModel):
    """Full snapshot of the player's puzzle state."""

    discovered_puzzles: list[int] = Field(..., max_length=100)
    puzzle_board: list[int | None] = Field(..., max_length=100)
    score: int = Field(..., ge=0)
    completed_games: int | None = Field(None, ge=0, description="Kept unchanged when omitted")


class ProgressData(BaseModel):
    """Stored progress of one player."""

    discovered_puzzles: list[int]
    puzzle_board: list[int | None]
    score: int
    completed_games: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProgressResponse(BaseModel):
    """Progress envelope; ``data`` is null before the first save."""

    success: bool = True
    message: str | None = None
    data: ProgressData | None = None


class LeaderboardEntry(BaseModel):
    """One ranked player."""

    rank: int
    player_id: str | None = None
    full_name: str | None = None
    score: int
    completed_games: int


class LeaderboardPage(BaseModel):
    """Paginated score ranking."""

    success: bool = True
    meta: PageMeta
    data: list[LeaderboardEntry]
