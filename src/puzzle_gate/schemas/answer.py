"""Minigame answer submission and review schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from puzzle_gate.schemas.common import PageMeta


class AnswerSubmitRequest(BaseModel):
    """A player's answer to one minigame question."""

    minigame_name: str = Field(..., min_length=1, max_length=100)
    answer_key: str = Field(..., min_length=1, max_length=100)
    answer: str = Field(..., min_length=1, max_length=10_000)


class AnswerSubmitResponse(BaseModel):
    """Immediate verdict, or notice that the answer awaits review."""

    success: bool = True
    message: str
    status: str
    is_correct: bool | None = None
    requires_verification: bool


class AnswerKeyRequest(BaseModel):
    """Expected answer for a minigame question."""

    minigame_name: str = Field(..., min_length=1, max_length=100)
    answer_key: str = Field(..., min_length=1, max_length=100)
    answer_value: str = Field(..., min_length=1)
    requires_admin_verification: bool = False
    is_active: bool = True


class AnswerKeyResponse(BaseModel):
    """Stored answer key."""

    id: int
    minigame_name: str
    answer_key: str
    requires_admin_verification: bool
    is_active: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(BaseModel):
    """A recorded submission."""

    id: int
    user_id: int
    minigame_name: str
    answer_key: str
    submitted_answer: str
    is_correct: bool
    verification_status: str
    verified_by: int | None = None
    verified_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmissionPage(BaseModel):
    """Paginated submission listing."""

    success: bool = True
    meta: PageMeta
    data: list[SubmissionResponse]
