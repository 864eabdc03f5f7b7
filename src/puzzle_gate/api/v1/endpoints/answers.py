"""Answer submission for players."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from puzzle_gate.api.v1.dependencies import CurrentUserDep, LocaleDep, SessionDep
from puzzle_gate.core.i18n import t
from puzzle_gate.repositories.answer_repo import AnswerSubmissionRepository
from puzzle_gate.schemas.answer import (
    AnswerSubmitRequest,
    AnswerSubmitResponse,
    SubmissionPage,
    SubmissionResponse,
)
from puzzle_gate.schemas.common import PageMeta
from puzzle_gate.services.answers import AnswerNotConfiguredError, submit_answer

router = APIRouter(prefix="/minigames/answers", tags=["minigames"])


@router.post("/submit", response_model=AnswerSubmitResponse)
def submit(
    payload: AnswerSubmitRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    locale: LocaleDep,
) -> AnswerSubmitResponse:
    """Check an answer, or queue it when the question needs a human reviewer."""
    try:
        outcome = submit_answer(
            db,
            current_user,
            minigame_name=payload.minigame_name,
            answer_key=payload.answer_key,
            answer=payload.answer,
        )
    except AnswerNotConfiguredError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=t("errors.answer_not_configured", locale),
        ) from err

    if outcome.requires_verification:
        message = t("success.answer_pending", locale)
    elif outcome.is_correct:
        message = t("success.answer_correct", locale)
    else:
        message = t("success.answer_incorrect", locale)
    return AnswerSubmitResponse(
        message=message,
        status=outcome.status,
        is_correct=outcome.is_correct,
        requires_verification=outcome.requires_verification,
    )


@router.get("/history", response_model=SubmissionPage)
def history(
    current_user: CurrentUserDep,
    db: SessionDep,
    minigame_name: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> SubmissionPage:
    """List the caller's own submissions, newest first."""
    items, total = AnswerSubmissionRepository(db).list_page(
        user_id=current_user.id,
        minigame_name=minigame_name,
        page=page,
        per_page=per_page,
    )
    return SubmissionPage(
        meta=PageMeta.build(total, page, per_page),
        data=[SubmissionResponse.model_validate(item) for item in items],
    )
