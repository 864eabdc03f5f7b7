"""Administrative answer keys and the submission review queue."""

from __future__ import annotations

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.orm import Session

from puzzle_gate.api.v1.dependencies import AdminUserDep, LocaleDep, SessionDep
from puzzle_gate.core.i18n import t
from puzzle_gate.models import User
from puzzle_gate.repositories.answer_repo import AnswerSubmissionRepository
from puzzle_gate.schemas.answer import (
    AnswerKeyRequest,
    AnswerKeyResponse,
    SubmissionPage,
    SubmissionResponse,
)
from puzzle_gate.schemas.common import PageMeta
from puzzle_gate.services.answers import (
    SubmissionAlreadyReviewedError,
    SubmissionNotFoundError,
    configure_answer,
    review_submission,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/answers", tags=["admin"])

VerificationStatus = Literal["pending", "approved", "rejected", "instant"]


@router.put("/keys", response_model=AnswerKeyResponse)
def put_answer_key(
    payload: AnswerKeyRequest,
    db: SessionDep,
    admin: AdminUserDep,
) -> AnswerKeyResponse:
    """Create or replace the expected answer for a minigame question."""
    answer = configure_answer(db, **payload.model_dump())
    logger.info("Admin %s configured answer %s/%s", admin.id, answer.minigame_name, answer.answer_key)
    return AnswerKeyResponse.model_validate(answer)


@router.get("/submissions", response_model=SubmissionPage)
def list_submissions(
    db: SessionDep,
    _admin: AdminUserDep,
    verification_status: VerificationStatus = "pending",
    minigame_name: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> SubmissionPage:
    """List submissions by status; the review queue by default."""
    items, total = AnswerSubmissionRepository(db).list_page(
        verification_status=verification_status,
        minigame_name=minigame_name,
        page=page,
        per_page=per_page,
    )
    return SubmissionPage(
        meta=PageMeta.build(total, page, per_page),
        data=[SubmissionResponse.model_validate(item) for item in items],
    )


def _review(
    db: Session,
    submission_id: int,
    admin: User,
    locale: str,
    *,
    approve: bool,
) -> SubmissionResponse:
    try:
        submission = review_submission(db, submission_id, admin, approve=approve)
    except SubmissionNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=t("errors.not_found", locale),
        ) from err
    except SubmissionAlreadyReviewedError as err:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=t("errors.submission_already_reviewed", locale),
        ) from err
    return SubmissionResponse.model_validate(submission)


@router.post("/submissions/{submission_id}/verify", response_model=SubmissionResponse)
def verify_submission(
    submission_id: int,
    db: SessionDep,
    admin: AdminUserDep,
    locale: LocaleDep,
) -> SubmissionResponse:
    """Approve a pending submission as correct."""
    return _review(db, submission_id, admin, locale, approve=True)


@router.post("/submissions/{submission_id}/reject", response_model=SubmissionResponse)
def reject_submission(
    submission_id: int,
    db: SessionDep,
    admin: AdminUserDep,
    locale: LocaleDep,
) -> SubmissionResponse:
    """Reject a pending submission as incorrect."""
    return _review(db, submission_id, admin, locale, approve=False)
