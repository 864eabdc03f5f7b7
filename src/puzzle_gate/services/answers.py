"""Checking minigame answers and the administrator review queue.

An answer key either checks submissions on the spot or marks them pending.
Pending submissions are settled exactly once by an administrator; the
review is a guarded UPDATE so two reviewers cannot both settle one row.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from puzzle_gate.db.time import utcnow
from puzzle_gate.models import (
    VERIFICATION_APPROVED,
    VERIFICATION_INSTANT,
    VERIFICATION_PENDING,
    VERIFICATION_REJECTED,
    AnswerSubmission,
    MinigameAnswer,
    User,
)
from puzzle_gate.repositories.answer_repo import (
    AnswerSubmissionRepository,
    MinigameAnswerRepository,
)

logger = logging.getLogger(__name__)


class AnswerError(Exception):
    """Base class for user-facing answer failures."""


class AnswerNotConfiguredError(AnswerError):
    """No active answer key exists for the minigame question."""


class SubmissionNotFoundError(AnswerError):
    """The submission id does not exist."""


class SubmissionAlreadyReviewedError(AnswerError):
    """The submission is not pending, or another reviewer settled it first."""


@dataclass(frozen=True)
class SubmissionOutcome:
    """What the player is told after submitting.

    ``is_correct`` is None while the submission waits for review.
    """

    submission: AnswerSubmission
    status: str
    is_correct: bool | None

    @property
    def requires_verification(self) -> bool:
        return self.status == VERIFICATION_PENDING


def answers_match(expected: str, submitted: str) -> bool:
    """Compare a submission with the expected answer.

    Expected values that look like JSON objects or arrays are compared as
    parsed documents; everything else is a trimmed, case-insensitive match.
    """
    expected = expected.strip()
    submitted = submitted.strip()
    if expected.startswith(("{", "[")):
        try:
            return json.loads(expected) == json.loads(submitted)
        except ValueError:
            pass
    return expected.lower() == submitted.lower()


def configure_answer(
    db: Session,
    *,
    minigame_name: str,
    answer_key: str,
    answer_value: str,
    requires_admin_verification: bool = False,
    is_active: bool = True,
) -> MinigameAnswer:
    """Create or replace the expected answer for one minigame question."""
    repo = MinigameAnswerRepository(db)
    answer = repo.get(minigame_name, answer_key)
    if answer is None:
        answer = repo.add(
            MinigameAnswer(minigame_name=minigame_name, answer_key=answer_key, answer_value=answer_value)
        )
    answer.answer_value = answer_value
    answer.requires_admin_verification = requires_admin_verification
    answer.is_active = is_active
    db.commit()
    db.refresh(answer)
    logger.info("Configured answer %s/%s", minigame_name, answer_key)
    return answer


def submit_answer(
    db: Session,
    user: User,
    *,
    minigame_name: str,
    answer_key: str,
    answer: str,
) -> SubmissionOutcome:
    """Record ``answer`` and check it now or queue it for review.

    Raises:
        AnswerNotConfiguredError: If the question has no active answer key.
    """
    expected = MinigameAnswerRepository(db).get_active(minigame_name, answer_key)
    if expected is None:
        raise AnswerNotConfiguredError(f"No answer configured for {minigame_name}/{answer_key}")

    if expected.requires_admin_verification:
        status = VERIFICATION_PENDING
        is_correct = None
    else:
        status = VERIFICATION_INSTANT
        is_correct = answers_match(expected.answer_value, answer)

    submission = AnswerSubmissionRepository(db).add(
        AnswerSubmission(
            user_id=user.id,
            minigame_name=minigame_name,
            answer_key=answer_key,
            submitted_answer=answer,
            is_correct=bool(is_correct),
            verification_status=status,
        )
    )
    db.commit()
    logger.info(
        "User %s answered %s/%s: %s",
        user.id,
        minigame_name,
        answer_key,
        status if is_correct is None else ("correct" if is_correct else "incorrect"),
    )
    return SubmissionOutcome(submission=submission, status=status, is_correct=is_correct)


def review_submission(
    db: Session,
    submission_id: int,
    reviewer: User,
    *,
    approve: bool,
) -> AnswerSubmission:
    """Approve or reject a pending submission.

    Raises:
        SubmissionNotFoundError: If ``submission_id`` does not exist.
        SubmissionAlreadyReviewedError: If the submission is no longer pending.
    """
    repo = AnswerSubmissionRepository(db)
    submission = repo.get_by_id(submission_id)
    if submission is None:
        raise SubmissionNotFoundError(f"Submission {submission_id} not found")

    settled = repo.try_review(
        submission_id,
        status=VERIFICATION_APPROVED if approve else VERIFICATION_REJECTED,
        is_correct=approve,
        reviewer_id=reviewer.id,
        now=utcnow(),
    )
    if not settled:
        db.rollback()
        raise SubmissionAlreadyReviewedError(f"Submission {submission_id} is not pending")

    db.commit()
    db.refresh(submission)
    logger.info(
        "Admin %s %s submission %s",
        reviewer.id,
        "approved" if approve else "rejected",
        submission_id,
    )
    return submission
