"""Data access helpers for minigame answer keys and submissions."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from puzzle_gate.models.answer import VERIFICATION_PENDING, AnswerSubmission, MinigameAnswer
from puzzle_gate.repositories.pagination import paginate

__all__ = ["MinigameAnswerRepository", "AnswerSubmissionRepository"]


class MinigameAnswerRepository:
    """Thin wrapper around database access for expected answers."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get(self, minigame_name: str, answer_key: str) -> MinigameAnswer | None:
        """Return the answer key row regardless of its active flag."""
        return self.session.scalars(
            select(MinigameAnswer).where(
                MinigameAnswer.minigame_name == minigame_name,
                MinigameAnswer.answer_key == answer_key,
            )
        ).first()

    def get_active(self, minigame_name: str, answer_key: str) -> MinigameAnswer | None:
        """Return the answer key row only while it is active."""
        answer = self.get(minigame_name, answer_key)
        if answer is None or not answer.is_active:
            return None
        return answer

    def add(self, answer: MinigameAnswer) -> MinigameAnswer:
        """Stage a new answer key and flush it."""
        self.session.add(answer)
        self.session.flush()
        return answer


class AnswerSubmissionRepository:
    """Thin wrapper around database access for answer submissions."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def add(self, submission: AnswerSubmission) -> AnswerSubmission:
        """Stage a new submission and flush it."""
        self.session.add(submission)
        self.session.flush()
        return submission

    def get_by_id(self, submission_id: int) -> AnswerSubmission | None:
        """Return a submission by primary key."""
        return self.session.get(AnswerSubmission, submission_id)

    def try_review(
        self,
        submission_id: int,
        *,
        status: str,
        is_correct: bool,
        reviewer_id: int,
        now: datetime,
    ) -> bool:
        """Settle a pending submission; False if it was already settled."""
        result = self.session.execute(
            update(AnswerSubmission)
            .where(
                AnswerSubmission.id == submission_id,
                AnswerSubmission.verification_status == VERIFICATION_PENDING,
            )
            .values(
                verification_status=status,
                is_correct=is_correct,
                verified_by=reviewer_id,
                verified_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_page(
        self,
        *,
        user_id: int | None = None,
        minigame_name: str | None = None,
        verification_status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[AnswerSubmission], int]:
        """Return a page of submissions, newest first, plus the total match count."""
        stmt = select(AnswerSubmission)
        if user_id is not None:
            stmt = stmt.where(AnswerSubmission.user_id == user_id)
        if minigame_name is not None:
            stmt = stmt.where(AnswerSubmission.minigame_name == minigame_name)
        if verification_status is not None:
            stmt = stmt.where(AnswerSubmission.verification_status == verification_status)
        return paginate(
            self.session,
            stmt.order_by(AnswerSubmission.created_at.desc(), AnswerSubmission.id.desc()),
            page,
            per_page,
        )
