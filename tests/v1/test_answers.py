"""Tests for answer checking, submission and administrator review."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from puzzle_gate.models import AnswerSubmission, User
from puzzle_gate.repositories.answer_repo import AnswerSubmissionRepository
from puzzle_gate.services.answers import (
    AnswerNotConfiguredError,
    SubmissionAlreadyReviewedError,
    answers_match,
    configure_answer,
    review_submission,
    submit_answer,
)
from tests.factories import make_answer_key, make_user

SUBMIT_URL = "/api/v1/minigames/answers/submit"
ADMIN_URL = "/api/v1/admin/answers"


class TestAnswersMatch:
    """Comparison rules."""

    @pytest.mark.parametrize(
        ("expected", "submitted"),
        [
            ("Mirror", " mirror "),
            ('{"a": 1, "b": [2, 3]}', '{"b": [2, 3], "a": 1}'),
            ("[1, 2, 3]", "[1,2,3]"),
            ("[not json", "[NOT JSON"),
        ],
    )
    def test_accepts(self, expected: str, submitted: str) -> None:
        assert answers_match(expected, submitted) is True

    @pytest.mark.parametrize(
        ("expected", "submitted"),
        [
            ("Mirror", "mirrors"),
            ("[1, 2, 3]", "[3, 2, 1]"),
            ('{"a": 1}', '{"a": "1"}'),
        ],
    )
    def test_rejects(self, expected: str, submitted: str) -> None:
        assert answers_match(expected, submitted) is False


class TestSubmitAnswer:
    """Service-level submission handling."""

    def test_instant_answer_is_checked_and_stored(self, db_session: Session, test_user: User) -> None:
        make_answer_key(db_session, answer_value="4721")

        outcome = submit_answer(
            db_session, test_user, minigame_name="combination-lock", answer_key="code", answer="4721"
        )

        assert outcome.status == "instant"
        assert outcome.is_correct is True
        assert outcome.submission.is_correct is True

    def test_reviewed_answer_is_pending_and_not_yet_correct(
        self, db_session: Session, test_user: User
    ) -> None:
        make_answer_key(db_session, answer_value="4721", requires_admin_verification=True)

        outcome = submit_answer(
            db_session, test_user, minigame_name="combination-lock", answer_key="code", answer="4721"
        )

        assert outcome.requires_verification is True
        assert outcome.is_correct is None
        assert outcome.submission.is_correct is False
        assert outcome.submission.verification_status == "pending"

    def test_inactive_key_counts_as_unconfigured(self, db_session: Session, test_user: User) -> None:
        make_answer_key(db_session, is_active=False)

        with pytest.raises(AnswerNotConfiguredError):
            submit_answer(
                db_session, test_user, minigame_name="combination-lock", answer_key="code", answer="1"
            )

    def test_configure_answer_replaces_existing_key(self, db_session: Session) -> None:
        first = configure_answer(
            db_session, minigame_name="mirror", answer_key="word", answer_value="old"
        )
        second = configure_answer(
            db_session,
            minigame_name="mirror",
            answer_key="word",
            answer_value="new",
            requires_admin_verification=True,
        )

        assert second.id == first.id
        assert second.answer_value == "new"
        assert second.requires_admin_verification is True


class TestReview:
    """Settling pending submissions."""

    def _pending(self, db: Session, user: User) -> AnswerSubmission:
        make_answer_key(db, requires_admin_verification=True)
        return submit_answer(
            db, user, minigame_name="combination-lock", answer_key="code", answer="photo-of-lock"
        ).submission

    def test_approval_marks_correct_and_records_reviewer(
        self, db_session: Session, test_user: User, admin_user: User
    ) -> None:
        submission = self._pending(db_session, test_user)

        reviewed = review_submission(db_session, submission.id, admin_user, approve=True)

        assert reviewed.verification_status == "approved"
        assert reviewed.is_correct is True
        assert reviewed.verified_by == admin_user.id
        assert reviewed.verified_at is not None

    def test_submission_is_settled_only_once(
        self, db_session: Session, test_user: User, admin_user: User
    ) -> None:
        submission = self._pending(db_session, test_user)
        review_submission(db_session, submission.id, admin_user, approve=False)

        with pytest.raises(SubmissionAlreadyReviewedError):
            review_submission(db_session, submission.id, admin_user, approve=True)

        db_session.refresh(submission)
        assert submission.verification_status == "rejected"
        assert submission.is_correct is False

    def test_guarded_update_refuses_instant_rows(
        self, db_session: Session, test_user: User, admin_user: User
    ) -> None:
        make_answer_key(db_session)
        submission = submit_answer(
            db_session, test_user, minigame_name="combination-lock", answer_key="code", answer="0000"
        ).submission

        settled = AnswerSubmissionRepository(db_session).try_review(
            submission.id,
            status="approved",
            is_correct=True,
            reviewer_id=admin_user.id,
            now=submission.created_at,
        )

        assert settled is False


class TestAnswersApi:
    """Player and administrator endpoints."""

    def test_submit_instant_answer(
        self, client: TestClient, db_session: Session, auth_token: dict[str, str]
    ) -> None:
        make_answer_key(db_session, answer_value="4721")
        payload = {"minigame_name": "combination-lock", "answer_key": "code", "answer": "4721"}

        response = client.post(SUBMIT_URL, json=payload, headers={**auth_token, "Accept-Language": "en"})

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["is_correct"] is True
        assert body["status"] == "instant"
        assert body["requires_verification"] is False
        assert body["message"] == "Correct answer!"

    def test_submit_unknown_question_is_404(self, client: TestClient, auth_token: dict[str, str]) -> None:
        payload = {"minigame_name": "nothing", "answer_key": "none", "answer": "x"}
        response = client.post(SUBMIT_URL, json=payload, headers=auth_token)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_submit_requires_bearer(self, client: TestClient) -> None:
        payload = {"minigame_name": "combination-lock", "answer_key": "code", "answer": "1"}
        assert client.post(SUBMIT_URL, json=payload).status_code == status.HTTP_401_UNAUTHORIZED

    def test_history_lists_only_own_submissions(
        self, client: TestClient, db_session: Session, test_user: User, auth_token: dict[str, str]
    ) -> None:
        make_answer_key(db_session)
        other = make_user(db_session)
        for user in (test_user, test_user, other):
            submit_answer(
                db_session, user, minigame_name="combination-lock", answer_key="code", answer="1"
            )

        body = client.get("/api/v1/minigames/answers/history", headers=auth_token).json()

        assert body["meta"]["total"] == 2
        assert {row["user_id"] for row in body["data"]} == {test_user.id}

    def test_review_queue_and_verify_flow(
        self,
        client: TestClient,
        db_session: Session,
        auth_token: dict[str, str],
        admin_token: dict[str, str],
    ) -> None:
        make_answer_key(db_session, requires_admin_verification=True)
        payload = {"minigame_name": "combination-lock", "answer_key": "code", "answer": "photo"}
        submitted = client.post(SUBMIT_URL, json=payload, headers=auth_token).json()
        assert submitted["requires_verification"] is True
        assert submitted["is_correct"] is None

        queue = client.get(f"{ADMIN_URL}/submissions", headers=admin_token).json()
        assert queue["meta"]["total"] == 1
        submission_id = queue["data"][0]["id"]

        verified = client.post(f"{ADMIN_URL}/submissions/{submission_id}/verify", headers=admin_token)
        assert verified.status_code == status.HTTP_200_OK
        assert verified.json()["verification_status"] == "approved"

        again = client.post(f"{ADMIN_URL}/submissions/{submission_id}/reject", headers=admin_token)
        assert again.status_code == status.HTTP_409_CONFLICT
        assert client.get(f"{ADMIN_URL}/submissions", headers=admin_token).json()["meta"]["total"] == 0

    def test_review_unknown_submission_is_404(
        self, client: TestClient, admin_token: dict[str, str]
    ) -> None:
        response = client.post(f"{ADMIN_URL}/submissions/9999/reject", headers=admin_token)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_players_cannot_review_or_configure(
        self, client: TestClient, auth_token: dict[str, str]
    ) -> None:
        assert client.get(f"{ADMIN_URL}/submissions", headers=auth_token).status_code == 403
        key = {"minigame_name": "m", "answer_key": "k", "answer_value": "v"}
        assert client.put(f"{ADMIN_URL}/keys", json=key, headers=auth_token).status_code == 403

    def test_admin_configures_answer_key(
        self, client: TestClient, admin_token: dict[str, str], auth_token: dict[str, str]
    ) -> None:
        key = {"minigame_name": "mirror", "answer_key": "word", "answer_value": "Echo"}

        response = client.put(f"{ADMIN_URL}/keys", json=key, headers=admin_token)

        assert response.status_code == status.HTTP_200_OK
        assert "answer_value" not in response.json()
        submit = {"minigame_name": "mirror", "answer_key": "word", "answer": "echo"}
        assert client.post(SUBMIT_URL, json=submit, headers=auth_token).json()["is_correct"] is True
