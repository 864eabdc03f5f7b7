# tests/v1/test_qr_access.py
"""Tests for QR token validation, consumption and audit logging."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from puzzle_gate.db.session import Base
from puzzle_gate.db.time import utcnow
from puzzle_gate.models import QrAccessLog, QrAccessToken
from puzzle_gate.models.user import DEVICE_TYPE_MAX_LENGTH, IP_MAX_LENGTH
from puzzle_gate.repositories.qr_repo import QrTokenRepository
from puzzle_gate.services.notifications import AccessEvent, NullNotifier
from puzzle_gate.services.qr_access import (
    AccessDecision,
    DenialReason,
    QrAccessValidator,
    Requester,
    generate_tokens,
)
from tests.factories import make_token, make_user


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[AccessEvent] = []

    def notify(self, event: AccessEvent) -> None:
        self.events.append(event)


def _logs(db: Session) -> list[QrAccessLog]:
    return list(db.scalars(select(QrAccessLog).order_by(QrAccessLog.id)))


def _validator(db: Session) -> QrAccessValidator:
    return QrAccessValidator(db, NullNotifier())


class TestValidateAndConsume:
    """Decision order and side effects of a scan."""

    def test_first_scan_is_granted_and_consumes_token(self, db_session: Session) -> None:
        token = make_token(db_session, game_number=3, token="T1")
        user = make_user(db_session)
        requester = Requester(real_ip="203.0.113.7", user_id=user.id, device_type="mobile")

        decision = _validator(db_session).validate_and_consume("T1", 3, requester)

        assert decision == AccessDecision(True, "granted", None, 3)
        db_session.refresh(token)
        assert token.is_used is True
        assert token.access_count == 1
        assert token.used_by_user_id == user.id
        assert token.used_at is not None
        assert token.first_accessed_at is not None
        assert token.last_accessed_at is not None

        logs = _logs(db_session)
        assert len(logs) == 1
        assert logs[0].access_status == "granted"
        assert logs[0].denial_reason is None
        assert logs[0].qr_token_id == token.id
        assert logs[0].real_ip == "203.0.113.7"
        assert logs[0].device_type == "mobile"

    def test_second_scan_is_denied_as_already_used(self, db_session: Session) -> None:
        make_token(db_session, game_number=3, token="T1")
        validator = _validator(db_session)
        validator.validate_and_consume("T1", 3)

        decision = validator.validate_and_consume("T1", 3)

        assert decision.granted is False
        assert decision.status == "denied"
        assert decision.reason is DenialReason.ALREADY_USED
        assert [log.access_status for log in _logs(db_session)] == ["granted", "denied"]

    def test_game_mismatch_leaves_token_untouched(self, db_session: Session) -> None:
        token = make_token(db_session, game_number=3, token="T1")

        decision = _validator(db_session).validate_and_consume("T1", 4)

        assert decision.reason is DenialReason.GAME_MISMATCH
        assert decision.status == "denied"
        db_session.refresh(token)
        assert token.is_used is False
        assert token.access_count == 0
        log = _logs(db_session)[0]
        assert log.denial_reason == "game_mismatch"
        assert log.game_number == 4

        assert _validator(db_session).validate_and_consume("T1", 3).granted is True

    def test_inactive_token_is_denied(self, db_session: Session) -> None:
        make_token(db_session, token="T1", is_active=False)

        decision = _validator(db_session).validate_and_consume("T1", 3)

        assert decision.reason is DenialReason.INACTIVE
        assert decision.status == "denied"

    def test_mismatch_is_reported_before_inactive(self, db_session: Session) -> None:
        make_token(db_session, game_number=3, token="T1", is_active=False)
        decision = _validator(db_session).validate_and_consume("T1", 5)
        assert decision.reason is DenialReason.GAME_MISMATCH

    def test_unknown_token_is_invalid(self, db_session: Session) -> None:
        decision = _validator(db_session).validate_and_consume("nope", 3)

        assert decision.granted is False
        assert decision.status == "invalid"
        assert decision.reason is DenialReason.UNKNOWN_TOKEN
        log = _logs(db_session)[0]
        assert log.qr_token_id is None
        assert log.token == "nope"

    @pytest.mark.parametrize("raw", ["", "x" * 65, None, 12345])
    def test_malformed_tokens_are_invalid_not_errors(self, db_session: Session, raw) -> None:
        decision = _validator(db_session).validate_and_consume(raw, 3)

        assert decision.status == "invalid"
        assert decision.reason is DenialReason.UNKNOWN_TOKEN
        assert len(_logs(db_session)) == 1

    def test_multi_use_token_grants_up_to_cap(self, db_session: Session) -> None:
        token = make_token(db_session, token="T3", max_uses=3)
        validator = _validator(db_session)

        results = [validator.validate_and_consume("T3", 3).granted for _ in range(4)]

        assert results == [True, True, True, False]
        db_session.refresh(token)
        assert token.access_count == 3
        assert token.is_used is True

    def test_every_attempt_appends_exactly_one_log(self, db_session: Session) -> None:
        make_token(db_session, game_number=1, token="A")
        make_token(db_session, game_number=2, token="B", is_active=False)
        validator = _validator(db_session)
        attempts = [("A", 1), ("A", 1), ("A", 2), ("B", 2), ("missing", 1)]

        for token, game in attempts:
            validator.validate_and_consume(token, game)

        assert len(_logs(db_session)) == len(attempts)

    def test_requester_fields_are_cut_to_column_width(self, db_session: Session) -> None:
        make_token(db_session, game_number=6, token="wide")
        requester = Requester(ip_address="1" * 90, real_ip="2" * 300, device_type="d" * 40)

        decision = _validator(db_session).validate_and_consume("wide", 6, requester)

        assert decision.granted is True
        log = _logs(db_session)[0]
        assert log.ip_address == "1" * IP_MAX_LENGTH
        assert log.real_ip == "2" * IP_MAX_LENGTH
        assert log.device_type == "d" * DEVICE_TYPE_MAX_LENGTH

    def test_notifier_receives_committed_decision(self, db_session: Session) -> None:
        make_token(db_session, token="T1")
        notifier = RecordingNotifier()

        QrAccessValidator(db_session, notifier).validate_and_consume(
            "T1", 3, Requester(user_id=None, real_ip="198.51.100.1")
        )

        assert len(notifier.events) == 1
        event = notifier.events[0]
        assert event.status == "granted"
        assert event.game_number == 3
        assert event.real_ip == "198.51.100.1"

    def test_failing_notifier_does_not_change_decision(self, db_session: Session, mocker) -> None:
        make_token(db_session, token="T1")
        notifier = mocker.Mock()
        notifier.notify.side_effect = RuntimeError("webhook down")

        decision = QrAccessValidator(db_session, notifier).validate_and_consume("T1", 3)

        assert decision.granted is True
        assert len(_logs(db_session)) == 1

    def test_storage_errors_propagate(self, db_session: Session, mocker) -> None:
        from sqlalchemy.exc import OperationalError

        validator = _validator(db_session)
        mocker.patch.object(
            validator.tokens,
            "get_by_token",
            side_effect=OperationalError("SELECT", {}, Exception("db gone")),
        )
        with pytest.raises(OperationalError):
            validator.validate_and_consume("T1", 3)


class TestTryConsume:
    """Compare-and-swap consumption at the repository level."""

    def test_stale_snapshot_cannot_consume_twice(self, db_session: Session) -> None:
        token = make_token(db_session, token="T1")
        repo = QrTokenRepository(db_session)

        first = repo.try_consume(token.id, game_number=3, user_id=None, now=utcnow())
        second = repo.try_consume(token.id, game_number=3, user_id=None, now=utcnow())

        assert (first, second) == (True, False)

    def test_wrong_game_never_consumes(self, db_session: Session) -> None:
        token = make_token(db_session, token="T1", game_number=3)
        repo = QrTokenRepository(db_session)
        assert repo.try_consume(token.id, game_number=4, user_id=None, now=utcnow()) is False


@pytest.fixture()
def file_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


def test_concurrent_scans_grant_exactly_once(file_engine: Engine) -> None:
    """Parallel scans of one single-use token produce a single grant."""
    factory = sessionmaker(bind=file_engine, autoflush=False)
    with factory() as setup:
        setup.add(
            QrAccessToken(
                token="RACE",
                game_number=7,
                is_active=True,
                is_used=False,
                access_count=0,
                max_uses=1,
            )
        )
        setup.commit()

    workers = 8
    barrier = threading.Barrier(workers)
    decisions: list[AccessDecision] = []
    errors: list[BaseException] = []
    lock = threading.Lock()

    def scan() -> None:
        try:
            with factory() as session:
                barrier.wait()
                decision = QrAccessValidator(session, NullNotifier()).validate_and_consume(
                    "RACE", 7
                )
            with lock:
                decisions.append(decision)
        except BaseException as exc:  # noqa: BLE001 - surfaced by the assertion below
            with lock:
                errors.append(exc)

    threads = [threading.Thread(target=scan) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    granted = [d for d in decisions if d.granted]
    assert len(granted) == 1
    assert all(d.reason is DenialReason.ALREADY_USED for d in decisions if not d.granted)

    with factory() as check:
        token = check.scalars(select(QrAccessToken).where(QrAccessToken.token == "RACE")).one()
        assert token.access_count == 1
        assert token.is_used is True
        assert check.scalar(select(func.count()).select_from(QrAccessLog)) == workers


class TestGenerateTokens:
    """Batch token creation."""

    def test_defaults_to_nine_games(self, db_session: Session) -> None:
        tokens = generate_tokens(db_session)

        assert [t.game_number for t in tokens] == list(range(1, 10))
        assert len({t.token for t in tokens}) == 9
        assert all(t.max_uses == 1 and t.is_active and not t.is_used for t in tokens)

    def test_custom_games_notes_and_cap(self, db_session: Session) -> None:
        tokens = generate_tokens(db_session, [2, 5], notes="batch A", max_uses=4)

        assert [t.game_number for t in tokens] == [2, 5]
        assert all(t.notes == "batch A" and t.max_uses == 4 for t in tokens)

    @pytest.mark.parametrize(
        ("games", "max_uses"),
        [(list(range(1, 22)), None), ([0], None), ([1], 0)],
    )
    def test_rejects_bad_batches(self, db_session: Session, games, max_uses) -> None:
        with pytest.raises(ValueError):
            generate_tokens(db_session, games, max_uses=max_uses)
