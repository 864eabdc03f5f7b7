"""Tests for the maintenance and token generation scripts."""

from __future__ import annotations

import json
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from puzzle_gate.core.settings import settings
from puzzle_gate.db.time import utcnow
from puzzle_gate.models import OtpChallenge, QrAccessToken, User
from puzzle_gate.scripts import cleanup, generate_qr_tokens, migrate
from puzzle_gate.services import user_service
from puzzle_gate.services.client_info import ClientInfo
from tests.factories import next_phone


def _challenge(db: Session, *, is_used: bool, expires_in: timedelta) -> None:
    db.add(
        OtpChallenge(
            session_id=f"s-{next_phone()}",
            phone_number=next_phone(),
            code="123456",
            is_used=is_used,
            expires_at=utcnow() + expires_in,
        )
    )


def test_run_cleanup_purges_challenges_and_expires_sessions(
    db_session: Session, test_user: User
) -> None:
    _challenge(db_session, is_used=True, expires_in=timedelta(minutes=5))
    _challenge(db_session, is_used=False, expires_in=timedelta(minutes=-1))
    _challenge(db_session, is_used=False, expires_in=timedelta(minutes=5))
    stale = user_service.open_session(db_session, test_user, ClientInfo())
    stale.expires_at = utcnow() - timedelta(days=1)
    live = user_service.open_session(db_session, test_user, ClientInfo())
    db_session.commit()

    counts = cleanup.run_cleanup(db_session)

    assert counts == {"otp_challenges": 2, "sessions": 1}
    assert db_session.scalar(select(func.count()).select_from(OtpChallenge)) == 1
    db_session.refresh(stale)
    db_session.refresh(live)
    assert stale.is_active is False
    assert live.is_active is True


def test_generate_script_prints_urls(db_session: Session, mocker, capsys) -> None:
    mocker.patch.object(generate_qr_tokens, "SessionLocal", return_value=db_session)

    exit_code = generate_qr_tokens.main(["--games", "2", "8", "--notes", "flyers", "--json"])

    assert exit_code == 0
    rows = json.loads(capsys.readouterr().out)
    assert [row["game_number"] for row in rows] == [2, 8]
    assert rows[0]["url"] == settings.qr_access_url(2, rows[0]["token"])
    stored = db_session.scalars(select(QrAccessToken).order_by(QrAccessToken.game_number)).all()
    assert [t.notes for t in stored] == ["flyers", "flyers"]


def test_generate_script_reports_bad_batch(db_session: Session, mocker, capsys) -> None:
    mocker.patch.object(generate_qr_tokens, "SessionLocal", return_value=db_session)

    exit_code = generate_qr_tokens.main(["--games", "0"])

    assert exit_code == 1
    assert "ERROR" in capsys.readouterr().err


def test_migration_config_points_at_project() -> None:
    cfg = migrate.build_config()

    assert cfg.get_main_option("script_location").endswith("migrations")
    assert cfg.get_main_option("sqlalchemy.url") == settings.database_url_sync
