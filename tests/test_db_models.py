"""Unit tests for the ORM models.

These tests verify basic mapping correctness: table names, uniqueness
constraints, JSON column naming (metadata vs metadata_), and derived
properties used by the access validator.
"""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from puzzle_gate import models
from puzzle_gate.models.user import DEVICE_TYPE_MAX_LENGTH, IP_MAX_LENGTH
from puzzle_gate.services import user_service
from puzzle_gate.services.client_info import ClientInfo
from tests.factories import make_token, make_user


def test_table_names():
    """Model classes expose expected __tablename__ values."""
    assert models.User.__tablename__ == "users"
    assert models.UserSession.__tablename__ == "user_sessions"
    assert models.OtpChallenge.__tablename__ == "otp_challenges"
    assert models.QrAccessToken.__tablename__ == "qr_access_tokens"
    assert models.QrAccessLog.__tablename__ == "qr_access_logs"
    assert models.PlayerProgress.__tablename__ == "player_progresses"
    assert models.MinigameAnswer.__tablename__ == "minigame_answers"
    assert models.AnswerSubmission.__tablename__ == "answer_submissions"
    assert models.PageVisit.__tablename__ == "page_visits"


def test_metadata_column_and_attribute():
    """The JSON column is named 'metadata' in the DB but exposed as `metadata_`."""
    table = models.QrAccessToken.__table__
    assert "metadata" in table.c
    assert hasattr(models.QrAccessToken, "metadata_")


def test_otp_lookup_index():
    """Challenges are looked up by phone and code together."""
    index_columns = {
        tuple(col.name for col in index.columns) for index in models.OtpChallenge.__table__.indexes
    }
    assert ("phone_number", "code") in index_columns


def test_token_strings_are_unique(db_session: Session):
    make_token(db_session, token="dup")
    with pytest.raises(IntegrityError):
        make_token(db_session, token="dup", game_number=4)


def test_phone_numbers_are_unique(db_session: Session):
    make_user(db_session, phone_number="09120000000")
    with pytest.raises(IntegrityError):
        make_user(db_session, phone_number="09120000000")


def test_token_is_exhausted_at_cap(db_session: Session):
    token = make_token(db_session, max_uses=2)
    assert token.is_exhausted is False

    token.access_count = 2
    assert token.is_exhausted is True


def test_session_client_fields_fit_their_columns(db_session: Session):
    """Sessions opened from hand-built client info never overflow IP columns."""
    user = make_user(db_session)
    client = ClientInfo(ip_address="a" * 80, real_ip="b" * 500, device_type="c" * 30)

    session = user_service.open_session(db_session, user, client)

    assert session.ip_address == "a" * IP_MAX_LENGTH
    assert session.real_ip == "b" * IP_MAX_LENGTH
    assert session.device_type == "c" * DEVICE_TYPE_MAX_LENGTH
    assert models.UserSession.__table__.c.real_ip.type.length == IP_MAX_LENGTH
