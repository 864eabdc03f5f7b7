"""Tests for access and registration token helpers."""

from __future__ import annotations

import re
from datetime import timedelta

import pytest
from jose import jwt

from puzzle_gate.core import security
from puzzle_gate.core.settings import settings
from puzzle_gate.db.time import utcnow


def test_access_token_round_trip() -> None:
    token = security.create_access_token(42, "sid-value")

    claims = security.decode_token(token, scope=security.ACCESS_SCOPE)

    assert claims["sub"] == "42"
    assert claims["sid"] == "sid-value"


def test_scopes_are_not_interchangeable() -> None:
    registration = security.create_registration_token("09123456789")
    access = security.create_access_token(1, "sid")

    with pytest.raises(security.TokenError):
        security.decode_token(registration, scope=security.ACCESS_SCOPE)
    with pytest.raises(security.TokenError):
        security.decode_token(access, scope=security.REGISTRATION_SCOPE)


def test_expired_token_is_rejected() -> None:
    token = jwt.encode(
        {"sub": "1", "sid": "s", "scope": security.ACCESS_SCOPE, "exp": utcnow() - timedelta(seconds=5)},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(security.TokenError):
        security.decode_token(token, scope=security.ACCESS_SCOPE)


def test_token_signed_with_other_key_is_rejected() -> None:
    token = jwt.encode(
        {"sub": "1", "scope": security.ACCESS_SCOPE, "exp": utcnow() + timedelta(minutes=5)},
        "someone-elses-key",
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(security.TokenError):
        security.decode_token(token, scope=security.ACCESS_SCOPE)


def test_player_id_format() -> None:
    player_id = security.generate_player_id()
    assert re.fullmatch(r"INF-[0-9A-Z]+-[0-9A-F]{4}", player_id)
    assert player_id != security.generate_player_id()


def test_session_tokens_are_unique_hex() -> None:
    first, second = security.generate_session_token(), security.generate_session_token()
    assert first != second
    assert re.fullmatch(r"[0-9a-f]{64}", first)
