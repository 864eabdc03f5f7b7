"""Token helpers for access and registration credentials."""
from __future__ import annotations

import secrets
import time
from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from puzzle_gate.core.settings import settings
from puzzle_gate.db.time import utcnow

ACCESS_SCOPE = "access"
REGISTRATION_SCOPE = "register"


class TokenError(ValueError):
    """Raised when a JWT cannot be decoded or carries the wrong scope."""


def create_access_token(user_id: int, session_token: str) -> str:
    """Create a JWT access token bound to a user session."""
    return _encode(
        {"sub": str(user_id), "sid": session_token, "scope": ACCESS_SCOPE},
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_registration_token(phone_number: str) -> str:
    """Create a short-lived token proving that a phone number passed OTP verification."""
    return _encode(
        {"sub": phone_number, "scope": REGISTRATION_SCOPE},
        timedelta(minutes=settings.registration_token_expire_minutes),
    )


def decode_token(token: str, *, scope: str) -> dict[str, Any]:
    """Decode a JWT and ensure it was issued for ``scope``.

    Raises:
        TokenError: If the signature, expiry or scope is invalid.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise TokenError("Could not validate credentials") from err

    if payload.get("scope") != scope or payload.get("sub") is None:
        raise TokenError("Could not validate credentials")
    return payload


def generate_session_token() -> str:
    """Return an opaque session token."""
    return secrets.token_hex(32)


def generate_player_id() -> str:
    """Return a public player identifier such as ``INF-M5X2K9AB-3F1C``."""
    millis = int(time.time() * 1000)
    return f"INF-{_base36(millis)}-{secrets.token_hex(2).upper()}"


def _encode(claims: dict[str, Any], lifetime: timedelta) -> str:
    to_encode: dict[str, Any] = dict(claims)
    to_encode["exp"] = utcnow() + lifetime
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def _base36(value: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return "".join(reversed(out))
