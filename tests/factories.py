"""Builders for rows and doubles shared across the test suite."""
from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count

from sqlalchemy.orm import Session

from puzzle_gate.core import security
from puzzle_gate.models import MinigameAnswer, QrAccessToken, User
from puzzle_gate.services import user_service
from puzzle_gate.services.client_info import ClientInfo
from puzzle_gate.services.sms import SmsDeliveryError

_PHONE_COUNTER = count(1)


@dataclass
class RecordingSmsSender:
    """SMS sender double that remembers codes and can be told to fail."""

    sent: list[tuple[str, str]] = field(default_factory=list)
    fail: bool = False

    def send(self, phone_number: str, code: str) -> None:
        if self.fail:
            raise SmsDeliveryError("provider unavailable")
        self.sent.append((phone_number, code))

    def last_code(self, phone_number: str) -> str:
        for phone, code in reversed(self.sent):
            if phone == phone_number:
                return code
        raise AssertionError(f"no SMS sent to {phone_number}")


def next_phone() -> str:
    """Return a unique, valid mobile number."""
    return f"0912{next(_PHONE_COUNTER):07d}"


def make_user(
    db: Session,
    *,
    phone_number: str | None = None,
    is_admin: bool = False,
    full_name: str = "Test Player",
) -> User:
    user = User(
        phone_number=phone_number or next_phone(),
        full_name=full_name,
        player_id=security.generate_player_id(),
        is_phone_verified=True,
        is_admin=is_admin,
    )
    db.add(user)
    db.flush()
    db.refresh(user)
    return user


def bearer_for(db: Session, user: User) -> dict[str, str]:
    """Open a session for ``user`` and return its Authorization header."""
    session = user_service.open_session(db, user, ClientInfo(ip_address="127.0.0.1"))
    db.flush()
    token = security.create_access_token(user.id, session.session_token)
    return {"Authorization": f"Bearer {token}"}


def make_token(
    db: Session,
    *,
    game_number: int = 3,
    token: str = "tok-0001",
    is_active: bool = True,
    max_uses: int = 1,
) -> QrAccessToken:
    record = QrAccessToken(
        token=token,
        game_number=game_number,
        is_active=is_active,
        is_used=False,
        access_count=0,
        max_uses=max_uses,
    )
    db.add(record)
    db.flush()
    db.refresh(record)
    return record


def make_answer_key(
    db: Session,
    *,
    minigame_name: str = "combination-lock",
    answer_key: str = "code",
    answer_value: str = "4721",
    requires_admin_verification: bool = False,
    is_active: bool = True,
) -> MinigameAnswer:
    record = MinigameAnswer(
        minigame_name=minigame_name,
        answer_key=answer_key,
        answer_value=answer_value,
        requires_admin_verification=requires_admin_verification,
        is_active=is_active,
    )
    db.add(record)
    db.flush()
    return record
