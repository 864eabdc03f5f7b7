"""Validation and one-time consumption of QR access tokens."""

from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from puzzle_gate.core.settings import settings
from puzzle_gate.db.time import utcnow
from puzzle_gate.models.qr import (
    ACCESS_STATUS_DENIED,
    ACCESS_STATUS_GRANTED,
    ACCESS_STATUS_INVALID,
    TOKEN_MAX_LENGTH,
    QrAccessLog,
    QrAccessToken,
)
from puzzle_gate.models.user import DEVICE_TYPE_MAX_LENGTH, IP_MAX_LENGTH
from puzzle_gate.repositories.qr_repo import QrAccessLogRepository, QrTokenRepository
from puzzle_gate.services.client_info import ClientInfo, clip
from puzzle_gate.services.notifications import AccessEvent, LogNotifier, Notifier

logger = logging.getLogger(__name__)


class DenialReason(str, enum.Enum):
    """Why a scan did not grant access."""

    UNKNOWN_TOKEN = "unknown_token"
    GAME_MISMATCH = "game_mismatch"
    INACTIVE = "inactive"
    ALREADY_USED = "already_used"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a single scan."""

    granted: bool
    status: str
    reason: DenialReason | None = None
    game_number: int | None = None

    @classmethod
    def grant(cls, game_number: int) -> AccessDecision:
        return cls(True, ACCESS_STATUS_GRANTED, None, game_number)

    @classmethod
    def deny(cls, reason: DenialReason, game_number: int | None) -> AccessDecision:
        status = (
            ACCESS_STATUS_INVALID if reason is DenialReason.UNKNOWN_TOKEN else ACCESS_STATUS_DENIED
        )
        return cls(False, status, reason, game_number)


@dataclass(frozen=True)
class Requester:
    """Who is scanning, as far as the request can tell."""

    ip_address: str | None = None
    real_ip: str | None = None
    user_agent: str | None = None
    device_type: str | None = None
    user_id: int | None = None
    session_token: str | None = None
    client_info: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_client(
        cls,
        client: ClientInfo,
        *,
        user_id: int | None = None,
        session_token: str | None = None,
    ) -> Requester:
        return cls(
            ip_address=client.ip_address,
            real_ip=client.real_ip,
            user_agent=client.user_agent,
            device_type=client.device_type,
            user_id=user_id,
            session_token=session_token,
            client_info=client.to_dict(),
        )


def _is_well_formed(token: Any) -> bool:
    return isinstance(token, str) and 0 < len(token) <= TOKEN_MAX_LENGTH


class QrAccessValidator:
    """Decide whether a scanned token unlocks a minigame and record the attempt.

    Every call appends exactly one row to ``qr_access_logs`` and commits it
    together with any change to the token. Storage errors propagate after the
    transaction is rolled back.
    """

    def __init__(self, db: Session, notifier: Notifier | None = None) -> None:
        self.db = db
        self.tokens = QrTokenRepository(db)
        self.logs = QrAccessLogRepository(db)
        self.notifier = notifier or LogNotifier()

    def validate_and_consume(
        self,
        token: str,
        game_number: int,
        requester: Requester | None = None,
    ) -> AccessDecision:
        requester = requester or Requester()
        try:
            record, decision = self._decide(token, game_number, requester)
            self._append_log(record, token, game_number, requester, decision)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self._notify(token, game_number, requester, decision)
        return decision

    def _decide(
        self,
        token: Any,
        game_number: int,
        requester: Requester,
    ) -> tuple[QrAccessToken | None, AccessDecision]:
        record = self.tokens.get_by_token(token) if _is_well_formed(token) else None
        if record is None:
            return None, AccessDecision.deny(DenialReason.UNKNOWN_TOKEN, game_number)
        if record.game_number != game_number:
            return record, AccessDecision.deny(DenialReason.GAME_MISMATCH, game_number)
        if not record.is_active:
            return record, AccessDecision.deny(DenialReason.INACTIVE, game_number)
        if record.is_exhausted:
            return record, AccessDecision.deny(DenialReason.ALREADY_USED, game_number)

        consumed = self.tokens.try_consume(
            record.id,
            game_number=game_number,
            user_id=requester.user_id,
            now=utcnow(),
        )
        if not consumed:
            return record, AccessDecision.deny(DenialReason.ALREADY_USED, game_number)
        return record, AccessDecision.grant(game_number)

    def _append_log(
        self,
        record: QrAccessToken | None,
        token: Any,
        game_number: int,
        requester: Requester,
        decision: AccessDecision,
    ) -> None:
        raw_token = token if isinstance(token, str) else repr(token)
        self.logs.append(
            QrAccessLog(
                qr_token_id=record.id if record is not None else None,
                token=raw_token[:TOKEN_MAX_LENGTH],
                game_number=game_number,
                user_id=requester.user_id,
                session_token=requester.session_token,
                access_status=decision.status,
                denial_reason=decision.reason.value if decision.reason else None,
                ip_address=clip(requester.ip_address, IP_MAX_LENGTH),
                real_ip=clip(requester.real_ip, IP_MAX_LENGTH),
                user_agent=requester.user_agent,
                device_type=clip(requester.device_type, DEVICE_TYPE_MAX_LENGTH),
                client_info=requester.client_info or None,
                accessed_at=utcnow(),
            )
        )

    def _notify(
        self,
        token: Any,
        game_number: int,
        requester: Requester,
        decision: AccessDecision,
    ) -> None:
        event = AccessEvent(
            token=str(token),
            game_number=game_number,
            status=decision.status,
            reason=decision.reason.value if decision.reason else None,
            user_id=requester.user_id,
            real_ip=requester.real_ip,
        )
        try:
            self.notifier.notify(event)
        except Exception:
            logger.exception("Access notifier failed for game %s", game_number)


def default_game_numbers(count: int | None = None) -> list[int]:
    """Return ``[1..count]``, using the configured game count by default."""
    return list(range(1, (count or settings.qr_default_game_count) + 1))


def generate_tokens(
    db: Session,
    game_numbers: Sequence[int] | None = None,
    *,
    notes: str | None = None,
    max_uses: int | None = None,
    metadata: dict[str, Any] | None = None,
) -> list[QrAccessToken]:
    """Create one fresh token per game number and commit them.

    Raises:
        ValueError: If the batch is empty, too large, or ``max_uses`` is below 1.
    """
    games = list(game_numbers) if game_numbers else default_game_numbers()
    if not games or len(games) > settings.qr_max_batch_size:
        raise ValueError(f"Batch size must be between 1 and {settings.qr_max_batch_size}")
    if any(game < 1 for game in games):
        raise ValueError("Game numbers must be positive")
    uses = max_uses if max_uses is not None else settings.qr_default_max_uses
    if uses < 1:
        raise ValueError("max_uses must be at least 1")

    repo = QrTokenRepository(db)
    tokens = repo.create_many(
        [(str(uuid.uuid4()), game) for game in games],
        max_uses=uses,
        notes=notes,
        metadata=metadata,
    )
    db.commit()
    logger.info("Generated %d QR access tokens for games %s", len(tokens), games)
    return tokens
