"""Data access helpers for QR access tokens and access logs."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from puzzle_gate.models.qr import QrAccessLog, QrAccessToken
from puzzle_gate.repositories.pagination import paginate

__all__ = ["QrTokenRepository", "QrAccessLogRepository"]


class QrTokenRepository:
    """Thin wrapper around database access for QR access tokens."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, token_id: int) -> QrAccessToken | None:
        """Return a token by primary key."""
        return self.session.get(QrAccessToken, token_id)

    def get_by_token(self, token: str) -> QrAccessToken | None:
        """Return a token by its opaque string value."""
        return self.session.scalars(
            select(QrAccessToken).where(QrAccessToken.token == token)
        ).first()

    def create_many(
        self,
        entries: Sequence[tuple[str, int]],
        *,
        max_uses: int,
        notes: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> list[QrAccessToken]:
        """Insert tokens for ``(token, game_number)`` pairs and return them."""
        tokens = [
            QrAccessToken(
                token=token,
                game_number=game_number,
                is_active=True,
                is_used=False,
                access_count=0,
                max_uses=max_uses,
                notes=notes,
                metadata_=metadata,
            )
            for token, game_number in entries
        ]
        self.session.add_all(tokens)
        self.session.flush()
        return tokens

    def try_consume(
        self,
        token_id: int,
        *,
        game_number: int,
        user_id: int | None,
        now: datetime,
    ) -> bool:
        """Record one grant if the token can still be used.

        The guard and the increment run as a single UPDATE, so concurrent
        callers cannot both consume the last remaining use.

        Returns:
            True if this call consumed a use, False if the token was already
            inactive or exhausted when the statement ran.
        """
        result = self.session.execute(
            update(QrAccessToken)
            .where(
                QrAccessToken.id == token_id,
                QrAccessToken.game_number == game_number,
                QrAccessToken.is_active.is_(True),
                QrAccessToken.is_used.is_(False),
                QrAccessToken.access_count < QrAccessToken.max_uses,
            )
            .values(
                access_count=QrAccessToken.access_count + 1,
                is_used=QrAccessToken.access_count + 1 >= QrAccessToken.max_uses,
                used_at=now,
                used_by_user_id=user_id,
                first_accessed_at=func.coalesce(QrAccessToken.first_accessed_at, now),
                last_accessed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_page(
        self,
        *,
        is_active: bool | None = None,
        is_used: bool | None = None,
        game_number: int | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[QrAccessToken], int]:
        """Return a page of tokens, newest first, plus the total match count."""
        stmt = select(QrAccessToken)
        if is_active is not None:
            stmt = stmt.where(QrAccessToken.is_active.is_(is_active))
        if is_used is not None:
            stmt = stmt.where(QrAccessToken.is_used.is_(is_used))
        if game_number is not None:
            stmt = stmt.where(QrAccessToken.game_number == game_number)
        return paginate(
            self.session,
            stmt.order_by(QrAccessToken.created_at.desc(), QrAccessToken.id.desc()),
            page,
            per_page,
        )


class QrAccessLogRepository:
    """Append-only access to QR scan logs."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def append(self, entry: QrAccessLog) -> QrAccessLog:
        """Stage a new log row and flush it."""
        self.session.add(entry)
        self.session.flush()
        return entry

    def count_for_token(self, token_id: int) -> int:
        """Return the number of attempts recorded against a token."""
        total = self.session.scalar(
            select(func.count()).select_from(QrAccessLog).where(QrAccessLog.qr_token_id == token_id)
        )
        return int(total or 0)

    def list_page(
        self,
        *,
        token_id: int | None = None,
        access_status: str | None = None,
        game_number: int | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[QrAccessLog], int]:
        """Return a page of log rows, newest first, plus the total match count."""
        stmt = select(QrAccessLog)
        if token_id is not None:
            stmt = stmt.where(QrAccessLog.qr_token_id == token_id)
        if access_status is not None:
            stmt = stmt.where(QrAccessLog.access_status == access_status)
        if game_number is not None:
            stmt = stmt.where(QrAccessLog.game_number == game_number)
        return paginate(
            self.session,
            stmt.order_by(QrAccessLog.accessed_at.desc(), QrAccessLog.id.desc()),
            page,
            per_page,
        )
