"""SQLAlchemy models for QR access tokens and their audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from puzzle_gate.db.session import Base
from puzzle_gate.db.time import utcnow
from puzzle_gate.models.user import DEVICE_TYPE_MAX_LENGTH, IP_MAX_LENGTH, User

ACCESS_STATUS_GRANTED = "granted"
ACCESS_STATUS_DENIED = "denied"
ACCESS_STATUS_INVALID = "invalid"

TOKEN_MAX_LENGTH = 64


class QrAccessToken(Base):
    """Opaque token printed into a QR code that unlocks one minigame.

    Tokens are never deleted; deactivation and usage are tracked in place.
    """

    __tablename__ = "qr_access_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(String(TOKEN_MAX_LENGTH), unique=True, nullable=False)
    game_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    used_by_user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    access_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Number of grants before the token counts as used; 1 means single-use.
    max_uses: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    first_accessed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_accessed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Column is named "metadata" in the database; the attribute avoids Base.metadata.
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    used_by_user: Mapped[User | None] = relationship("User")

    @property
    def is_exhausted(self) -> bool:
        """Return True once the token can no longer grant access."""
        return self.is_used or self.access_count >= self.max_uses


class QrAccessLog(Base):
    """Append-only record of a single QR scan attempt."""

    __tablename__ = "qr_access_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    qr_token_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("qr_access_tokens.id"),
        nullable=True,
        index=True,
    )
    # Raw token as scanned, kept even when it matches nothing.
    token: Mapped[str] = mapped_column(String(TOKEN_MAX_LENGTH), nullable=False)
    game_number: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    session_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    access_status: Mapped[str] = mapped_column(String(16), nullable=False)
    denial_reason: Mapped[str | None] = mapped_column(String(32), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(IP_MAX_LENGTH), nullable=True)
    real_ip: Mapped[str | None] = mapped_column(String(IP_MAX_LENGTH), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    device_type: Mapped[str | None] = mapped_column(String(DEVICE_TYPE_MAX_LENGTH), nullable=True)
    client_info: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    accessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    qr_token: Mapped[QrAccessToken | None] = relationship("QrAccessToken")
