"""SQLAlchemy model for phone verification challenges."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from puzzle_gate.db.session import Base
from puzzle_gate.db.time import utcnow

CODE_MAX_LENGTH = 6


class OtpChallenge(Base):
    """One-time code sent to a phone number.

    A challenge is valid while ``is_used`` is false and ``expires_at`` lies in
    the future. Verification flips ``is_used`` exactly once.
    """

    __tablename__ = "otp_challenges"
    __table_args__ = (
        Index("ix_otp_challenges_phone_code", "phone_number", "code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    code: Mapped[str] = mapped_column(String(CODE_MAX_LENGTH), nullable=False)
    session_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
