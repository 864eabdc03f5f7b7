"""SQLAlchemy model for page visit analytics."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from puzzle_gate.db.session import Base
from puzzle_gate.db.time import utcnow
from puzzle_gate.models.user import DEVICE_TYPE_MAX_LENGTH, IP_MAX_LENGTH

PAGE_FIELD_MAX_LENGTH = 500
VISITOR_TOKEN_MAX_LENGTH = 64


class PageVisit(Base):
    """One page view reported by the frontend, signed in or anonymous."""

    __tablename__ = "page_visits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Login session token, or the anonymous visitor token handed out by /sessions/track.
    session_token: Mapped[str | None] = mapped_column(
        String(VISITOR_TOKEN_MAX_LENGTH), nullable=True, index=True
    )
    page_path: Mapped[str] = mapped_column(String(PAGE_FIELD_MAX_LENGTH), nullable=False)
    page_title: Mapped[str | None] = mapped_column(String(PAGE_FIELD_MAX_LENGTH), nullable=True)
    referrer: Mapped[str | None] = mapped_column(String(PAGE_FIELD_MAX_LENGTH), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(IP_MAX_LENGTH), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    device_type: Mapped[str | None] = mapped_column(String(DEVICE_TYPE_MAX_LENGTH), nullable=True)
    device_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
