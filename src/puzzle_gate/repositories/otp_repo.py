"""Data access helpers for OTP challenges."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from puzzle_gate.models.otp import OtpChallenge

__all__ = ["OtpRepository"]


class OtpRepository:
    """Thin wrapper around database access for OTP challenges."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def add(self, challenge: OtpChallenge) -> OtpChallenge:
        """Stage a new challenge and flush it to obtain its identifier."""
        self.session.add(challenge)
        self.session.flush()
        return challenge

    def get_by_session_id(self, session_id: str) -> OtpChallenge | None:
        """Return a challenge by its public session identifier."""
        return self.session.scalars(
            select(OtpChallenge).where(OtpChallenge.session_id == session_id)
        ).first()

    def find_valid(self, phone_number: str, code: str, now: datetime) -> OtpChallenge | None:
        """Return the most recent unused, unexpired challenge for (phone, code)."""
        return self.session.scalars(
            select(OtpChallenge)
            .where(
                OtpChallenge.phone_number == phone_number,
                OtpChallenge.code == code,
                OtpChallenge.is_used.is_(False),
                OtpChallenge.expires_at > now,
            )
            .order_by(OtpChallenge.created_at.desc(), OtpChallenge.id.desc())
            .limit(1)
        ).first()

    def mark_used(self, challenge_id: int, now: datetime) -> bool:
        """Flip ``is_used`` if the challenge is still unused.

        Returns:
            True when this call consumed the challenge, False when another
            caller already had.
        """
        result = self.session.execute(
            update(OtpChallenge)
            .where(OtpChallenge.id == challenge_id, OtpChallenge.is_used.is_(False))
            .values(is_used=True, used_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete_by_session_id(self, session_id: str) -> int:
        """Delete a challenge by session identifier and return the affected row count."""
        result = self.session.execute(
            delete(OtpChallenge)
            .where(OtpChallenge.session_id == session_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def purge_stale(self, now: datetime) -> int:
        """Delete used or expired challenges."""
        result = self.session.execute(
            delete(OtpChallenge)
            .where(or_(OtpChallenge.is_used.is_(True), OtpChallenge.expires_at <= now))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
