"""
Cron job for time-based housekeeping.

This script should be run periodically to:
1. Delete OTP challenges that are used or expired
2. Deactivate login sessions past their expiry
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from puzzle_gate.core.logging import configure_logging
from puzzle_gate.db.session import SessionLocal
from puzzle_gate.db.time import utcnow
from puzzle_gate.repositories.otp_repo import OtpRepository
from puzzle_gate.services import user_service

logger = logging.getLogger(__name__)


def purge_otp_challenges(db: Session) -> int:
    """Remove challenges that can no longer be verified.

    Args:
        db: Database session

    Returns:
        Number of deleted rows
    """
    removed = OtpRepository(db).purge_stale(utcnow())
    db.commit()
    logger.info("Purged %d stale OTP challenges", removed)
    return removed


def expire_sessions(db: Session) -> int:
    """Deactivate sessions whose expiry has passed.

    Args:
        db: Database session

    Returns:
        Number of deactivated sessions
    """
    closed = user_service.purge_expired_sessions(db)
    db.commit()
    logger.info("Deactivated %d expired sessions", closed)
    return closed


def run_cleanup(db: Session) -> dict[str, int]:
    """Run every housekeeping task and return per-task counts."""
    return {
        "otp_challenges": purge_otp_challenges(db),
        "sessions": expire_sessions(db),
    }


if __name__ == "__main__":
    configure_logging()
    db = SessionLocal()
    try:
        run_cleanup(db)
    finally:
        db.close()
