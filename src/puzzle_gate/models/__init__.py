"""SQLAlchemy models for the Puzzle Gate application."""

from .answer import (
    VERIFICATION_APPROVED,
    VERIFICATION_INSTANT,
    VERIFICATION_PENDING,
    VERIFICATION_REJECTED,
    AnswerSubmission,
    MinigameAnswer,
)
from .otp import OtpChallenge
from .progress import PlayerProgress
from .qr import (
    ACCESS_STATUS_DENIED,
    ACCESS_STATUS_GRANTED,
    ACCESS_STATUS_INVALID,
    QrAccessLog,
    QrAccessToken,
)
from .user import User, UserSession
from .visit import PageVisit

__all__ = [
    "AnswerSubmission", "MinigameAnswer",
    "VERIFICATION_INSTANT", "VERIFICATION_PENDING", "VERIFICATION_APPROVED", "VERIFICATION_REJECTED",
    "OtpChallenge",
    "PlayerProgress",
    "QrAccessLog", "QrAccessToken",
    "ACCESS_STATUS_GRANTED", "ACCESS_STATUS_DENIED", "ACCESS_STATUS_INVALID",
    "User", "UserSession",
    "PageVisit",
]
