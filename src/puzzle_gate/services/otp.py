"""Issuing and verifying phone one-time passwords."""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from puzzle_gate.core.settings import settings
from puzzle_gate.db.time import utcnow
from puzzle_gate.models import OtpChallenge, User
from puzzle_gate.models.otp import CODE_MAX_LENGTH
from puzzle_gate.repositories.otp_repo import OtpRepository
from puzzle_gate.services import user_service
from puzzle_gate.services.sms import SmsDeliveryError, SmsSender, get_sms_sender

logger = logging.getLogger(__name__)

_COUNTRY_PREFIX_RE = re.compile(r"^(\+98|0098)")
_SEPARATORS_RE = re.compile(r"[\s\-()]")


class OtpError(Exception):
    """Base class for user-facing OTP failures."""


class InvalidPhoneFormatError(OtpError):
    """The phone number does not match the accepted mobile pattern."""


class InvalidOrExpiredCodeError(OtpError):
    """No unused, unexpired challenge matches the submitted code."""


class DeliveryFailedError(OtpError):
    """The SMS carrying the code could not be sent."""


@dataclass(frozen=True)
class OtpDispatch:
    """Result of a successful send."""

    session_id: str
    expires_at: datetime


@dataclass(frozen=True)
class OtpVerification:
    """Result of a successful verification."""

    matched: bool
    is_new_user: bool
    phone_number: str
    user: User | None = None


def normalize_phone(phone: str) -> str:
    """Return ``phone`` in the local ``09xxxxxxxxx`` form.

    Raises:
        InvalidPhoneFormatError: If the number does not match the mobile pattern.
    """
    if not isinstance(phone, str):
        raise InvalidPhoneFormatError("Phone number must be a string")
    cleaned = _SEPARATORS_RE.sub("", phone.strip())
    if _COUNTRY_PREFIX_RE.match(cleaned):
        cleaned = "0" + _COUNTRY_PREFIX_RE.sub("", cleaned)
    if not re.fullmatch(settings.otp_phone_pattern, cleaned):
        raise InvalidPhoneFormatError(f"Invalid mobile number: {phone!r}")
    return cleaned


def generate_code(length: int = 6) -> str:
    """Return a uniformly random numeric code, zero-padded to ``length``."""
    return f"{secrets.randbelow(10**length):0{length}d}"


class OtpManager:
    """Send and verify phone OTP challenges.

    Each public call finishes its own transaction on the supplied session.
    """

    def __init__(
        self,
        db: Session,
        sms_sender: SmsSender | None = None,
        *,
        ttl: timedelta | None = None,
        code_length: int | None = None,
    ) -> None:
        self.db = db
        self.repo = OtpRepository(db)
        self.sms_sender = sms_sender or get_sms_sender()
        self.ttl = ttl or timedelta(minutes=settings.otp_ttl_minutes)
        self.code_length = code_length or settings.otp_code_length
        if not 4 <= self.code_length <= CODE_MAX_LENGTH:
            raise ValueError(f"OTP code length must be 4-{CODE_MAX_LENGTH} digits")

    def send_otp(self, phone: str) -> OtpDispatch:
        """Create a challenge for ``phone`` and text the code.

        The challenge is committed before the SMS call and removed again if
        the sender raises anything, so no valid code exists for an unsent
        message.

        Raises:
            InvalidPhoneFormatError: If ``phone`` is not a valid mobile number.
            DeliveryFailedError: If the SMS provider rejected the message.
        """
        phone_number = normalize_phone(phone)
        now = utcnow()
        challenge = OtpChallenge(
            phone_number=phone_number,
            code=generate_code(self.code_length),
            session_id=str(uuid.uuid4()),
            is_used=False,
            expires_at=now + self.ttl,
            created_at=now,
        )
        self.repo.add(challenge)
        self.db.commit()

        try:
            self.sms_sender.send(phone_number, challenge.code)
        except Exception as err:
            self.repo.delete_by_session_id(challenge.session_id)
            self.db.commit()
            if isinstance(err, SmsDeliveryError):
                logger.warning("OTP delivery to %s failed: %s", phone_number, err)
                raise DeliveryFailedError(str(err)) from err
            logger.exception("OTP sender crashed for %s; challenge withdrawn", phone_number)
            raise

        logger.info("OTP sent to %s (session %s)", phone_number, challenge.session_id)
        return OtpDispatch(session_id=challenge.session_id, expires_at=challenge.expires_at)

    def verify_otp(self, phone: str, code: str) -> OtpVerification:
        """Consume the challenge matching ``(phone, code)``.

        Raises:
            InvalidPhoneFormatError: If ``phone`` is not a valid mobile number.
            InvalidOrExpiredCodeError: If no usable challenge matches, or a
                concurrent verification consumed it first.
        """
        phone_number = normalize_phone(phone)
        if not isinstance(code, str) or len(code) != self.code_length or not code.isdigit():
            raise InvalidOrExpiredCodeError("Malformed code")

        now = utcnow()
        challenge = self.repo.find_valid(phone_number, code, now)
        if challenge is None:
            raise InvalidOrExpiredCodeError("Invalid or expired code")

        if not self.repo.mark_used(challenge.id, now):
            self.db.rollback()
            raise InvalidOrExpiredCodeError("Code already used")

        user = user_service.get_user_by_phone(self.db, phone_number)
        if user is not None:
            user.is_phone_verified = True
            user.last_login_at = now
        self.db.commit()

        if user is None:
            logger.info("OTP verified for new user %s", phone_number)
            return OtpVerification(matched=True, is_new_user=True, phone_number=phone_number)

        logger.info("OTP verified for user %s", user.id)
        return OtpVerification(
            matched=True,
            is_new_user=False,
            phone_number=phone_number,
            user=user,
        )
