"""Phone OTP sign-in, registration and logout endpoints."""

from __future__ import annotations

import logging
import math
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, status

from puzzle_gate.api.v1.dependencies import (
    CaptchaServiceDep,
    ClientInfoDep,
    CurrentSessionDep,
    LocaleDep,
    RateLimiterDep,
    SessionDep,
    SmsSenderDep,
)
from puzzle_gate.core import security
from puzzle_gate.core.i18n import t
from puzzle_gate.core.settings import settings
from puzzle_gate.db.time import as_utc, utcnow
from puzzle_gate.schemas.auth import (
    AuthResponse,
    OtpSendRequest,
    OtpSendResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
    RegisterRequest,
)
from puzzle_gate.schemas.common import MessageResponse
from puzzle_gate.schemas.user import UserResponse
from puzzle_gate.services import user_service
from puzzle_gate.services.otp import (
    DeliveryFailedError,
    InvalidOrExpiredCodeError,
    InvalidPhoneFormatError,
    OtpManager,
    normalize_phone,
)
from puzzle_gate.services.rate_limit import RateLimitExceeded, otp_send_rule, otp_verify_rule

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _rate_limited(exc: RateLimitExceeded, locale: str) -> HTTPException:
    minutes = max(1, math.ceil(exc.retry_after / 60))
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=t("errors.rate_limited", locale, minutes=minutes),
        headers={"Retry-After": str(exc.retry_after)},
    )


def _invalid_phone(locale: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=t("errors.invalid_phone", locale),
    )


def _check_captcha(
    captcha: CaptchaServiceDep,
    captcha_id: str | None,
    captcha_code: str | None,
    locale: str,
) -> None:
    if not captcha_id or not captcha_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=t("errors.captcha_required", locale),
        )
    if not captcha.verify(captcha_id, captcha_code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=t("errors.captcha_invalid", locale),
        )


@router.post("/otp/send", response_model=OtpSendResponse)
def send_otp(
    payload: OtpSendRequest,
    db: SessionDep,
    sms_sender: SmsSenderDep,
    limiter: RateLimiterDep,
    captcha: CaptchaServiceDep,
    locale: LocaleDep,
    x_captcha_id: Annotated[str | None, Header()] = None,
    x_captcha_code: Annotated[str | None, Header()] = None,
) -> OtpSendResponse:
    """Text a one-time code to the given phone number.

    When ``CAPTCHA_REQUIRED_FOR_OTP`` is enabled the caller must also pass a
    solved challenge in the ``X-Captcha-Id`` and ``X-Captcha-Code`` headers.
    """
    if settings.captcha_required_for_otp:
        _check_captcha(captcha, x_captcha_id, x_captcha_code, locale)

    try:
        phone_number = normalize_phone(payload.phone)
    except InvalidPhoneFormatError as err:
        raise _invalid_phone(locale) from err

    try:
        limiter.hit(otp_send_rule(), phone_number)
    except RateLimitExceeded as exc:
        raise _rate_limited(exc, locale) from exc

    try:
        dispatch = OtpManager(db, sms_sender).send_otp(phone_number)
    except DeliveryFailedError as err:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=t("errors.delivery_failed", locale),
        ) from err

    expires_in = int((as_utc(dispatch.expires_at) - utcnow()).total_seconds())
    return OtpSendResponse(
        session_id=dispatch.session_id,
        expires_in=max(expires_in, 0),
        message=t("success.otp_sent", locale),
    )


@router.post("/otp/verify", response_model=OtpVerifyResponse)
def verify_otp(
    payload: OtpVerifyRequest,
    db: SessionDep,
    sms_sender: SmsSenderDep,
    limiter: RateLimiterDep,
    client: ClientInfoDep,
    locale: LocaleDep,
) -> OtpVerifyResponse:
    """Check a code and sign the user in, or hand out a registration token."""
    try:
        phone_number = normalize_phone(payload.phone)
    except InvalidPhoneFormatError as err:
        raise _invalid_phone(locale) from err

    rule = otp_verify_rule()
    try:
        limiter.check(rule, phone_number)
    except RateLimitExceeded as exc:
        raise _rate_limited(exc, locale) from exc

    manager = OtpManager(db, sms_sender)
    try:
        result = manager.verify_otp(phone_number, payload.code)
    except InvalidOrExpiredCodeError as err:
        try:
            limiter.hit(rule, phone_number)
        except RateLimitExceeded as exc:
            raise _rate_limited(exc, locale) from exc
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=t("errors.invalid_or_expired_code", locale),
        ) from err
    limiter.clear(rule, phone_number)

    if result.is_new_user or result.user is None:
        return OtpVerifyResponse(
            is_new_user=True,
            registration_token=security.create_registration_token(result.phone_number),
            message=t("success.otp_verified", locale),
        )

    session = user_service.open_session(db, result.user, client)
    db.commit()
    logger.info("User %s signed in", result.user.id)
    return OtpVerifyResponse(
        is_new_user=False,
        user=UserResponse.model_validate(result.user),
        access_token=security.create_access_token(result.user.id, session.session_token),
        message=t("success.login", locale),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    db: SessionDep,
    client: ClientInfoDep,
    locale: LocaleDep,
) -> AuthResponse:
    """Create an account for a phone number that just passed OTP verification."""
    try:
        claims = security.decode_token(
            payload.registration_token,
            scope=security.REGISTRATION_SCOPE,
        )
    except security.TokenError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=t("errors.registration_token_invalid", locale),
        ) from err

    phone_number = str(claims["sub"])
    if user_service.get_user_by_phone(db, phone_number) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=t("errors.phone_already_registered", locale),
        )

    user = user_service.create_user(db, phone_number, payload)
    session = user_service.open_session(db, user, client)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    return AuthResponse(
        access_token=security.create_access_token(user.id, session.session_token),
        user=UserResponse.model_validate(user),
        message=t("success.registered", locale),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(session: CurrentSessionDep, db: SessionDep, locale: LocaleDep) -> MessageResponse:
    """Close the session behind the bearer token."""
    user_service.close_session(db, session)
    return MessageResponse(message=t("success.logged_out", locale))

