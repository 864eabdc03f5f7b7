"""CAPTCHA challenge endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from puzzle_gate.api.v1.dependencies import CaptchaServiceDep, LocaleDep
from puzzle_gate.core.i18n import t
from puzzle_gate.core.settings import settings
from puzzle_gate.schemas.captcha import CaptchaResponse, CaptchaVerifyRequest
from puzzle_gate.schemas.common import MessageResponse
from puzzle_gate.services.captcha import CaptchaChallenge

router = APIRouter(prefix="/captcha", tags=["captcha"])


def _response(captcha_id: str, challenge: CaptchaChallenge) -> CaptchaResponse:
    return CaptchaResponse(
        captcha_id=captcha_id,
        image=challenge.image,
        width=challenge.width,
        height=challenge.height,
        expires_in=settings.captcha_ttl_seconds,
    )


@router.get("/generate", response_model=CaptchaResponse)
def generate_captcha(captcha: CaptchaServiceDep) -> CaptchaResponse:
    """Issue a new challenge image."""
    captcha_id, challenge = captcha.generate()
    return _response(captcha_id, challenge)


@router.get("/refresh", response_model=CaptchaResponse)
def refresh_captcha(
    captcha: CaptchaServiceDep,
    captcha_id: Annotated[str | None, Query(max_length=64)] = None,
) -> CaptchaResponse:
    """Drop an old challenge, if given, and issue a new one."""
    new_id, challenge = captcha.refresh(captcha_id)
    return _response(new_id, challenge)


@router.post("/verify", response_model=MessageResponse)
def verify_captcha(
    payload: CaptchaVerifyRequest,
    captcha: CaptchaServiceDep,
    locale: LocaleDep,
) -> MessageResponse:
    """Check an answer; each challenge can be checked only once."""
    if not captcha.verify(payload.captcha_id, payload.captcha):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=t("errors.captcha_invalid", locale),
        )
    return MessageResponse(message=t("success.captcha_verified", locale))
