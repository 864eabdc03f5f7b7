"""CAPTCHA challenge schemas."""
from __future__ import annotations

from pydantic import BaseModel, Field


class CaptchaResponse(BaseModel):
    """Rendered challenge; the code itself never leaves the server."""

    success: bool = True
    captcha_id: str
    image: str = Field(..., description="data:image/svg+xml;base64 URL")
    width: int
    height: int
    expires_in: int


class CaptchaVerifyRequest(BaseModel):
    """User answer for a previously issued challenge."""

    captcha_id: str = Field(..., max_length=64)
    captcha: str = Field(..., min_length=4, max_length=8)
