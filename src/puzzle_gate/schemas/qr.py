"""QR access token schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from puzzle_gate.schemas.common import PageMeta


class AccessResponse(BaseModel):
    """Result of a QR scan."""

    success: bool
    access_granted: bool
    game_number: int
    reason: str | None = Field(None, description="Denial reason code")
    redirect_url: str | None = None
    message: str


class QrTokenGenerateRequest(BaseModel):
    """Batch token generation parameters."""

    count: int | None = Field(None, ge=1, le=20, description="Games 1..count when no list is given")
    game_numbers: list[int] | None = Field(None, min_length=1, max_length=20)
    max_uses: int | None = Field(None, ge=1, description="Grants per token; defaults to settings")
    notes: str | None = None


class QrTokenUpdateRequest(BaseModel):
    """Mutable token fields."""

    is_active: bool | None = None
    notes: str | None = None


class QrTokenResponse(BaseModel):
    """Administrative view of a token."""

    id: int
    token: str
    game_number: int
    is_active: bool
    is_used: bool
    used_at: datetime | None = None
    used_by_user_id: int | None = None
    access_count: int
    max_uses: int
    first_accessed_at: datetime | None = None
    last_accessed_at: datetime | None = None
    notes: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QrTokenDetail(QrTokenResponse):
    """Single token with the number of logged scan attempts, denials included."""

    attempt_count: int


class GeneratedToken(BaseModel):
    """Freshly created token with the URL to print into the QR code."""

    id: int
    token: str
    game_number: int
    url: str


class QrTokenGenerateResponse(BaseModel):
    """Tokens created by a batch request."""

    success: bool = True
    count: int
    tokens: list[GeneratedToken]


class QrTokenPage(BaseModel):
    """Paginated token listing."""

    success: bool = True
    meta: PageMeta
    data: list[QrTokenResponse]


class QrAccessLogResponse(BaseModel):
    """Audit log entry."""

    id: int
    qr_token_id: int | None = None
    token: str
    game_number: int
    user_id: int | None = None
    session_token: str | None = None
    access_status: str
    denial_reason: str | None = None
    ip_address: str | None = None
    real_ip: str | None = None
    user_agent: str | None = None
    device_type: str | None = None
    client_info: dict[str, Any] | None = None
    accessed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QrAccessLogPage(BaseModel):
    """Paginated audit log listing."""

    success: bool = True
    meta: PageMeta
    data: list[QrAccessLogResponse]
