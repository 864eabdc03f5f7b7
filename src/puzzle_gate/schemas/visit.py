"""Page visit tracking schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from puzzle_gate.schemas.common import PageMeta


class TrackVisitRequest(BaseModel):
    """A page view reported by the frontend."""

    page_path: str = Field(..., min_length=1, max_length=2000)
    page_title: str | None = Field(None, max_length=2000)
    referrer: str | None = Field(None, max_length=2000)
    device_info: str | None = Field(None, max_length=2000)


class TrackVisitResponse(BaseModel):
    """Token the client sends back as ``X-Session-Token`` on later visits."""

    success: bool = True
    session_token: str


class CurrentSessionResponse(BaseModel):
    """The caller's login session."""

    success: bool = True
    id: int
    user_id: int | None = None
    device_type: str | None = None
    is_active: bool
    expires_at: datetime
    created_at: datetime
    last_activity_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PageVisitResponse(BaseModel):
    """A recorded page view."""

    id: int
    user_id: int | None = None
    session_token: str | None = None
    page_path: str
    page_title: str | None = None
    referrer: str | None = None
    ip_address: str | None = None
    device_type: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PageVisitPage(BaseModel):
    """Paginated visit listing."""

    success: bool = True
    meta: PageMeta
    data: list[PageVisitResponse]
