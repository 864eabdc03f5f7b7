"""Page visit tracking and session lookups."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Header, Query

from puzzle_gate.api.v1.dependencies import (
    AdminUserDep,
    ClientInfoDep,
    CurrentSessionDep,
    OptionalSessionDep,
    SessionDep,
)
from puzzle_gate.repositories.visit_repo import PageVisitRepository
from puzzle_gate.schemas.common import PageMeta
from puzzle_gate.schemas.visit import (
    CurrentSessionResponse,
    PageVisitPage,
    PageVisitResponse,
    TrackVisitRequest,
    TrackVisitResponse,
)
from puzzle_gate.services.visits import record_visit, resolve_visitor_token

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("/track", response_model=TrackVisitResponse)
def track(
    payload: TrackVisitRequest,
    db: SessionDep,
    client: ClientInfoDep,
    session: OptionalSessionDep,
    x_session_token: Annotated[str | None, Header()] = None,
) -> TrackVisitResponse:
    """Record a page view for a signed-in or anonymous visitor.

    The returned token groups later visits when sent back as ``X-Session-Token``.
    """
    visitor_token = resolve_visitor_token(x_session_token, session)
    record_visit(
        db,
        client,
        page_path=payload.page_path,
        page_title=payload.page_title,
        referrer=payload.referrer,
        device_info=payload.device_info,
        visitor_token=visitor_token,
        user_id=session.user_id if session is not None else None,
    )
    return TrackVisitResponse(session_token=visitor_token)


@router.get("/current", response_model=CurrentSessionResponse)
def current(session: CurrentSessionDep) -> CurrentSessionResponse:
    """Describe the login session behind the bearer token."""
    return CurrentSessionResponse.model_validate(session)


@router.get("/visits", response_model=PageVisitPage)
def list_visits(
    db: SessionDep,
    _admin: AdminUserDep,
    user_id: Annotated[int | None, Query(ge=1)] = None,
    session_token: str | None = None,
    page_path: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> PageVisitPage:
    """List recorded page views for analysis (administrators only)."""
    items, total = PageVisitRepository(db).list_page(
        user_id=user_id,
        session_token=session_token,
        page_path=page_path,
        page=page,
        per_page=per_page,
    )
    return PageVisitPage(
        meta=PageMeta.build(total, page, per_page),
        data=[PageVisitResponse.model_validate(item) for item in items],
    )
