"""Profile endpoints for the signed-in player."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from puzzle_gate.api.v1.dependencies import CurrentUserDep, SessionDep
from puzzle_gate.repositories.visit_repo import PageVisitRepository
from puzzle_gate.schemas.common import PageMeta
from puzzle_gate.schemas.user import ProfileUpdateRequest, UserResponse
from puzzle_gate.schemas.visit import PageVisitPage, PageVisitResponse
from puzzle_gate.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def read_me(current_user: CurrentUserDep) -> UserResponse:
    """Return the caller's profile."""
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse)
def update_me(
    payload: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> UserResponse:
    """Update fields of the caller's profile that were sent in the request."""
    user = user_service.update_user(db, current_user, payload)
    return UserResponse.model_validate(user)


@router.get("/me/visits", response_model=PageVisitPage)
def read_my_visits(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> PageVisitPage:
    """List pages the caller visited while signed in, newest first."""
    items, total = PageVisitRepository(db).list_page(
        user_id=current_user.id,
        page=page,
        per_page=per_page,
    )
    return PageVisitPage(
        meta=PageMeta.build(total, page, per_page),
        data=[PageVisitResponse.model_validate(item) for item in items],
    )
