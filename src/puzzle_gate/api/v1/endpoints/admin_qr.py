"""Administrative management of QR access tokens and their scan logs."""

from __future__ import annotations

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, HTTPException, Query, status

from puzzle_gate.api.v1.dependencies import AdminUserDep, LocaleDep, SessionDep
from puzzle_gate.core.i18n import t
from puzzle_gate.core.settings import settings
from puzzle_gate.models.qr import QrAccessToken
from puzzle_gate.repositories.qr_repo import QrAccessLogRepository, QrTokenRepository
from puzzle_gate.schemas.common import PageMeta
from puzzle_gate.schemas.qr import (
    GeneratedToken,
    QrAccessLogPage,
    QrAccessLogResponse,
    QrTokenGenerateRequest,
    QrTokenGenerateResponse,
    QrTokenDetail,
    QrTokenPage,
    QrTokenResponse,
    QrTokenUpdateRequest,
)
from puzzle_gate.services.qr_access import default_game_numbers, generate_tokens

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/qr", tags=["admin"])

PageQuery = Annotated[int, Query(ge=1)]
PerPageQuery = Annotated[int, Query(ge=1, le=100)]
AccessStatus = Literal["granted", "denied", "invalid"]


def _get_token_or_404(db: SessionDep, token_id: int, locale: str) -> QrAccessToken:
    token = QrTokenRepository(db).get_by_id(token_id)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=t("errors.not_found", locale),
        )
    return token


@router.post(
    "/generate",
    response_model=QrTokenGenerateResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate(
    payload: QrTokenGenerateRequest,
    db: SessionDep,
    admin: AdminUserDep,
) -> QrTokenGenerateResponse:
    """Create a batch of tokens, one per game.

    Without ``game_numbers`` the batch covers games ``1..count``, or the
    configured default game count when ``count`` is omitted too.
    """
    games = payload.game_numbers or default_game_numbers(payload.count)
    try:
        tokens = generate_tokens(
            db,
            games,
            notes=payload.notes,
            max_uses=payload.max_uses,
            metadata={"created_by": admin.id},
        )
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(err),
        ) from err

    logger.info("Admin %s generated %d QR tokens", admin.id, len(tokens))
    return QrTokenGenerateResponse(
        count=len(tokens),
        tokens=[
            GeneratedToken(
                id=token.id,
                token=token.token,
                game_number=token.game_number,
                url=settings.qr_access_url(token.game_number, token.token),
            )
            for token in tokens
        ],
    )


@router.get("/tokens", response_model=QrTokenPage)
def list_tokens(
    db: SessionDep,
    _admin: AdminUserDep,
    is_active: bool | None = None,
    is_used: bool | None = None,
    game_number: Annotated[int | None, Query(ge=1)] = None,
    page: PageQuery = 1,
    per_page: PerPageQuery = 20,
) -> QrTokenPage:
    """List tokens, newest first."""
    items, total = QrTokenRepository(db).list_page(
        is_active=is_active,
        is_used=is_used,
        game_number=game_number,
        page=page,
        per_page=per_page,
    )
    return QrTokenPage(
        meta=PageMeta.build(total, page, per_page),
        data=[QrTokenResponse.model_validate(item) for item in items],
    )


@router.get("/tokens/{token_id}", response_model=QrTokenDetail)
def show_token(
    token_id: int,
    db: SessionDep,
    _admin: AdminUserDep,
    locale: LocaleDep,
) -> QrTokenDetail:
    """Return a single token and how many scans were logged against it."""
    token = _get_token_or_404(db, token_id, locale)
    attempts = QrAccessLogRepository(db).count_for_token(token.id)
    return QrTokenDetail(
        **QrTokenResponse.model_validate(token).model_dump(),
        attempt_count=attempts,
    )


@router.patch("/tokens/{token_id}", response_model=QrTokenResponse)
def update_token(
    token_id: int,
    payload: QrTokenUpdateRequest,
    db: SessionDep,
    admin: AdminUserDep,
    locale: LocaleDep,
) -> QrTokenResponse:
    """Activate, deactivate or annotate a token."""
    token = _get_token_or_404(db, token_id, locale)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(token, key, value)
    db.commit()
    db.refresh(token)
    logger.info("Admin %s updated QR token %s", admin.id, token_id)
    return QrTokenResponse.model_validate(token)


@router.get("/tokens/{token_id}/logs", response_model=QrAccessLogPage)
def token_logs(
    token_id: int,
    db: SessionDep,
    _admin: AdminUserDep,
    locale: LocaleDep,
    page: PageQuery = 1,
    per_page: PerPageQuery = 20,
) -> QrAccessLogPage:
    """List scan attempts recorded against one token."""
    _get_token_or_404(db, token_id, locale)
    items, total = QrAccessLogRepository(db).list_page(
        token_id=token_id,
        page=page,
        per_page=per_page,
    )
    return QrAccessLogPage(
        meta=PageMeta.build(total, page, per_page),
        data=[QrAccessLogResponse.model_validate(item) for item in items],
    )


@router.get("/logs", response_model=QrAccessLogPage)
def all_logs(
    db: SessionDep,
    _admin: AdminUserDep,
    access_status: AccessStatus | None = None,
    game_number: Annotated[int | None, Query(ge=1)] = None,
    page: PageQuery = 1,
    per_page: PerPageQuery = 20,
) -> QrAccessLogPage:
    """List all scan attempts with optional status and game filters."""
    items, total = QrAccessLogRepository(db).list_page(
        access_status=access_status,
        game_number=game_number,
        page=page,
        per_page=per_page,
    )
    return QrAccessLogPage(
        meta=PageMeta.build(total, page, per_page),
        data=[QrAccessLogResponse.model_validate(item) for item in items],
    )
