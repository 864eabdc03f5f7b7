"""QR scan endpoint that unlocks a minigame."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from puzzle_gate.api.v1.dependencies import (
    ClientInfoDep,
    LocaleDep,
    NotifierDep,
    OptionalSessionDep,
    SessionDep,
)
from puzzle_gate.core.i18n import t
from puzzle_gate.core.settings import settings
from puzzle_gate.schemas.qr import AccessResponse
from puzzle_gate.services.qr_access import QrAccessValidator, Requester

router = APIRouter(prefix="/minigames", tags=["minigames"])


@router.get(
    "/access",
    response_model=AccessResponse,
    responses={
        status.HTTP_307_TEMPORARY_REDIRECT: {"description": "Redirect to the unlocked minigame"},
        status.HTTP_403_FORBIDDEN: {"model": AccessResponse},
    },
)
def access_minigame(
    game: Annotated[int, Query(ge=1)],
    db: SessionDep,
    client: ClientInfoDep,
    session: OptionalSessionDep,
    notifier: NotifierDep,
    locale: LocaleDep,
    token: str = "",
    redirect: bool = False,
) -> Response:
    """Validate a scanned token for ``game`` and consume it on success.

    Denials are answered with 403 and a reason code so the client can show
    a specific message; every attempt is logged either way.
    """
    requester = Requester.from_client(
        client,
        user_id=session.user_id if session is not None else None,
        session_token=session.session_token if session is not None else None,
    )
    decision = QrAccessValidator(db, notifier).validate_and_consume(token, game, requester)

    if decision.granted:
        target = settings.minigame_url(game)
        if redirect:
            return RedirectResponse(target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
        body = AccessResponse(
            success=True,
            access_granted=True,
            game_number=game,
            redirect_url=target,
            message=t("success.access_granted", locale),
        )
        return JSONResponse(body.model_dump())

    reason = decision.reason.value if decision.reason else None
    body = AccessResponse(
        success=False,
        access_granted=False,
        game_number=game,
        reason=reason,
        message=t(f"qr.{reason}", locale) if reason else t("qr.access_denied", locale),
    )
    return JSONResponse(body.model_dump(), status_code=status.HTTP_403_FORBIDDEN)
