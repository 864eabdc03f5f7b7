"""Recording page views for session analytics."""

from __future__ import annotations

import logging
import re
import secrets

from sqlalchemy.orm import Session

from puzzle_gate.models import PageVisit, UserSession
from puzzle_gate.models.user import DEVICE_TYPE_MAX_LENGTH, IP_MAX_LENGTH
from puzzle_gate.models.visit import PAGE_FIELD_MAX_LENGTH, VISITOR_TOKEN_MAX_LENGTH
from puzzle_gate.repositories.visit_repo import PageVisitRepository
from puzzle_gate.services.client_info import ClientInfo, clip

logger = logging.getLogger(__name__)

_VISITOR_TOKEN_RE = re.compile(rf"^[A-Za-z0-9_\-]{{16,{VISITOR_TOKEN_MAX_LENGTH}}}$")


def resolve_visitor_token(presented: str | None, session: UserSession | None) -> str:
    """Pick the token that groups this visit with the caller's others.

    Signed-in callers are grouped by their login session. Anonymous callers
    keep a well-formed token they present; anyone else gets a fresh one.
    """
    if session is not None:
        return session.session_token
    if presented and _VISITOR_TOKEN_RE.match(presented):
        return presented
    return secrets.token_hex(VISITOR_TOKEN_MAX_LENGTH // 2)


def record_visit(
    db: Session,
    client: ClientInfo,
    *,
    page_path: str,
    visitor_token: str,
    user_id: int | None = None,
    page_title: str | None = None,
    referrer: str | None = None,
    device_info: str | None = None,
) -> PageVisit:
    """Append one page view and commit it."""
    visit = PageVisitRepository(db).append(
        PageVisit(
            user_id=user_id,
            session_token=visitor_token,
            page_path=clip(page_path, PAGE_FIELD_MAX_LENGTH),
            page_title=clip(page_title, PAGE_FIELD_MAX_LENGTH),
            referrer=clip(referrer, PAGE_FIELD_MAX_LENGTH),
            ip_address=clip(client.real_ip or client.ip_address, IP_MAX_LENGTH),
            user_agent=client.user_agent,
            device_type=clip(client.device_type, DEVICE_TYPE_MAX_LENGTH),
            device_info=device_info,
        )
    )
    db.commit()
    logger.debug("Visit to %s by user %s", visit.page_path, user_id)
    return visit
