"""Data access helpers for page visits."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from puzzle_gate.models.visit import PageVisit
from puzzle_gate.repositories.pagination import paginate

__all__ = ["PageVisitRepository"]


class PageVisitRepository:
    """Append-only access to page visit rows."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def append(self, visit: PageVisit) -> PageVisit:
        """Stage a new visit and flush it."""
        self.session.add(visit)
        self.session.flush()
        return visit

    def list_page(
        self,
        *,
        user_id: int | None = None,
        session_token: str | None = None,
        page_path: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[PageVisit], int]:
        """Return a page of visits, newest first, plus the total match count."""
        stmt = select(PageVisit)
        if user_id is not None:
            stmt = stmt.where(PageVisit.user_id == user_id)
        if session_token is not None:
            stmt = stmt.where(PageVisit.session_token == session_token)
        if page_path is not None:
            stmt = stmt.where(PageVisit.page_path == page_path)
        return paginate(
            self.session,
            stmt.order_by(PageVisit.created_at.desc(), PageVisit.id.desc()),
            page,
            per_page,
        )
