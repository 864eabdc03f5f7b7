"""Offset pagination shared by the list repositories."""
from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

__all__ = ["paginate"]


def paginate(session: Session, stmt: Any, page: int, per_page: int) -> tuple[list[Any], int]:
    """Return one page of ``stmt`` results and the total row count."""
    total = session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
    offset = max(page - 1, 0) * per_page
    items = list(session.scalars(stmt.offset(offset).limit(per_page)))
    return items, int(total or 0)
