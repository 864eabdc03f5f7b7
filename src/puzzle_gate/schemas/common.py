"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class PageMeta(BaseModel):
    """Offset pagination metadata returned by list endpoints."""

    total: int = Field(..., description="Total number of matching rows")
    per_page: int = Field(..., description="Requested page size")
    current_page: int = Field(..., description="1-based page number")
    last_page: int = Field(..., description="Last available page number")

    @classmethod
    def build(cls, total: int, page: int, per_page: int) -> PageMeta:
        """Compute pagination metadata from a total count."""
        last_page = max(1, -(-total // per_page))
        return cls(total=total, per_page=per_page, current_page=page, last_page=last_page)


class MessageResponse(BaseModel):
    """Plain acknowledgement carrying a localized message."""

    success: bool = True
    message: str
