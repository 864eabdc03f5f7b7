"""User-related Pydantic schemas."""

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
BIRTHDAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class UserResponse(BaseModel):
    """Public profile of a player."""

    id: int
    phone_number: str
    full_name: str | None = None
    birthday: str | None = None
    gender: str | None = None
    education_level: str | None = None
    field_of_study: str | None = None
    color: str | None = None
    profile_picture: str | None = None
    player_id: str | None = None
    is_phone_verified: bool

    model_config = ConfigDict(from_attributes=True)


class ProfileFields(BaseModel):
    """Optional profile attributes shared by registration and updates."""

    birthday: str | None = Field(None, description="ISO date (YYYY-MM-DD)")
    gender: Literal["male", "female", "other"] | None = None
    education_level: str | None = Field(None, max_length=100)
    field_of_study: str | None = Field(None, max_length=100)
    color: str | None = Field(None, description="Hex color code (e.g., #FF5733)")
    profile_picture: str | None = None

    @field_validator("birthday")
    @classmethod
    def validate_birthday(cls, v: str | None) -> str | None:
        """Validate the birthday is an ISO calendar date."""
        if v is not None and not BIRTHDAY_RE.match(v):
            raise ValueError("Birthday must use the YYYY-MM-DD format")
        return v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        """Validate color is a valid hex color code."""
        if v is not None and not HEX_COLOR_RE.match(v):
            raise ValueError("Color must be a valid hex color code (e.g., #FF5733)")
        return v


class ProfileUpdateRequest(ProfileFields):
    """Schema for updating user profile information."""

    full_name: str | None = Field(None, min_length=1, max_length=255)
