"""Authentication request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from puzzle_gate.schemas.user import ProfileFields, UserResponse


class OtpSendRequest(BaseModel):
    """Request a one-time code for a phone number."""

    phone: str = Field(..., max_length=20, description="Mobile number, e.g. 09123456789")


class OtpSendResponse(BaseModel):
    """Acknowledgement that a code was dispatched."""

    success: bool = True
    session_id: str = Field(..., description="Opaque identifier of the OTP challenge")
    expires_in: int = Field(..., description="Seconds until the code expires")
    message: str


class OtpVerifyRequest(BaseModel):
    """Submit the received code."""

    phone: str = Field(..., max_length=20)
    code: str = Field(..., pattern=r"^\d{4,6}$", description="Numeric code from the SMS")


class OtpVerifyResponse(BaseModel):
    """Outcome of a successful verification.

    Existing users receive an access token; new users receive a registration
    token that must be presented to ``/auth/register``.
    """

    success: bool = True
    matched: bool = True
    is_new_user: bool
    user: UserResponse | None = None
    access_token: str | None = None
    registration_token: str | None = None
    token_type: str = "bearer"
    message: str


class RegisterRequest(ProfileFields):
    """Complete registration after phone verification."""

    registration_token: str = Field(..., description="Token returned by /auth/otp/verify")
    full_name: str = Field(..., min_length=1, max_length=255)


class AuthResponse(BaseModel):
    """Session credentials returned after registration."""

    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    message: str
