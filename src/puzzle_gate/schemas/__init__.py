"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import (
    AuthResponse,
    OtpSendRequest,
    OtpSendResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
    RegisterRequest,
)
from .captcha import CaptchaResponse, CaptchaVerifyRequest
from .common import MessageResponse, PageMeta
from .qr import AccessResponse, QrAccessLogResponse, QrTokenResponse
from .user import ProfileUpdateRequest, UserResponse

__all__ = [
    "AuthResponse", "OtpSendRequest", "OtpSendResponse",
    "OtpVerifyRequest", "OtpVerifyResponse", "RegisterRequest",
    "CaptchaResponse", "CaptchaVerifyRequest",
    "MessageResponse", "PageMeta",
    "AccessResponse", "QrAccessLogResponse", "QrTokenResponse",
    "ProfileUpdateRequest", "UserResponse",
]
