"""Business logic services for the Puzzle Gate application."""

from .captcha import CaptchaService
from .ephemeral import CaptchaStore, EphemeralStore
from .otp import OtpManager
from .qr_access import QrAccessValidator
from .rate_limit import RateLimiter

__all__ = [
    "CaptchaService",
    "CaptchaStore",
    "EphemeralStore",
    "OtpManager",
    "QrAccessValidator",
    "RateLimiter",
]
