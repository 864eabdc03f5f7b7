"""API endpoint modules for version 1."""

from .admin_answers import router as admin_answers_router
from .admin_qr import router as admin_qr_router
from .answers import router as answers_router
from .auth import router as auth_router
from .captcha import router as captcha_router
from .minigames import router as minigames_router
from .progress import router as progress_router
from .sessions import router as sessions_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "captcha_router",
    "minigames_router",
    "answers_router",
    "progress_router",
    "sessions_router",
    "users_router",
    "admin_qr_router",
    "admin_answers_router",
]
