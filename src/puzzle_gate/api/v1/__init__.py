"""Version 1 API endpoints."""

from .endpoints import (
    admin_answers_router,
    admin_qr_router,
    answers_router,
    auth_router,
    captcha_router,
    minigames_router,
    progress_router,
    sessions_router,
    users_router,
)

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
