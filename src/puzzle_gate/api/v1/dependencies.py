"""Shared API dependencies for authentication, locale and service wiring."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from puzzle_gate.core import security
from puzzle_gate.core.i18n import get_locale_from_header, t
from puzzle_gate.db.session import get_db
from puzzle_gate.models import User, UserSession
from puzzle_gate.services import user_service
from puzzle_gate.services.captcha import CaptchaService, get_captcha_service
from puzzle_gate.services.client_info import ClientInfo, collect_from_request
from puzzle_gate.services.notifications import LogNotifier, Notifier
from puzzle_gate.services.rate_limit import RateLimiter, get_rate_limiter
from puzzle_gate.services.sms import SmsSender, get_sms_sender

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_locale(accept_language: Annotated[str | None, Header()] = None) -> str:
    """Resolve the response language from ``Accept-Language``."""
    return get_locale_from_header(accept_language)


def get_client_info(request: Request) -> ClientInfo:
    """Collect network and device details of the caller."""
    return collect_from_request(request)


def get_sms_sender_dep() -> SmsSender:
    return get_sms_sender()


def get_rate_limiter_dep() -> RateLimiter:
    return get_rate_limiter()


def get_captcha_service_dep() -> CaptchaService:
    return get_captcha_service()


def get_notifier_dep() -> Notifier:
    return LogNotifier()


LocaleDep = Annotated[str, Depends(get_locale)]
ClientInfoDep = Annotated[ClientInfo, Depends(get_client_info)]
SmsSenderDep = Annotated[SmsSender, Depends(get_sms_sender_dep)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter_dep)]
CaptchaServiceDep = Annotated[CaptchaService, Depends(get_captcha_service_dep)]
NotifierDep = Annotated[Notifier, Depends(get_notifier_dep)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def _unauthorized(locale: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=t("errors.unauthorized", locale),
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_session(
    db: Session,
    credentials: HTTPAuthorizationCredentials | None,
) -> UserSession | None:
    """Return the active session behind a bearer token, or None."""
    if credentials is None:
        return None
    try:
        payload = security.decode_token(credentials.credentials, scope=security.ACCESS_SCOPE)
    except security.TokenError:
        return None

    session = user_service.get_active_session(db, str(payload.get("sid", "")))
    if session is None or str(session.user_id) != str(payload["sub"]):
        return None
    return session


def get_current_session(
    credentials: BearerDep,
    db: SessionDep,
    locale: LocaleDep,
) -> UserSession:
    """Get the login session for the bearer JWT.

    Raises:
        HTTPException: If the token is invalid or its session was closed.
    """
    session = resolve_session(db, credentials)
    if session is None or session.user is None:
        raise _unauthorized(locale)
    return session


CurrentSessionDep = Annotated[UserSession, Depends(get_current_session)]


def get_current_user(session: CurrentSessionDep) -> User:
    """Get the user that owns the current session."""
    return session.user  # type: ignore[return-value]


def get_optional_session(credentials: BearerDep, db: SessionDep) -> UserSession | None:
    """Return the caller's session when a valid bearer token is present."""
    return resolve_session(db, credentials)


CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalSessionDep = Annotated[UserSession | None, Depends(get_optional_session)]


def get_current_admin(user: CurrentUserDep, locale: LocaleDep) -> User:
    """Require the current user to be an administrator."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=t("errors.forbidden", locale),
        )
    return user


AdminUserDep = Annotated[User, Depends(get_current_admin)]
