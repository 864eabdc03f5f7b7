"""CRUD-style helpers for managing users and their sessions."""
from __future__ import annotations

from datetime import timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from puzzle_gate.core import security
from puzzle_gate.core.settings import settings
from puzzle_gate.db.time import as_utc, utcnow
from puzzle_gate.models.user import DEVICE_TYPE_MAX_LENGTH, IP_MAX_LENGTH, User, UserSession
from puzzle_gate.schemas.auth import RegisterRequest
from puzzle_gate.schemas.user import ProfileUpdateRequest
from puzzle_gate.services.client_info import ClientInfo, clip

__all__ = [
    "get_user",
    "get_user_by_phone",
    "create_user",
    "update_user",
    "open_session",
    "get_active_session",
    "close_session",
    "purge_expired_sessions",
]


def get_user(db: Session, user_id: int) -> User | None:
    """Return a single user by primary key."""
    return db.get(User, user_id)


def get_user_by_phone(db: Session, phone_number: str) -> User | None:
    """Return the user registered with ``phone_number``."""
    return db.scalars(select(User).where(User.phone_number == phone_number)).first()


def create_user(db: Session, phone_number: str, payload: RegisterRequest) -> User:
    """Stage a new, phone-verified user built from registration data."""
    profile = payload.model_dump(exclude={"registration_token"})
    db_user = User(
        phone_number=phone_number,
        player_id=security.generate_player_id(),
        is_phone_verified=True,
        last_login_at=utcnow(),
        **profile,
    )
    db.add(db_user)
    db.flush()
    return db_user


def update_user(db: Session, db_user: User, update_data: ProfileUpdateRequest) -> User:
    """Apply partial updates to an existing user."""
    update_dict = update_data.model_dump(exclude_unset=True)
    for key, value in update_dict.items():
        setattr(db_user, key, value)

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def open_session(db: Session, user: User, client: ClientInfo) -> UserSession:
    """Stage a new login session for ``user``."""
    now = utcnow()
    session = UserSession(
        user_id=user.id,
        session_token=security.generate_session_token(),
        ip_address=clip(client.ip_address, IP_MAX_LENGTH),
        real_ip=clip(client.real_ip, IP_MAX_LENGTH),
        forwarded_for=client.forwarded_for,
        user_agent=client.user_agent,
        device_type=clip(client.device_type, DEVICE_TYPE_MAX_LENGTH),
        is_active=True,
        expires_at=now + timedelta(days=settings.session_expire_days),
        created_at=now,
        last_activity_at=now,
    )
    db.add(session)
    db.flush()
    return session


def get_active_session(db: Session, session_token: str) -> UserSession | None:
    """Return the session for ``session_token`` if it is active and unexpired."""
    session = db.scalars(
        select(UserSession).where(
            UserSession.session_token == session_token,
            UserSession.is_active.is_(True),
        )
    ).first()
    if session is None or as_utc(session.expires_at) <= utcnow():
        return None
    return session


def close_session(db: Session, session: UserSession) -> None:
    """Deactivate a session."""
    session.is_active = False
    db.add(session)
    db.commit()


def purge_expired_sessions(db: Session) -> int:
    """Deactivate sessions whose expiry has passed and return how many changed."""
    result = db.execute(
        update(UserSession)
        .where(UserSession.is_active.is_(True), UserSession.expires_at <= utcnow())
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
