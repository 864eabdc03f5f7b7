# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-puzzle-gate")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SMS_BACKEND", "console")
os.environ.setdefault("DEFAULT_LOCALE", "fa")

from puzzle_gate.api.v1 import dependencies as deps
from puzzle_gate.db.session import Base
from puzzle_gate.db.session import get_db as app_get_session
from puzzle_gate.main import app as fastapi_app
from puzzle_gate.models import User
from puzzle_gate.services.ephemeral import clear_local_cache
from tests.factories import RecordingSmsSender, bearer_for, make_user

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def clean_ephemeral_state() -> Iterator[None]:
    """Reset in-process CAPTCHA codes, rate-limit counters and Redis clients."""
    clear_local_cache()
    yield
    clear_local_cache()


@pytest.fixture()
def sms_sender(app: FastAPI) -> Iterator[RecordingSmsSender]:
    """Replace the SMS provider with a recording double."""
    sender = RecordingSmsSender()
    app.dependency_overrides[deps.get_sms_sender_dep] = lambda: sender
    try:
        yield sender
    finally:
        app.dependency_overrides.pop(deps.get_sms_sender_dep, None)


@pytest.fixture()
def client(app: FastAPI, sms_sender: RecordingSmsSender) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted player."""
    return make_user(db_session)


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """Create and return a persisted administrator."""
    return make_user(db_session, is_admin=True, full_name="Admin")


@pytest.fixture()
def auth_token(db_session: Session, test_user: User) -> dict[str, str]:
    """Return authorization headers for the test player."""
    return bearer_for(db_session, test_user)


@pytest.fixture()
def admin_token(db_session: Session, admin_user: User) -> dict[str, str]:
    """Return authorization headers for the administrator."""
    return bearer_for(db_session, admin_user)
