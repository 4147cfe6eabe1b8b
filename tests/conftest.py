"""Test configuration and fixtures.

Every test gets its own in-memory SQLite database so account state never
leaks between tests. The notifier is swapped for a recorder so tests can read
the code that would have been emailed.
"""

import asyncio
import os
from datetime import datetime, timedelta
from typing import Generator

# Set env flags BEFORE importing application modules
os.environ.setdefault("TESTING", "1")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-signing-key-0f8e2d")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("NOTIFIER_BACKEND", "log")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from account_store import AccountStore
from auth_service import AuthService
from errors import NotificationError
from notifier import get_notifier
from security import SessionIssuer, get_session_issuer

TEST_SECRET = os.environ["SECRET_KEY"]


class RecordingNotifier:
    """Captures dispatched codes; can be told to fail or hang."""

    def __init__(self):
        self.sent = []
        self.fail = False
        self.hang = False

    async def send_code(self, address: str, code: str) -> None:
        if self.hang:
            await asyncio.sleep(60)
        if self.fail:
            raise NotificationError("smtp unavailable")
        self.sent.append((address, code))

    def last_code_for(self, address: str) -> str:
        for sent_to, code in reversed(self.sent):
            if sent_to == address:
                return code
        raise AssertionError(f"no code sent to {address}")


class FakeClock:
    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory) -> Generator:  # type: ignore
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db_session) -> AccountStore:
    return AccountStore(db_session)


@pytest.fixture()
def recorder() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def issuer() -> SessionIssuer:
    return SessionIssuer(TEST_SECRET)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime.utcnow())


@pytest.fixture()
def service(store, recorder, issuer, clock) -> AuthService:
    return AuthService(store=store, notifier=recorder, issuer=issuer, clock=clock, notify_timeout=0.5)


@pytest.fixture()
def run():
    """Drive a service coroutine to completion from a sync test."""
    return asyncio.run


@pytest.fixture()
def client(db_session, recorder, issuer) -> Generator[TestClient, None, None]:
    def _get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_notifier] = lambda: recorder
    app.dependency_overrides[get_session_issuer] = lambda: issuer
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
