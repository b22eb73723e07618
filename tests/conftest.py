from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from admin_auth.config import Settings
from admin_auth.db.base import Base
from admin_auth.db.engine import make_session_factory
from admin_auth.main import create_app
from admin_auth.services import (
    AuthenticationService,
    ChallengeStore,
    CredentialRegistry,
    RegistrationService,
    SessionManager,
)
from tests.helpers.fakes import ORIGIN, RP_ID, FakeClock, FakeVerifier


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def challenges(db, clock):
    return ChallengeStore(db, clock=clock)


@pytest.fixture
def registry(db):
    return CredentialRegistry(db)


@pytest.fixture
def sessions(db, clock):
    return SessionManager(db, clock=clock)


@pytest.fixture
def registration(db, verifier, clock):
    return RegistrationService(db, verifier, rp_id=RP_ID, origin=ORIGIN, clock=clock)


@pytest.fixture
def authentication(db, verifier, clock, sessions):
    return AuthenticationService(
        db,
        verifier,
        sessions=sessions,
        rp_id=RP_ID,
        origin=ORIGIN,
        clock=clock,
        challenge_ttl=timedelta(minutes=5),
    )


@pytest.fixture
def settings():
    return Settings(
        db_url="sqlite://",
        webauthn_rp_id=RP_ID,
        webauthn_origin=ORIGIN,
        sweep_on_request=False,
    )


@pytest.fixture
def app(settings, session_factory, verifier, clock):
    return create_app(
        settings=settings,
        session_factory=session_factory,
        verifier=verifier,
        clock=clock,
    )


@pytest.fixture
def client(app):
    return TestClient(app)
