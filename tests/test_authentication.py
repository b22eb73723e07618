from __future__ import annotations

import pytest

from admin_auth.db.orm import AdminSession
from admin_auth.exceptions import (
    CredentialNotFoundError,
    InactiveAccountError,
    NoCredentialsError,
    NotFoundError,
    SessionError,
    ValidationError,
    VerificationError,
)
from admin_auth.services import AdminDirectory
from admin_auth.services.authentication import counter_regressed
from tests.helpers.fakes import cred_id, make_response, register_key


def _admin(db, email):
    db.expire_all()
    return AdminDirectory(db).get_by_email(email)


def _credential(registry, db, email, name):
    admin = _admin(db, email)
    return registry.find_by_credential_id(admin.id, cred_id(name))


@pytest.fixture
async def enrolled(registration):
    """a@x.com with cred-1 and b@x.com with cred-2."""
    await register_key(registration, "a@x.com", cred_id("cred-1"))
    await register_key(registration, "b@x.com", cred_id("cred-2"))


async def test_login_succeeds(authentication, enrolled, registry, db, clock, verifier):
    options = await authentication.begin("a@x.com")
    assert [c.id for c in options.allow_credentials] == [cred_id("cred-1")]
    assert options.rp_id == "localhost"

    result = await authentication.verify(
        "a@x.com", make_response(cred_id("cred-1"), options.challenge)
    )

    assert result.verified is True
    assert result.profile.email == "a@x.com"
    assert result.profile.last_login_at == clock()
    assert result.session_token
    assert verifier.calls[-1] == "authentication"

    admin = _admin(db, "a@x.com")
    assert admin.current_challenge is None
    assert admin.challenge_expires_at is None
    cred = _credential(registry, db, "a@x.com", "cred-1")
    assert cred.counter == 1
    assert cred.last_used_at == clock()
    assert db.query(AdminSession).count() == 1


async def test_begin_unknown_admin(authentication):
    with pytest.raises(NotFoundError):
        await authentication.begin("ghost@x.com")


async def test_begin_invalid_email(authentication):
    with pytest.raises(ValidationError):
        await authentication.begin("ghost")


async def test_begin_without_credentials(authentication, db):
    AdminDirectory(db).lookup_or_create("a@x.com")
    db.commit()

    with pytest.raises(NoCredentialsError):
        await authentication.begin("a@x.com")
    assert _admin(db, "a@x.com").current_challenge is None


async def test_begin_inactive_admin(authentication, enrolled, db):
    _admin(db, "a@x.com").is_active = False
    db.commit()

    with pytest.raises(InactiveAccountError):
        await authentication.begin("a@x.com")


async def test_verify_inactive_admin(authentication, enrolled, db, verifier):
    options = await authentication.begin("a@x.com")
    _admin(db, "a@x.com").is_active = False
    db.commit()
    verifier.calls.clear()

    with pytest.raises(InactiveAccountError):
        await authentication.verify("a@x.com", make_response(cred_id("cred-1"), options.challenge))
    assert verifier.calls == []


async def test_superseded_challenge_is_rejected(authentication, enrolled):
    first = await authentication.begin("a@x.com")
    second = await authentication.begin("a@x.com")

    with pytest.raises(SessionError):
        await authentication.verify("a@x.com", make_response(cred_id("cred-1"), first.challenge))

    result = await authentication.verify(
        "a@x.com", make_response(cred_id("cred-1"), second.challenge)
    )
    assert result.verified is True


async def test_expired_challenge_is_rejected(authentication, enrolled, clock, db):
    options = await authentication.begin("a@x.com")
    clock.advance(minutes=6)

    with pytest.raises(SessionError):
        await authentication.verify("a@x.com", make_response(cred_id("cred-1"), options.challenge))
    assert db.query(AdminSession).count() == 0


async def test_challenge_cannot_be_replayed(authentication, enrolled):
    options = await authentication.begin("a@x.com")
    response = make_response(cred_id("cred-1"), options.challenge)
    await authentication.verify("a@x.com", response)

    with pytest.raises(SessionError):
        await authentication.verify("a@x.com", response)


async def test_other_admins_credential_is_not_found(authentication, enrolled, registry, db):
    options = await authentication.begin("b@x.com")

    with pytest.raises(CredentialNotFoundError):
        await authentication.verify("b@x.com", make_response(cred_id("cred-1"), options.challenge))

    assert _credential(registry, db, "a@x.com", "cred-1").counter == 0
    assert db.query(AdminSession).count() == 0


async def test_counter_regression_fails_without_session(
    authentication, enrolled, registry, db, verifier
):
    cred = _credential(registry, db, "a@x.com", "cred-1")
    cred.counter = 10
    db.commit()
    verifier.counters[cred_id("cred-1")] = 7

    options = await authentication.begin("a@x.com")
    with pytest.raises(VerificationError) as exc_info:
        await authentication.verify("a@x.com", make_response(cred_id("cred-1"), options.challenge))

    assert exc_info.value.status_code == 401
    assert _credential(registry, db, "a@x.com", "cred-1").counter == 10
    assert _admin(db, "a@x.com").last_login_at is None
    assert db.query(AdminSession).count() == 0


async def test_zero_counter_authenticators_can_log_in(authentication, enrolled, registry, db, verifier):
    verifier.counters[cred_id("cred-1")] = 0

    for _ in range(2):
        options = await authentication.begin("a@x.com")
        result = await authentication.verify(
            "a@x.com", make_response(cred_id("cred-1"), options.challenge)
        )
        assert result.verified is True

    assert _credential(registry, db, "a@x.com", "cred-1").counter == 0


async def test_verification_failure_changes_nothing(authentication, enrolled, registry, db, verifier):
    options = await authentication.begin("a@x.com")
    verifier.fail = True

    with pytest.raises(VerificationError):
        await authentication.verify("a@x.com", make_response(cred_id("cred-1"), options.challenge))

    admin = _admin(db, "a@x.com")
    assert admin.current_challenge == options.challenge
    assert admin.last_login_at is None
    assert _credential(registry, db, "a@x.com", "cred-1").counter == 0
    assert db.query(AdminSession).count() == 0


async def test_login_replaces_current_session(authentication, enrolled, sessions, db):
    options = await authentication.begin("a@x.com")
    first = await authentication.verify("a@x.com", make_response(cred_id("cred-1"), options.challenge))

    options = await authentication.begin("a@x.com")
    second = await authentication.verify(
        "a@x.com",
        make_response(cred_id("cred-1"), options.challenge),
        current_session=first.session_token,
    )

    assert sessions.validate(first.session_token) is None
    assert sessions.validate(second.session_token).email == "a@x.com"
    assert db.query(AdminSession).count() == 1


@pytest.mark.parametrize(
    "stored, reported, regressed",
    [
        (0, 0, False),
        (0, 1, False),
        (5, 6, False),
        (5, 5, True),
        (5, 4, True),
        (5, 0, True),
    ],
)
def test_counter_regressed(stored, reported, regressed):
    assert counter_regressed(stored, reported) is regressed
