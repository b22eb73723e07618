from __future__ import annotations

import pytest

from admin_auth.db.orm import Admin, WebAuthnCredential
from admin_auth.exceptions import (
    ConflictError,
    SessionError,
    ValidationError,
    VerificationError,
)
from admin_auth.services import AdminDirectory
from admin_auth.utils import DEFAULT_DEVICE_NAME
from tests.helpers.fakes import cred_id, public_key_for, register_key, registration_response


def _admin(db, email):
    db.expire_all()
    return AdminDirectory(db).get_by_email(email)


async def test_first_registration_creates_admin(registration, registry, db, verifier):
    options = await registration.begin("b@x.com")

    admin = _admin(db, "b@x.com")
    assert admin.is_active is True
    assert admin.role == "admin"
    assert admin.name == "b"
    assert admin.current_challenge == options.challenge
    assert options.user_name == "b@x.com"
    assert options.exclude_credentials == []

    result = await registration.verify(
        "b@x.com",
        registration_response(cred_id("cred-1"), options.challenge, transports=["usb"]),
        device_name="YubiKey 5",
    )

    assert result.verified is True
    assert result.device_name == "YubiKey 5"
    admin = _admin(db, "b@x.com")
    assert admin.current_challenge is None
    assert admin.challenge_expires_at is None
    creds = registry.list_credentials(admin.id)
    assert len(creds) == 1
    assert creds[0].id == result.credential_id
    assert creds[0].counter == 0
    assert creds[0].transports == ["usb"]
    assert creds[0].public_key == public_key_for(cred_id("cred-1"))
    assert creds[0].aaguid == verifier.aaguid


async def test_begin_normalizes_email(registration, db):
    await registration.begin("  Admin@Example.COM ")
    assert _admin(db, "admin@example.com") is not None


@pytest.mark.parametrize("email", [None, "", "   ", "not-an-email"])
async def test_begin_rejects_bad_email(registration, email, db):
    with pytest.raises(ValidationError):
        await registration.begin(email)
    assert db.query(Admin).count() == 0


async def test_begin_for_existing_admin_excludes_credentials(registration):
    await register_key(registration, "a@x.com", cred_id("cred-1"))
    await register_key(registration, "a@x.com", cred_id("cred-2"))

    options = await registration.begin("a@x.com")

    excluded = {c.id for c in options.exclude_credentials}
    assert excluded == {cred_id("cred-1"), cred_id("cred-2")}
    assert all(c.transports == ["usb"] for c in options.exclude_credentials)


async def test_begin_twice_keeps_only_latest_challenge(registration, db):
    first = await registration.begin("a@x.com")
    second = await registration.begin("a@x.com")

    assert first.challenge != second.challenge
    assert db.query(Admin).count() == 1

    with pytest.raises(SessionError):
        await registration.verify(
            "a@x.com", registration_response(cred_id("cred-1"), first.challenge)
        )


@pytest.mark.parametrize(
    "email, credential",
    [
        (None, {"id": "x"}),
        ("a@x.com", None),
        ("a@x.com", {}),
        ("", {"id": "x"}),
    ],
)
async def test_verify_requires_email_and_credential(registration, email, credential):
    with pytest.raises(ValidationError):
        await registration.verify(email, credential)


async def test_verify_without_ceremony(registration, verifier):
    with pytest.raises(SessionError):
        await registration.verify(
            "nobody@x.com", registration_response(cred_id("cred-1"), "challenge")
        )
    assert verifier.calls == []


async def test_verify_after_expiry(registration, clock, verifier):
    options = await registration.begin("a@x.com")
    clock.advance(minutes=6)

    with pytest.raises(SessionError):
        await registration.verify(
            "a@x.com", registration_response(cred_id("cred-1"), options.challenge)
        )
    assert verifier.calls == []


async def test_verification_failure_keeps_challenge(registration, verifier, registry, db):
    options = await registration.begin("a@x.com")
    verifier.fail = True

    with pytest.raises(VerificationError):
        await registration.verify(
            "a@x.com", registration_response(cred_id("cred-1"), options.challenge)
        )

    admin = _admin(db, "a@x.com")
    assert admin.current_challenge == options.challenge
    assert registry.list_credentials(admin.id) == []


async def test_missing_client_data_is_validation_error(registration):
    await registration.begin("a@x.com")

    with pytest.raises(ValidationError):
        await registration.verify("a@x.com", {"id": cred_id("cred-1"), "response": {}})


async def test_device_name_is_sanitized(registration, registry, db):
    result = await register_key(
        registration, "a@x.com", cred_id("cred-1"), device_name="  My   Key\x00\n" + "x" * 100
    )

    assert "\n" not in result.device_name
    assert "\x00" not in result.device_name
    assert result.device_name.startswith("My Key")
    assert len(result.device_name) <= 64


async def test_device_name_defaults(registration):
    options = await registration.begin("a@x.com")
    result = await registration.verify(
        "a@x.com", registration_response(cred_id("cred-1"), options.challenge)
    )
    assert result.device_name == DEFAULT_DEVICE_NAME


async def test_credential_registered_by_another_admin_conflicts(registration, db):
    await register_key(registration, "a@x.com", cred_id("cred-1"))
    options = await registration.begin("b@x.com")

    with pytest.raises(ConflictError):
        await registration.verify(
            "b@x.com", registration_response(cred_id("cred-1"), options.challenge)
        )

    assert db.query(WebAuthnCredential).count() == 1
    # The failed attempt did not consume the challenge
    assert _admin(db, "b@x.com").current_challenge == options.challenge


async def test_lookup_or_create_reports_creation(db):
    directory = AdminDirectory(db)

    first = directory.lookup_or_create("a@x.com")
    second = directory.lookup_or_create("a@x.com")

    assert first.created is True
    assert second.created is False
    assert first.admin.id == second.admin.id
