from __future__ import annotations

from datetime import timedelta

import pytest

from admin_auth.db.orm import Admin
from admin_auth.services import AdminDirectory, ChallengeStore, generate_challenge, is_valid_challenge


@pytest.fixture
def admin(db):
    admin = AdminDirectory(db).lookup_or_create("admin@example.com").admin
    db.commit()
    return admin


def test_generate_challenge_is_random_base64url():
    a, b = generate_challenge(), generate_challenge()
    assert a != b
    assert "=" not in a and "+" not in a and "/" not in a
    assert len(a) >= 43


def test_begin_challenge_sets_value_and_expiry(challenges, admin, clock):
    expires_at = challenges.begin_challenge(admin, "first")

    assert expires_at == clock() + timedelta(minutes=5)
    assert challenges.read_challenge(admin) == ("first", expires_at)
    assert challenges.is_valid_challenge(admin) is True


def test_begin_challenge_overwrites_previous(challenges, admin, db):
    challenges.begin_challenge(admin, "first")
    challenges.begin_challenge(admin, "second", ttl=timedelta(minutes=1))
    db.commit()

    db.expire_all()
    reloaded = db.get(Admin, admin.id)
    assert reloaded.current_challenge == "second"


def test_read_challenge_none_when_cleared(challenges, admin):
    assert challenges.read_challenge(admin) is None


def test_consume_challenge_clears_both_fields(challenges, admin):
    challenges.begin_challenge(admin, "value")

    assert challenges.consume_challenge(admin) is True
    assert admin.current_challenge is None
    assert admin.challenge_expires_at is None


def test_consume_challenge_is_noop_when_already_cleared(challenges, admin):
    assert challenges.consume_challenge(admin) is False
    assert challenges.consume_challenge(admin) is False


def test_consume_challenge_with_stale_expected_value_keeps_newer(challenges, admin):
    challenges.begin_challenge(admin, "old")
    challenges.begin_challenge(admin, "new")

    assert challenges.consume_challenge(admin, expected="old") is False
    assert admin.current_challenge == "new"
    assert challenges.consume_challenge(admin, expected="new") is True


def test_expired_challenge_is_invalid_without_sweep(challenges, admin, clock):
    challenges.begin_challenge(admin, "value")
    clock.advance(minutes=5)

    # Expiry equal to now is already invalid
    assert challenges.is_valid_challenge(admin) is False
    assert admin.current_challenge == "value"


def test_sweep_clears_only_expired(db, clock):
    directory = AdminDirectory(db)
    stale = directory.lookup_or_create("stale@example.com").admin
    fresh = directory.lookup_or_create("fresh@example.com").admin
    idle = directory.lookup_or_create("idle@example.com").admin
    store = ChallengeStore(db, clock=clock)
    store.begin_challenge(stale, "stale", ttl=timedelta(seconds=1))
    store.begin_challenge(fresh, "fresh", ttl=timedelta(minutes=5))
    db.commit()

    clock.advance(seconds=2)
    assert store.sweep_expired() == 1
    db.commit()

    db.expire_all()
    assert db.get(Admin, stale.id).current_challenge is None
    assert db.get(Admin, stale.id).challenge_expires_at is None
    assert db.get(Admin, fresh.id).current_challenge == "fresh"
    assert db.get(Admin, idle.id).current_challenge is None


def test_sweep_returns_zero_when_nothing_expired(challenges, admin):
    challenges.begin_challenge(admin, "value")
    assert challenges.sweep_expired() == 0


def test_sweep_does_not_clear_challenge_renewed_after_expiry(challenges, admin, clock):
    challenges.begin_challenge(admin, "old", ttl=timedelta(seconds=1))
    clock.advance(seconds=2)
    # A new ceremony starts before the sweep runs
    challenges.begin_challenge(admin, "renewed")

    assert challenges.sweep_expired() == 0
    assert challenges.is_valid_challenge(admin) is True


class TestIsValidChallenge:
    def test_missing_value(self, clock):
        admin = Admin(current_challenge=None, challenge_expires_at=clock() + timedelta(minutes=5))
        assert is_valid_challenge(admin, clock()) is False

    def test_missing_expiry(self, clock):
        admin = Admin(current_challenge="value", challenge_expires_at=None)
        assert is_valid_challenge(admin, clock()) is False

    def test_expired(self, clock):
        admin = Admin(current_challenge="value", challenge_expires_at=clock() - timedelta(seconds=1))
        assert is_valid_challenge(admin, clock()) is False

    def test_valid(self, clock):
        admin = Admin(current_challenge="value", challenge_expires_at=clock() + timedelta(minutes=5))
        assert is_valid_challenge(admin, clock()) is True
