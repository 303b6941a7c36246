"""
Tests unitaires pour Session - LockoutPolicy

5 échecs consécutifs = verrouillage 15 minutes. Le compteur ne revient à
zéro que sur un succès.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tradeauth.core.interfaces import LockoutSettings
from tradeauth.credentials import AccountCredential
from tradeauth.session import LockoutPolicy


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def policy() -> LockoutPolicy:
    return LockoutPolicy()


@pytest.fixture
def account() -> AccountCredential:
    return AccountCredential(account_id="a-1", email="a@x.com", password_hash="d")


class TestRegisterFailure:
    def test_four_failures_not_locked(self, policy, account) -> None:
        for attempt in range(1, 5):
            status = policy.register_failure(account, NOW)
            assert status.locked is False
            assert status.failed_attempts == attempt

        assert policy.remaining_attempts(account, NOW) == 1

    def test_fifth_failure_locks_for_fifteen_minutes(self, policy, account) -> None:
        for _ in range(4):
            policy.register_failure(account, NOW)

        status = policy.register_failure(account, NOW)

        assert status.locked is True
        assert status.locked_until == NOW + timedelta(minutes=15)
        assert status.remaining_attempts == 0
        assert policy.is_locked(account, NOW + timedelta(minutes=14)) is True
        assert policy.remaining_attempts(account, NOW) == 0

    def test_lock_expires(self, policy, account) -> None:
        for _ in range(5):
            policy.register_failure(account, NOW)

        later = NOW + timedelta(minutes=15)

        assert policy.is_locked(account, later) is False
        assert policy.lock_remaining(account, later) == timedelta(0)

    def test_counter_kept_after_lock_expiry(self, policy, account) -> None:
        for _ in range(5):
            policy.register_failure(account, NOW)
        later = NOW + timedelta(minutes=16)

        status = policy.register_failure(account, later)

        assert account.failed_attempts == 6
        assert status.locked is True
        assert status.locked_until == later + timedelta(minutes=15)

    def test_lock_remaining(self, policy, account) -> None:
        for _ in range(5):
            policy.register_failure(account, NOW)

        assert policy.lock_remaining(account, NOW + timedelta(minutes=5)) == timedelta(minutes=10)


class TestRegisterSuccess:
    def test_success_resets_counter(self, policy, account) -> None:
        for _ in range(3):
            policy.register_failure(account, NOW)

        policy.register_success(account, NOW)

        assert account.failed_attempts == 0
        assert account.locked_until is None
        assert policy.remaining_attempts(account, NOW) == 5


class TestConfiguration:
    def test_from_settings(self, account) -> None:
        policy = LockoutPolicy.from_settings(LockoutSettings(max_failed_attempts=2, lockout_minutes=1))

        policy.register_failure(account, NOW)
        status = policy.register_failure(account, NOW)

        assert status.locked is True
        assert status.locked_until == NOW + timedelta(minutes=1)

    def test_invalid_threshold(self) -> None:
        with pytest.raises(ValueError):
            LockoutPolicy(max_failed_attempts=0)


class TestUnlock:
    def test_unlock_locked_account(self, policy, account) -> None:
        for _ in range(5):
            policy.register_failure(account, NOW)

        assert policy.unlock(account, NOW) is True
        assert policy.is_locked(account, NOW) is False
        assert account.failed_attempts == 0

    def test_unlock_unlocked_account(self, policy, account) -> None:
        assert policy.unlock(account, NOW) is False
