"""
Tests unitaires pour Credentials - AccountCredential et dépôt en mémoire.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tradeauth.credentials import AccountCredential, InMemoryAccountRepository, normalize_email


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_account(account_id: str = "a-1", email: str = "a@x.com") -> AccountCredential:
    return AccountCredential(account_id=account_id, email=email, password_hash="digest")


# =============================================================================
# ÉTAT DE VERROUILLAGE
# =============================================================================


class TestLockState:
    def test_new_account_not_locked(self) -> None:
        account = make_account()

        assert account.is_locked(NOW) is False
        assert account.failed_attempts == 0

    def test_lock_until_future(self) -> None:
        account = make_account()

        until = account.lock(timedelta(minutes=15), NOW)

        assert until == NOW + timedelta(minutes=15)
        assert account.is_locked(NOW) is True
        assert account.is_locked(NOW + timedelta(minutes=14, seconds=59)) is True

    def test_lock_expires_exactly_at_locked_until(self) -> None:
        account = make_account()
        account.lock(timedelta(minutes=15), NOW)

        assert account.is_locked(NOW + timedelta(minutes=15)) is False

    def test_reset_clears_counter_and_lock_together(self) -> None:
        account = make_account()
        account.increment_failed_attempts()
        account.lock(timedelta(minutes=15), NOW)

        account.reset_failed_attempts()

        assert account.failed_attempts == 0
        assert account.locked_until is None

    def test_touch_updates_timestamp(self) -> None:
        account = make_account()

        account.touch(NOW)

        assert account.updated_at == NOW


# =============================================================================
# DÉPÔT
# =============================================================================


class TestInMemoryAccountRepository:
    def test_normalize_email(self) -> None:
        assert normalize_email("  A@X.Com ") == "a@x.com"

    def test_save_and_find_case_insensitive(self) -> None:
        repo = InMemoryAccountRepository()
        repo.save(make_account(email="A@X.com"))

        found = repo.find_by_email(" a@x.COM")

        assert found is not None
        assert found.email == "a@x.com"
        assert repo.exists_by_email("A@x.com") is True
        assert repo.get("a-1") is found

    def test_unknown_email(self) -> None:
        assert InMemoryAccountRepository().find_by_email("nobody@x.com") is None

    def test_email_bound_to_other_account_rejected(self) -> None:
        repo = InMemoryAccountRepository()
        repo.save(make_account("a-1", "a@x.com"))

        with pytest.raises(ValueError):
            repo.save(make_account("a-2", "a@x.com"))

    def test_email_change_reindexes(self) -> None:
        repo = InMemoryAccountRepository()
        account = repo.save(make_account("a-1", "a@x.com"))

        account.email = "b@x.com"
        repo.save(account)

        assert repo.find_by_email("a@x.com") is None
        assert repo.find_by_email("b@x.com") is account

    def test_list_all(self) -> None:
        repo = InMemoryAccountRepository()
        repo.save(make_account("a-1", "a@x.com"))
        repo.save(make_account("a-2", "b@x.com"))

        assert {a.account_id for a in repo.list_all()} == {"a-1", "a-2"}
