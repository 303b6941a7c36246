"""
Tests unitaires pour Session - SessionService

Inscription, connexion (verrouillage, 2FA), refresh, déconnexion.
"""

from datetime import timedelta
from typing import Dict, List, Optional

import pytest

from tradeauth.core.exceptions import (
    AccountLockedError,
    AccountNotFoundError,
    DefaultRoleMissingError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidTokenError,
    TokenNotFoundError,
    TokenOwnerMismatchError,
    TokenRevokedError,
    WeakPasswordError,
)
from tradeauth.core.interfaces import AuthSettings
from tradeauth.credentials import (
    IPasswordHasher,
    IUserProfileClient,
    InMemoryAccountRepository,
)
from tradeauth.rbac import (
    InMemoryRoleAssignmentRepository,
    InMemoryRoleRepository,
    RbacResolver,
    RoleService,
)
from tradeauth.revocation import (
    InMemoryRefreshTokenRepository,
    InMemoryTokenBlacklist,
    RefreshTokenRecord,
    hash_refresh_token,
)
from tradeauth.session import LockoutPolicy, SessionService
from tradeauth.tokens import TokenCodec, TokenType


PASSWORD = "P@ssw0rd1"


# =============================================================================
# FIXTURES
# =============================================================================


class FakePasswordHasher(IPasswordHasher):
    """Hachage réversible pour tests (aucun coût CPU)."""

    def __init__(self) -> None:
        self.verified: List[str] = []
        self.hashed = 0
        self.rehash = False

    def hash(self, plaintext: str) -> str:
        self.hashed += 1
        return f"hashed:{plaintext}"

    def matches(self, plaintext: str, digest: str) -> bool:
        self.verified.append(digest)
        return digest == f"hashed:{plaintext}"

    def needs_rehash(self, digest: str) -> bool:
        return self.rehash


class FakeProfileClient(IUserProfileClient):
    def __init__(self) -> None:
        self.profiles: Dict[str, dict] = {}

    def create_profile(self, email: str) -> str:
        profile_id = f"profile-{len(self.profiles) + 1}"
        self.profiles[profile_id] = {"email": email}
        return profile_id

    def get_profile(self, profile_id: str) -> Optional[dict]:
        return self.profiles.get(profile_id)


class Harness:
    def __init__(self, settings: AuthSettings, logger, clock, seed: bool = True, **kwargs) -> None:
        self.clock = clock
        self.accounts = InMemoryAccountRepository()
        self.hasher = FakePasswordHasher()
        # Horloge réelle pour le codec: PyJWT vérifie exp/iat en temps réel
        self.codec = TokenCodec(settings.jwt)
        roles = InMemoryRoleRepository()
        assignments = InMemoryRoleAssignmentRepository()
        self.role_service = RoleService(roles, assignments, logger, clock=clock)
        if seed:
            self.role_service.seed_default_roles()
        self.resolver = RbacResolver(roles, assignments, clock=clock)
        self.refresh_tokens = InMemoryRefreshTokenRepository(clock=clock)
        self.blacklist = InMemoryTokenBlacklist()
        self.service = SessionService(
            accounts=self.accounts,
            hasher=self.hasher,
            codec=self.codec,
            resolver=self.resolver,
            role_service=self.role_service,
            refresh_tokens=self.refresh_tokens,
            blacklist=self.blacklist,
            lockout=LockoutPolicy.from_settings(settings.lockout),
            settings=settings,
            logger=logger,
            clock=clock,
            **kwargs,
        )


@pytest.fixture
def harness(settings, logger, clock) -> Harness:
    return Harness(settings, logger, clock)


@pytest.fixture
def registered(harness: Harness):
    return harness.service.register("a@x.com", PASSWORD)


# =============================================================================
# INSCRIPTION
# =============================================================================


class TestRegister:
    def test_register_returns_session(self, harness: Harness) -> None:
        result = harness.service.register(" A@X.com ", PASSWORD, device_info="ios", ip_address="10.0.0.1")

        assert result.created is True
        assert result.token_type == "Bearer"
        assert result.expires_in == 900
        assert result.user.email == "a@x.com"
        assert result.user.roles == ["ROLE_USER"]
        assert result.user.permissions == []

        claims = harness.codec.verify_access(result.access_token)
        assert claims.roles == ("ROLE_USER",)
        assert claims.email == "a@x.com"

    def test_register_persists_hashed_password(self, harness: Harness, registered) -> None:
        account = harness.accounts.find_by_email("a@x.com")

        assert account.password_hash == f"hashed:{PASSWORD}"
        assert account.last_password_change is not None

    def test_register_records_refresh_token(self, harness: Harness) -> None:
        result = harness.service.register("a@x.com", PASSWORD, device_info="ios", ip_address="10.0.0.1")

        record = harness.refresh_tokens.find_by_hash(hash_refresh_token(result.refresh_token))

        assert record is not None
        assert record.account_id == result.user.user_id
        assert record.device_info == "ios"
        assert record.ip_address == "10.0.0.1"

    def test_duplicate_email_case_insensitive(self, harness: Harness, registered) -> None:
        with pytest.raises(EmailAlreadyRegisteredError):
            harness.service.register("A@x.COM", PASSWORD)

    @pytest.mark.parametrize("password", ["", "short"])
    def test_weak_password(self, harness: Harness, password: str) -> None:
        with pytest.raises(WeakPasswordError):
            harness.service.register("a@x.com", password)

    @pytest.mark.parametrize("email", ["", "   ", "not-an-email"])
    def test_invalid_email(self, harness: Harness, email: str) -> None:
        with pytest.raises(InvalidEmailError) as exc_info:
            harness.service.register(email, PASSWORD)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "A valid email is required"

    def test_profile_client_provides_account_id(self, settings, logger, clock) -> None:
        profiles = FakeProfileClient()
        h = Harness(settings, logger, clock, profile_client=profiles)

        result = h.service.register("a@x.com", PASSWORD)

        assert result.user.user_id == "profile-1"
        assert profiles.get_profile("profile-1") == {"email": "a@x.com"}

    def test_missing_default_role(self, settings, logger, clock) -> None:
        h = Harness(settings, logger, clock, seed=False)

        with pytest.raises(DefaultRoleMissingError):
            h.service.register("a@x.com", PASSWORD)
        assert h.accounts.exists_by_email("a@x.com") is False


# =============================================================================
# CONNEXION
# =============================================================================


class TestLogin:
    def test_login_success(self, harness: Harness, registered, clock) -> None:
        result = harness.service.login("a@x.com", PASSWORD)

        assert result.created is False
        assert result.requires_2fa is False
        assert result.user.last_login == clock.now
        assert harness.codec.verify_access(result.access_token).subject_id == registered.user.user_id

    def test_unknown_email_same_error(self, harness: Harness, registered) -> None:
        with pytest.raises(InvalidCredentialsError) as unknown:
            harness.service.login("nobody@x.com", PASSWORD)
        with pytest.raises(InvalidCredentialsError) as wrong:
            harness.service.login("a@x.com", "wrong-password")

        assert unknown.value.message == wrong.value.message == "Invalid email or password"

    def test_unknown_email_still_verifies_a_hash(self, harness: Harness) -> None:
        with pytest.raises(InvalidCredentialsError):
            harness.service.login("nobody@x.com", PASSWORD)

        assert len(harness.hasher.verified) == 1

    def test_failure_increments_counter(self, harness: Harness, registered) -> None:
        with pytest.raises(InvalidCredentialsError):
            harness.service.login("a@x.com", "wrong-password")

        assert harness.accounts.find_by_email("a@x.com").failed_attempts == 1

    def test_fifth_failure_locks_then_correct_password_rejected(self, harness: Harness, registered) -> None:
        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                harness.service.login("a@x.com", "wrong-password")

        with pytest.raises(AccountLockedError) as exc_info:
            harness.service.login("a@x.com", PASSWORD)

        account = harness.accounts.find_by_email("a@x.com")
        assert exc_info.value.status_code == 423
        assert exc_info.value.locked_until == account.locked_until
        assert account.failed_attempts == 5

    def test_locked_check_does_not_touch_password(self, harness: Harness, registered) -> None:
        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                harness.service.login("a@x.com", "wrong-password")
        verified = len(harness.hasher.verified)

        with pytest.raises(AccountLockedError):
            harness.service.login("a@x.com", "wrong-password")

        assert len(harness.hasher.verified) == verified
        assert harness.accounts.find_by_email("a@x.com").failed_attempts == 5

    def test_login_after_lock_expiry_resets(self, harness: Harness, registered, clock) -> None:
        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                harness.service.login("a@x.com", "wrong-password")

        clock.advance(minutes=15)
        harness.service.login("a@x.com", PASSWORD)

        account = harness.accounts.find_by_email("a@x.com")
        assert account.failed_attempts == 0
        assert account.locked_until is None

    def test_two_factor_hand_off(self, harness: Harness, registered) -> None:
        account = harness.accounts.find_by_email("a@x.com")
        account.is_2fa_enabled = True
        account.failed_attempts = 2
        harness.accounts.save(account)

        result = harness.service.login("a@x.com", PASSWORD)

        assert result.requires_2fa is True
        assert result.access_token is None
        assert result.refresh_token is None
        assert harness.codec.verify(result.temp_token).token_type is TokenType.MFA_PENDING
        assert harness.accounts.find_by_email("a@x.com").failed_attempts == 2
        assert result.to_dict()["requires2FA"] is True

    def test_rehash_on_login(self, harness: Harness, registered) -> None:
        harness.hasher.rehash = True
        before = harness.hasher.hashed

        harness.service.login("a@x.com", PASSWORD)

        assert harness.hasher.hashed == before + 1
        assert harness.accounts.find_by_email("a@x.com").password_hash == f"hashed:{PASSWORD}"

    def test_no_rehash_when_parameters_current(self, harness: Harness, registered) -> None:
        before = harness.hasher.hashed

        harness.service.login("a@x.com", PASSWORD)

        assert harness.hasher.hashed == before

    def test_logs_never_contain_password(self, harness: Harness, registered, log_lines) -> None:
        with pytest.raises(InvalidCredentialsError):
            harness.service.login("a@x.com", "wrong-password")

        assert all(PASSWORD not in line and "wrong-password" not in line for line in log_lines)


# =============================================================================
# REFRESH
# =============================================================================


class TestRefresh:
    def test_refresh_issues_new_access(self, harness: Harness, registered) -> None:
        result = harness.service.refresh(registered.refresh_token)

        assert result.refresh_token == registered.refresh_token
        assert result.access_token != registered.access_token
        assert result.expires_in == 900
        new_claims = harness.codec.verify_access(result.access_token)
        assert new_claims.subject_id == registered.user.user_id
        assert new_claims.roles == ("ROLE_USER",)

    def test_refresh_picks_up_role_changes(self, harness: Harness, registered) -> None:
        harness.role_service.assign_role(registered.user.user_id, "ROLE_TRADER")

        result = harness.service.refresh(registered.refresh_token)

        assert "TRADE" in harness.codec.verify_access(result.access_token).permissions

    def test_access_token_rejected(self, harness: Harness, registered) -> None:
        with pytest.raises(InvalidTokenError):
            harness.service.refresh(registered.access_token)

    def test_unrecorded_token(self, harness: Harness, registered) -> None:
        stray = harness.codec.issue_refresh(registered.user.user_id).token

        with pytest.raises(TokenNotFoundError) as exc_info:
            harness.service.refresh(stray)
        assert exc_info.value.message == "Refresh token not found"

    def test_revoked_token(self, harness: Harness, registered) -> None:
        harness.refresh_tokens.revoke(hash_refresh_token(registered.refresh_token))

        with pytest.raises(TokenRevokedError):
            harness.service.refresh(registered.refresh_token)

    def test_expired_record(self, harness: Harness, registered, clock) -> None:
        record = harness.refresh_tokens.find_by_hash(hash_refresh_token(registered.refresh_token))
        record.expires_at = clock.now - timedelta(seconds=1)

        with pytest.raises(InvalidTokenError) as exc_info:
            harness.service.refresh(registered.refresh_token)
        assert exc_info.value.message == "Refresh token is invalid or expired"

    def test_owner_mismatch(self, harness: Harness, registered) -> None:
        record = harness.refresh_tokens.find_by_hash(hash_refresh_token(registered.refresh_token))
        record.account_id = "someone-else"

        with pytest.raises(TokenOwnerMismatchError):
            harness.service.refresh(registered.refresh_token)

    def test_account_gone(self, harness: Harness, clock) -> None:
        issued = harness.codec.issue_refresh("ghost")
        harness.refresh_tokens.record(RefreshTokenRecord(
            record_id="r-ghost",
            account_id="ghost",
            token_hash=hash_refresh_token(issued.token),
            expires_at=issued.expires_at,
        ))

        with pytest.raises(TokenOwnerMismatchError):
            harness.service.refresh(issued.token)


# =============================================================================
# DÉCONNEXION
# =============================================================================


class TestLogout:
    def test_logout_blacklists_access_token(self, harness: Harness, registered) -> None:
        harness.service.logout(registered.access_token)

        claims = harness.codec.verify_access(registered.access_token)
        assert harness.blacklist.is_access_token_blacklisted(claims.token_id) is True
        assert harness.blacklist.get_blacklist_ttl(claims.token_id) > 0

    def test_logout_revokes_every_refresh_token(self, harness: Harness, registered) -> None:
        second = harness.service.login("a@x.com", PASSWORD)

        revoked = harness.service.logout(registered.access_token)

        assert revoked == 2
        with pytest.raises(TokenRevokedError):
            harness.service.refresh(second.refresh_token)

    def test_single_device_policy(self, settings, logger, clock) -> None:
        h = Harness(settings, logger, clock, logout_revokes_all=False)
        first = h.service.register("a@x.com", PASSWORD)
        second = h.service.login("a@x.com", PASSWORD)

        revoked = h.service.logout(first.access_token, refresh_token=first.refresh_token)

        assert revoked == 1
        assert h.service.refresh(second.refresh_token).access_token

    def test_logout_rejects_refresh_token(self, harness: Harness, registered) -> None:
        with pytest.raises(InvalidTokenError):
            harness.service.logout(registered.refresh_token)

    def test_logout_all_devices(self, harness: Harness, registered) -> None:
        harness.service.login("a@x.com", PASSWORD)

        revoked = harness.service.logout_all_devices(registered.user.user_id)

        assert revoked == 2
        assert harness.refresh_tokens.list_for_account(registered.user.user_id) == []
        claims = harness.codec.verify_access(registered.access_token)
        assert harness.blacklist.is_access_token_blacklisted(claims.token_id) is False


# =============================================================================
# LECTURE
# =============================================================================


class TestUserInfo:
    def test_get_user_info(self, harness: Harness, registered) -> None:
        info = harness.service.get_user_info(registered.user.user_id)

        assert info.email == "a@x.com"
        assert info.roles == ["ROLE_USER"]
        assert info.to_dict()["userId"] == registered.user.user_id

    def test_unknown_account(self, harness: Harness) -> None:
        with pytest.raises(AccountNotFoundError):
            harness.service.get_user_info("nobody")

    def test_has_permission(self, harness: Harness, registered) -> None:
        user_id = registered.user.user_id
        assert harness.service.has_permission(user_id, "trade") is False

        harness.role_service.assign_role(user_id, "ROLE_TRADER")

        assert harness.service.has_permission(user_id, "trade") is True
