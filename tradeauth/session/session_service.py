"""
Session: Session Service

Seul écrivain des tokens et de l'état de révocation: inscription,
connexion, refresh, déconnexion.

Les messages d'erreur ne révèlent jamais si un email existe.
"""

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from ..core.exceptions import (
    AccountLockedError,
    AccountNotFoundError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidTokenError,
    TokenNotFoundError,
    TokenOwnerMismatchError,
    TokenRevokedError,
    WeakPasswordError,
)
from ..core.interfaces import AuthSettings
from ..credentials.account_repository import normalize_email
from ..credentials.interfaces import (
    AccountCredential,
    IAccountRepository,
    IPasswordHasher,
    IUserProfileClient,
)
from ..logging.structured_logger import StructuredLogger
from ..rbac.resolver import RbacResolver
from ..rbac.role_service import RoleService
from ..revocation.interfaces import (
    IRefreshTokenRepository,
    ITokenBlacklist,
    RefreshTokenRecord,
)
from ..revocation.refresh_tokens import hash_refresh_token
from ..tokens.token_codec import TokenCodec
from .interfaces import (
    LOGOUT_REVOKES_ALL_REFRESH_TOKENS,
    AuthResult,
    TokenRefreshResult,
    UserInfo,
)
from .lockout import LockoutPolicy


class SessionService:
    """
    Cycle de vie des sessions.

    Example:
        service = SessionService(accounts, hasher, codec, resolver, role_service,
                                 refresh_tokens, blacklist, lockout, settings, logger)
        result = service.login("a@x.com", "P@ssw0rd1")
        service.logout(result.access_token)
    """

    def __init__(
        self,
        accounts: IAccountRepository,
        hasher: IPasswordHasher,
        codec: TokenCodec,
        resolver: RbacResolver,
        role_service: RoleService,
        refresh_tokens: IRefreshTokenRepository,
        blacklist: ITokenBlacklist,
        lockout: LockoutPolicy,
        settings: AuthSettings,
        logger: StructuredLogger,
        profile_client: Optional[IUserProfileClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logout_revokes_all: bool = LOGOUT_REVOKES_ALL_REFRESH_TOKENS,
    ) -> None:
        self._accounts = accounts
        self._hasher = hasher
        self._codec = codec
        self._resolver = resolver
        self._role_service = role_service
        self._refresh_tokens = refresh_tokens
        self._blacklist = blacklist
        self._lockout = lockout
        self._settings = settings
        self._logger = logger
        self._profile_client = profile_client
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logout_revokes_all = logout_revokes_all
        self._dummy_hash: Optional[str] = None

    # ──────────────────────────────────────────────────────────────────────
    # Inscription
    # ──────────────────────────────────────────────────────────────────────

    def register(
        self,
        email: str,
        password: str,
        device_info: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResult:
        """
        Crée un compte avec le rôle par défaut et ouvre une session.

        Raises:
            InvalidEmailError: Email vide ou sans @
            WeakPasswordError: Mot de passe trop court
            EmailAlreadyRegisteredError: Email déjà utilisé
            DefaultRoleMissingError: Rôle par défaut absent
        """
        email = normalize_email(email)
        if not email or "@" not in email:
            raise InvalidEmailError()

        min_length = self._settings.password.min_length
        if not password or len(password) < min_length:
            raise WeakPasswordError(f"Password must be at least {min_length} characters")

        if self._accounts.exists_by_email(email):
            raise EmailAlreadyRegisteredError()

        self._role_service.ensure_default_role(self._settings.default_role)

        if self._profile_client is not None:
            account_id = self._profile_client.create_profile(email)
        else:
            account_id = str(uuid.uuid4())

        now = self._clock()
        account = AccountCredential(
            account_id=account_id,
            email=email,
            password_hash=self._hasher.hash(password),
            last_password_change=now,
            created_at=now,
            updated_at=now,
        )
        self._accounts.save(account)
        self._role_service.assign_role(account_id, self._settings.default_role)

        self._logger.info("Account registered", account_id=account_id, ip_address=ip_address)

        result = self._issue_session(account, device_info, ip_address)
        result.created = True
        return result

    # ──────────────────────────────────────────────────────────────────────
    # Connexion
    # ──────────────────────────────────────────────────────────────────────

    def login(
        self,
        email: str,
        password: str,
        device_info: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResult:
        """
        Authentifie par email / mot de passe.

        Raises:
            InvalidCredentialsError: Email inconnu ou mauvais mot de passe
            AccountLockedError: Compte verrouillé (compteur inchangé)
        """
        now = self._clock()
        account = self._accounts.find_by_email(email)

        if account is None:
            # Même coût qu'une vérification réelle
            self._hasher.matches(password or "", self._get_dummy_hash())
            self._logger.warn("Login failed", reason="unknown_email", ip_address=ip_address)
            raise InvalidCredentialsError()

        if self._lockout.is_locked(account, now):
            self._logger.warn(
                "Login rejected, account locked",
                account_id=account.account_id,
                locked_until=account.locked_until,
            )
            raise AccountLockedError(account.locked_until)

        if not self._hasher.matches(password or "", account.password_hash):
            status = self._lockout.register_failure(account, now)
            self._accounts.save(account)
            if status.locked:
                self._logger.warn(
                    "Account locked after failed logins",
                    account_id=account.account_id,
                    failed_attempts=status.failed_attempts,
                    locked_until=status.locked_until,
                )
            else:
                self._logger.warn(
                    "Login failed",
                    reason="bad_password",
                    account_id=account.account_id,
                    failed_attempts=status.failed_attempts,
                )
            raise InvalidCredentialsError()

        if account.is_2fa_enabled:
            challenge = self._codec.issue_mfa_challenge(account.account_id)
            self._logger.info("Login requires 2FA", account_id=account.account_id)
            return AuthResult(requires_2fa=True, temp_token=challenge.token, timestamp=now)

        self._lockout.register_success(account, now)
        account.last_login = now
        if self._hasher.needs_rehash(account.password_hash):
            account.password_hash = self._hasher.hash(password)
        self._accounts.save(account)

        self._logger.info("Login succeeded", account_id=account.account_id, ip_address=ip_address)
        return self._issue_session(account, device_info, ip_address)

    def _issue_session(
        self,
        account: AccountCredential,
        device_info: Optional[str],
        ip_address: Optional[str],
    ) -> AuthResult:
        resolved = self._resolver.resolve(account.account_id)
        access = self._codec.issue_access(
            account.account_id, account.email, resolved.roles, resolved.permissions
        )
        refresh = self._codec.issue_refresh(account.account_id)

        now = self._clock()
        self._refresh_tokens.record(
            RefreshTokenRecord(
                record_id=str(uuid.uuid4()),
                account_id=account.account_id,
                token_hash=hash_refresh_token(refresh.token),
                device_info=device_info,
                ip_address=ip_address,
                expires_at=refresh.expires_at,
                created_at=now,
            )
        )

        return AuthResult(
            access_token=access.token,
            refresh_token=refresh.token,
            expires_in=self._codec.access_ttl_seconds,
            user=self._user_info(account, resolved.roles, resolved.permissions),
            timestamp=now,
        )

    # ──────────────────────────────────────────────────────────────────────
    # Refresh
    # ──────────────────────────────────────────────────────────────────────

    def refresh(self, refresh_token: str) -> TokenRefreshResult:
        """
        Émet un nouvel access token. Pas de rotation du refresh token.

        Raises:
            InvalidTokenError: Token invalide, expiré ou pas de type REFRESH
            TokenNotFoundError: Aucun record pour ce token
            TokenRevokedError: Record révoqué
            TokenOwnerMismatchError: Record d'un autre compte ou compte disparu
        """
        claims = self._codec.verify_refresh(refresh_token)

        record = self._refresh_tokens.find_by_hash(hash_refresh_token(refresh_token))
        if record is None:
            raise TokenNotFoundError()
        if record.revoked:
            raise TokenRevokedError("Refresh token is invalid or expired")
        now = self._clock()
        if record.is_expired(now):
            raise InvalidTokenError("Refresh token is invalid or expired")
        if record.account_id != claims.subject_id:
            self._logger.warn("Refresh token owner mismatch", account_id=claims.subject_id)
            raise TokenOwnerMismatchError()

        account = self._accounts.get(claims.subject_id)
        if account is None:
            raise TokenOwnerMismatchError()

        resolved = self._resolver.resolve(account.account_id)
        access = self._codec.issue_access(
            account.account_id, account.email, resolved.roles, resolved.permissions
        )
        self._logger.info("Access token refreshed", account_id=account.account_id)

        return TokenRefreshResult(
            access_token=access.token,
            refresh_token=refresh_token,
            expires_in=self._codec.access_ttl_seconds,
            timestamp=now,
        )

    # ──────────────────────────────────────────────────────────────────────
    # Déconnexion
    # ──────────────────────────────────────────────────────────────────────

    def logout(self, access_token: str, refresh_token: Optional[str] = None) -> int:
        """
        Révoque l'access token présenté et les refresh tokens du compte.

        Avec logout_revokes_all=False, seul refresh_token (si fourni) est révoqué.

        Returns:
            Nombre de refresh tokens révoqués

        Raises:
            InvalidTokenError: Access token invalide ou expiré
            StoreUnavailableError: Blacklist injoignable
        """
        claims = self._codec.verify_access(access_token)
        self._blacklist.blacklist_access_token(claims.token_id, claims.expires_at)

        if self._logout_revokes_all:
            revoked = self._refresh_tokens.revoke_all_for_account(claims.subject_id)
        elif refresh_token:
            revoked = int(self._refresh_tokens.revoke(hash_refresh_token(refresh_token)))
        else:
            revoked = 0

        self._logger.info(
            "Logout",
            account_id=claims.subject_id,
            jti=claims.token_id,
            revoked_refresh_count=revoked,
        )
        return revoked

    def logout_all_devices(self, account_id: str) -> int:
        """
        Révoque tous les refresh tokens du compte.

        Les access tokens déjà émis restent valides jusqu'à leur expiration.
        """
        revoked = self._refresh_tokens.revoke_all_for_account(account_id)
        self._logger.info("Logout from all devices", account_id=account_id, revoked_refresh_count=revoked)
        return revoked

    # ──────────────────────────────────────────────────────────────────────
    # Lecture
    # ──────────────────────────────────────────────────────────────────────

    def get_user_info(self, account_id: str) -> UserInfo:
        """
        Raises:
            AccountNotFoundError: Compte inexistant
        """
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        resolved = self._resolver.resolve(account_id)
        return self._user_info(account, resolved.roles, resolved.permissions)

    def has_permission(self, account_id: str, permission: str) -> bool:
        return self._resolver.has_permission(account_id, permission)

    def _user_info(self, account: AccountCredential, roles, permissions) -> UserInfo:
        return UserInfo(
            user_id=account.account_id,
            email=account.email,
            roles=list(roles),
            permissions=list(permissions),
            is_email_verified=account.is_email_verified,
            is_phone_verified=account.is_phone_verified,
            is_2fa_enabled=account.is_2fa_enabled,
            created_at=account.created_at,
            last_login=account.last_login,
        )

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self._hasher.hash(str(uuid.uuid4()))
        return self._dummy_hash
