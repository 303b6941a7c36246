"""
Core: Taxonomie d'erreurs

Toutes les erreurs métier dérivent de AuthError et portent le code HTTP
sous lequel elles sont exposées. Les messages restent volontairement
génériques: aucune distinction "compte inconnu" / "mauvais mot de passe".
"""

from datetime import datetime
from typing import Optional


class AuthError(Exception):
    """Erreur de base du plan de contrôle auth."""

    status_code: int = 400

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ConfigError(Exception):
    """Configuration invalide (fatal au démarrage)."""

    pass


# ──────────────────────────────────────────────────────────────────────────────
# Identifiants
# ──────────────────────────────────────────────────────────────────────────────


class InvalidCredentialsError(AuthError):
    """Email ou mot de passe invalide."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class AccountLockedError(AuthError):
    """Compte temporairement verrouillé après trop d'échecs."""

    status_code = 423

    def __init__(self, locked_until: Optional[datetime] = None) -> None:
        self.locked_until = locked_until
        super().__init__("Account is locked. Please try again later.")


class EmailAlreadyRegisteredError(AuthError):
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Email already registered")


class WeakPasswordError(AuthError):
    status_code = 400


class InvalidEmailError(AuthError):
    status_code = 400

    def __init__(self, message: str = "A valid email is required") -> None:
        super().__init__(message)


class AccountNotFoundError(AuthError):
    status_code = 404

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


# ──────────────────────────────────────────────────────────────────────────────
# Tokens
# ──────────────────────────────────────────────────────────────────────────────


class InvalidTokenError(AuthError):
    """Token malformé, signature invalide, mauvais type ou expiré."""

    status_code = 401

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class TokenExpiredError(InvalidTokenError):
    def __init__(self, message: str = "Token expired") -> None:
        super().__init__(message)


class TokenRevokedError(InvalidTokenError):
    def __init__(self, message: str = "Token has been revoked") -> None:
        super().__init__(message)


class TokenNotFoundError(AuthError):
    """Refresh token inconnu côté persistance."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Refresh token not found")


class TokenOwnerMismatchError(AuthError):
    status_code = 401

    def __init__(self) -> None:
        super().__init__("Token user mismatch")


# ──────────────────────────────────────────────────────────────────────────────
# Autorisation / RBAC
# ──────────────────────────────────────────────────────────────────────────────


class ForbiddenError(AuthError):
    status_code = 403

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class RoleNotFoundError(AuthError):
    status_code = 404

    def __init__(self, role_name: str) -> None:
        self.role_name = role_name
        super().__init__(f"Role not found: {role_name}")


class RoleAlreadyExistsError(AuthError):
    status_code = 409

    def __init__(self, role_name: str) -> None:
        self.role_name = role_name
        super().__init__(f"Role already exists: {role_name}")


class DefaultRoleMissingError(AuthError):
    """Rôle par défaut absent: erreur de bootstrap, fatale au démarrage."""

    status_code = 500

    def __init__(self, role_name: str) -> None:
        self.role_name = role_name
        super().__init__(f"Default role not found: {role_name}")


# ──────────────────────────────────────────────────────────────────────────────
# Infrastructure
# ──────────────────────────────────────────────────────────────────────────────


class StoreUnavailableError(AuthError):
    """Store de révocation injoignable ou timeout dépassé."""

    status_code = 503

    def __init__(self, message: str = "Revocation store unavailable") -> None:
        super().__init__(message)
