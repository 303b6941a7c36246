"""
Core: configuration du processus et taxonomie d'erreurs.
"""

from .interfaces import (
    AuthSettings,
    JwtSettings,
    LockoutSettings,
    PasswordSettings,
    RedisSettings,
    PostgresSettings,
    GatewaySettings,
    ServiceSettings,
    IConfigLoader,
)
from .config_loader import ConfigLoader
from .exceptions import (
    AuthError,
    ConfigError,
    InvalidCredentialsError,
    AccountLockedError,
    EmailAlreadyRegisteredError,
    WeakPasswordError,
    InvalidEmailError,
    AccountNotFoundError,
    InvalidTokenError,
    TokenExpiredError,
    TokenRevokedError,
    TokenNotFoundError,
    TokenOwnerMismatchError,
    ForbiddenError,
    RoleNotFoundError,
    RoleAlreadyExistsError,
    DefaultRoleMissingError,
    StoreUnavailableError,
)

__all__ = [
    # Configuration
    "AuthSettings",
    "JwtSettings",
    "LockoutSettings",
    "PasswordSettings",
    "RedisSettings",
    "PostgresSettings",
    "GatewaySettings",
    "ServiceSettings",
    "IConfigLoader",
    "ConfigLoader",
    # Exceptions
    "AuthError",
    "ConfigError",
    "InvalidCredentialsError",
    "AccountLockedError",
    "EmailAlreadyRegisteredError",
    "WeakPasswordError",
    "InvalidEmailError",
    "AccountNotFoundError",
    "InvalidTokenError",
    "TokenExpiredError",
    "TokenRevokedError",
    "TokenNotFoundError",
    "TokenOwnerMismatchError",
    "ForbiddenError",
    "RoleNotFoundError",
    "RoleAlreadyExistsError",
    "DefaultRoleMissingError",
    "StoreUnavailableError",
]
