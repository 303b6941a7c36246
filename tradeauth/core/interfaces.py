"""
Core: Configuration

Objet de configuration explicite, chargé une fois au démarrage et passé
aux constructeurs. Aucun état global.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, field_validator, model_validator


# ══════════════════════════════════════════════════════════════════════════════
# TYPES
# ══════════════════════════════════════════════════════════════════════════════

# Taille minimale de clé HMAC-SHA256
MIN_SECRET_BYTES: int = 32

DEFAULT_AUTH_PUBLIC_PATHS: List[str] = [
    "/auth/register",
    "/auth/login",
    "/auth/refresh",
    "/auth/forgot-password",
    "/auth/reset-password",
    "/auth/verify-email",
]

HEALTH_PUBLIC_PATHS: List[str] = [
    "/actuator/health",
    "/actuator/info",
]


class JwtSettings(BaseModel):
    """Paramètres de signature et durées de vie des tokens."""

    secret_key: str
    issuer: str = "tradeauth"
    access_token_ttl_seconds: int = 900
    refresh_token_ttl_seconds: int = 7 * 24 * 3600
    mfa_token_ttl_seconds: int = 300

    @field_validator("secret_key")
    @classmethod
    def _check_secret(cls, v: str) -> str:
        if len(v.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ValueError(f"secret_key must be at least {MIN_SECRET_BYTES} bytes")
        return v

    @field_validator("access_token_ttl_seconds", "refresh_token_ttl_seconds", "mfa_token_ttl_seconds")
    @classmethod
    def _check_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("token TTL must be positive")
        return v

    @model_validator(mode="after")
    def _check_ordering(self) -> "JwtSettings":
        if self.refresh_token_ttl_seconds <= self.access_token_ttl_seconds:
            raise ValueError("refresh_token_ttl_seconds must exceed access_token_ttl_seconds")
        return self


class LockoutSettings(BaseModel):
    max_failed_attempts: int = 5
    lockout_minutes: int = 15

    @field_validator("max_failed_attempts", "lockout_minutes")
    @classmethod
    def _check_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


class PasswordSettings(BaseModel):
    """Politique mot de passe et coûts Argon2id."""

    min_length: int = 8
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536  # KiB
    argon2_parallelism: int = 4


class RedisSettings(BaseModel):
    url: str = "redis://localhost:6379/0"
    # Borne chaque appel au store de révocation (fail-closed au-delà)
    operation_timeout_seconds: float = 0.5

    @field_validator("operation_timeout_seconds")
    @classmethod
    def _check_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("operation_timeout_seconds must be positive")
        return v


class PostgresSettings(BaseModel):
    dsn: Optional[str] = None


class GatewaySettings(BaseModel):
    auth_route_prefix: str = "/v1/api/auth-service"
    public_paths: Optional[List[str]] = None

    def resolved_public_paths(self) -> List[str]:
        """Allow-list gateway: routes auth préfixées + endpoints santé."""
        if self.public_paths is not None:
            return list(self.public_paths)
        prefix = self.auth_route_prefix.rstrip("/")
        return [f"{prefix}{p}" for p in DEFAULT_AUTH_PUBLIC_PATHS] + list(HEALTH_PUBLIC_PATHS)


class ServiceSettings(BaseModel):
    public_paths: List[str] = DEFAULT_AUTH_PUBLIC_PATHS + HEALTH_PUBLIC_PATHS


class AuthSettings(BaseModel):
    """Configuration complète du processus (durée de vie = processus)."""

    service_name: str = "auth-service"
    default_role: str = "ROLE_USER"
    jwt: JwtSettings
    lockout: LockoutSettings = LockoutSettings()
    password: PasswordSettings = PasswordSettings()
    redis: RedisSettings = RedisSettings()
    postgres: PostgresSettings = PostgresSettings()
    gateway: GatewaySettings = GatewaySettings()
    service: ServiceSettings = ServiceSettings()


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IConfigLoader(ABC):
    """Charge et valide la configuration du processus."""

    @abstractmethod
    def load(self, path: Union[str, Path]) -> AuthSettings:
        """
        Charge la configuration depuis un fichier.

        Raises:
            ConfigError: Fichier absent, YAML invalide ou valeurs hors bornes
        """
        pass
