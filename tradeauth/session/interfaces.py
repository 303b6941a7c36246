"""
Session: Interfaces

Résultats des opérations de session (inscription, connexion, refresh) et
statut de verrouillage d'un compte.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# Politique héritée: une déconnexion simple révoque tous les refresh tokens
# du compte, pas seulement celui de l'appareil courant.
LOGOUT_REVOKES_ALL_REFRESH_TOKENS: bool = True

TOKEN_TYPE_BEARER = "Bearer"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class LockStatus:
    """Statut après enregistrement d'un échec."""

    failed_attempts: int
    locked: bool
    locked_until: Optional[datetime] = None
    remaining_attempts: int = 0


@dataclass
class UserInfo:
    """Vue publique d'un compte."""

    user_id: str
    email: str
    roles: List[str] = field(default_factory=list)
    permissions: List[str] = field(default_factory=list)
    is_email_verified: bool = False
    is_phone_verified: bool = False
    is_2fa_enabled: bool = False
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "email": self.email,
            "roles": list(self.roles),
            "permissions": list(self.permissions),
            "isEmailVerified": self.is_email_verified,
            "isPhoneVerified": self.is_phone_verified,
            "is2faEnabled": self.is_2fa_enabled,
            "createdAt": _iso(self.created_at),
            "lastLogin": _iso(self.last_login),
        }


@dataclass
class AuthResult:
    """
    Résultat d'inscription ou de connexion.

    Attributes:
        expires_in: Durée de vie de l'access token en secondes
        requires_2fa: True si la 2FA doit être complétée (pas de tokens)
        temp_token: Token MFA_PENDING quand requires_2fa
        created: True pour une inscription
    """

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: str = TOKEN_TYPE_BEARER
    expires_in: int = 0
    user: Optional[UserInfo] = None
    requires_2fa: bool = False
    temp_token: Optional[str] = None
    created: bool = False
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        if self.requires_2fa:
            return {
                "requires2FA": True,
                "tempToken": self.temp_token,
                "timestamp": _iso(self.timestamp),
            }
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "tokenType": self.token_type,
            "expiresIn": self.expires_in,
            "user": self.user.to_dict() if self.user else None,
            "requires2FA": False,
            "timestamp": _iso(self.timestamp),
        }


@dataclass
class TokenRefreshResult:
    """Nouveau access token; le refresh token est renvoyé inchangé."""

    access_token: str
    refresh_token: str
    token_type: str = TOKEN_TYPE_BEARER
    expires_in: int = 0
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "tokenType": self.token_type,
            "expiresIn": self.expires_in,
            "timestamp": _iso(self.timestamp),
        }
