"""
Enforcement: Interfaces

Contexte d'authentification attaché aux requêtes acceptées, et décision
partagée par les deux filtres (gateway non bloquant, service bloquant).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from ..rbac.interfaces import normalize_permission
from ..tokens.interfaces import TokenClaims


AUTHORIZATION_HEADER = "Authorization"
USER_ID_HEADER = "X-User-ID"
USER_EMAIL_HEADER = "X-User-Email"
USER_ROLES_HEADER = "X-User-Roles"
USER_PERMISSIONS_HEADER = "X-User-Permissions"
REQUEST_ID_HEADER = "X-Request-ID"

# Headers d'identité: jamais acceptés du client, toujours réécrits
IDENTITY_HEADERS: Tuple[str, ...] = (
    USER_ID_HEADER,
    USER_EMAIL_HEADER,
    USER_ROLES_HEADER,
    USER_PERMISSIONS_HEADER,
)

MSG_MISSING_TOKEN = "Missing authorization token"
MSG_INVALID_TOKEN = "Invalid or expired token"
MSG_INVALID_TOKEN_TYPE = "Invalid token type"
MSG_TOKEN_REVOKED = "Token has been revoked"
MSG_AUTH_ERROR = "Authentication error"


@dataclass(frozen=True)
class AuthContext:
    """Identité vérifiée du porteur d'un access token."""

    user_id: str
    email: Optional[str]
    roles: Tuple[str, ...]
    permissions: Tuple[str, ...]
    token_id: str

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "AuthContext":
        return cls(
            user_id=claims.subject_id,
            email=claims.email,
            roles=tuple(claims.roles),
            permissions=tuple(claims.permissions),
            token_id=claims.token_id,
        )

    def has_permission(self, name: str) -> bool:
        wanted = normalize_permission(name)
        return bool(wanted) and any(normalize_permission(p) == wanted for p in self.permissions)

    def has_role(self, name: str) -> bool:
        return name in self.roles

    def to_headers(self) -> Dict[str, str]:
        """Headers injectés vers les services en aval."""
        return {
            USER_ID_HEADER: self.user_id,
            USER_EMAIL_HEADER: self.email or "",
            USER_ROLES_HEADER: ",".join(self.roles),
            USER_PERMISSIONS_HEADER: ",".join(self.permissions),
        }


@dataclass(frozen=True)
class Decision:
    """
    Issue d'une vérification.

    Attributes:
        allowed: Requête acceptée
        public: Chemin de l'allow-list (aucun contexte)
        context: Contexte si accepté sur un chemin protégé
    """

    allowed: bool
    status: int = 200
    message: Optional[str] = None
    context: Optional[AuthContext] = None
    public: bool = False

    @classmethod
    def allow_public(cls) -> "Decision":
        return cls(allowed=True, public=True)

    @classmethod
    def allow(cls, context: AuthContext) -> "Decision":
        return cls(allowed=True, context=context)

    @classmethod
    def reject(cls, message: str, status: int = 401) -> "Decision":
        return cls(allowed=False, status=status, message=message)

    def error_body(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Corps JSON de rejet: {error, message, status, timestamp}."""
        now = now or datetime.now(timezone.utc)
        return {
            "error": "Unauthorized" if self.status == 401 else "Forbidden",
            "message": self.message,
            "status": self.status,
            "timestamp": now.isoformat(),
        }


@dataclass(frozen=True)
class PendingCheck:
    """Token vérifié localement, en attente du contrôle de révocation."""

    claims: TokenClaims
    path: str = field(default="")
