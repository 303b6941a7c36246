"""
Session

Cycle de vie des sessions:
- Inscription avec rôle par défaut
- Connexion avec verrouillage après échecs répétés
- Refresh sans rotation
- Déconnexion (blacklist + révocation des refresh tokens)
"""

from .interfaces import (
    LOGOUT_REVOKES_ALL_REFRESH_TOKENS,
    TOKEN_TYPE_BEARER,
    LockStatus,
    UserInfo,
    AuthResult,
    TokenRefreshResult,
)
from .lockout import LockoutPolicy
from .session_service import SessionService

__all__ = [
    # Policies / constants
    "LOGOUT_REVOKES_ALL_REFRESH_TOKENS",
    "TOKEN_TYPE_BEARER",
    # Dataclasses
    "LockStatus",
    "UserInfo",
    "AuthResult",
    "TokenRefreshResult",
    # Implementations
    "LockoutPolicy",
    "SessionService",
]
