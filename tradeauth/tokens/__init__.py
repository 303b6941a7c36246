"""
Tokens

Tokens de session signés HS256 (PyJWT):
- ACCESS: court, porte rôles et permissions
- REFRESH: long, sans rôles ni permissions
- MFA_PENDING: remis quand la 2FA doit être complétée
"""

from .interfaces import (
    TokenType,
    TokenClaims,
    IssuedToken,
    ITokenCodec,
)
from .token_codec import TokenCodec, ALGORITHM, REQUIRED_CLAIMS

__all__ = [
    # Enums
    "TokenType",
    # Dataclasses
    "TokenClaims",
    "IssuedToken",
    # Interfaces
    "ITokenCodec",
    # Implementations
    "TokenCodec",
    # Constants
    "ALGORITHM",
    "REQUIRED_CLAIMS",
]
