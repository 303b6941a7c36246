"""
Tokens: Interfaces

Tokens de session signés HS256. Un TokenClaims n'est produit que par une
vérification réussie: détenir un TokenClaims, c'est détenir un token
authentique, non expiré, émis par cet issuer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Tuple


class TokenType(Enum):
    """
    Types de tokens émis.

    MFA_PENDING: token de transition vers la vérification 2FA, accepté
    ni par les filtres ni par le refresh.
    """

    ACCESS = "ACCESS"
    REFRESH = "REFRESH"
    MFA_PENDING = "MFA_PENDING"


@dataclass(frozen=True)
class TokenClaims:
    """
    Claims vérifiés d'un token.

    Attributes:
        subject_id: Identifiant du compte (claim sub)
        token_type: Type du token (claim type)
        token_id: Identifiant unique du token (claim jti)
        roles: Rôles au moment de l'émission (tokens ACCESS uniquement)
        permissions: Noms canoniques de permissions (tokens ACCESS uniquement)
    """

    subject_id: str
    token_type: TokenType
    token_id: str
    issuer: str
    issued_at: datetime
    expires_at: datetime
    email: Optional[str] = None
    roles: Tuple[str, ...] = ()
    permissions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class IssuedToken:
    """Token signé et métadonnées utiles à la persistance / révocation."""

    token: str
    token_id: str
    expires_at: datetime


class ITokenCodec(ABC):
    """Interface émission / vérification des tokens de session."""

    @abstractmethod
    def issue_access(
        self,
        subject_id: str,
        email: str,
        roles: Iterable[str],
        permissions: Iterable[str],
    ) -> IssuedToken:
        pass

    @abstractmethod
    def issue_refresh(self, subject_id: str) -> IssuedToken:
        pass

    @abstractmethod
    def issue_mfa_challenge(self, subject_id: str) -> IssuedToken:
        pass

    @abstractmethod
    def verify(self, token: str) -> TokenClaims:
        """
        Vérifie signature, structure, issuer et expiration.

        Raises:
            TokenExpiredError: Si now >= exp
            InvalidTokenError: Toute autre invalidité
        """
        pass
