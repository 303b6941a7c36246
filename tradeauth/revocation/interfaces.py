"""
Revocation: Interfaces

Deux préoccupations distinctes:
- Blacklist des access tokens (Redis partagé, entrées auto-expirantes),
  en version bloquante (service backend) et non bloquante (gateway)
- Registre durable des refresh tokens (empreinte SHA-256, jamais le token brut)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


BLACKLIST_KEY_PREFIX = "token:blacklist:"
BLACKLIST_VALUE = "blacklisted"


def blacklist_key(token_id: str) -> str:
    return f"{BLACKLIST_KEY_PREFIX}{token_id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RefreshTokenRecord:
    """
    Refresh token persisté.

    Attributes:
        token_hash: base64(SHA-256(token brut)), unique
        revoked: Terminal: un record révoqué ne redevient jamais valide
    """

    record_id: str
    account_id: str
    token_hash: str
    expires_at: datetime
    device_info: Optional[str] = None
    ip_address: Optional[str] = None
    revoked: bool = False
    revoked_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_utcnow)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) >= self.expires_at

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        return not self.revoked and not self.is_expired(now)

    def revoke(self, now: Optional[datetime] = None) -> bool:
        """Retourne False si déjà révoqué."""
        if self.revoked:
            return False
        self.revoked = True
        self.revoked_at = now or _utcnow()
        return True


class ITokenBlacklist(ABC):
    """
    Blacklist des access tokens (appels bloquants).

    Toute indisponibilité du store lève StoreUnavailableError.
    """

    @abstractmethod
    def blacklist_access_token(self, token_id: str, expires_at: datetime) -> bool:
        """
        Révoque un access token jusqu'à son expiration naturelle.

        Returns:
            False (sans écriture) si le token est déjà expiré
        """
        pass

    @abstractmethod
    def is_access_token_blacklisted(self, token_id: str) -> bool:
        pass

    @abstractmethod
    def remove_from_blacklist(self, token_id: str) -> bool:
        pass

    @abstractmethod
    def get_blacklist_ttl(self, token_id: str) -> int:
        """TTL restant en secondes, -1 si absent."""
        pass


class IAsyncTokenBlacklist(ABC):
    """Blacklist des access tokens (appels non bloquants, gateway)."""

    @abstractmethod
    async def is_access_token_blacklisted(self, token_id: str) -> bool:
        pass

    @abstractmethod
    async def blacklist_access_token(self, token_id: str, expires_at: datetime) -> bool:
        pass


class IRefreshTokenRepository(ABC):
    """Registre durable des refresh tokens."""

    @abstractmethod
    def record(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        """
        Raises:
            ValueError: Si token_hash déjà enregistré
        """
        pass

    @abstractmethod
    def find_by_hash(self, token_hash: str) -> Optional[RefreshTokenRecord]:
        pass

    @abstractmethod
    def revoke(self, token_hash: str) -> bool:
        pass

    @abstractmethod
    def revoke_all_for_account(self, account_id: str) -> int:
        """Révoque tous les records actifs du compte, retourne le nombre révoqué."""
        pass

    @abstractmethod
    def list_for_account(self, account_id: str, include_revoked: bool = False) -> List[RefreshTokenRecord]:
        pass

    @abstractmethod
    def purge_expired(self, now: Optional[datetime] = None) -> int:
        pass
