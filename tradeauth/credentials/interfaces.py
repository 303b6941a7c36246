"""
Credentials: Interfaces

Identifiants de compte (email + empreinte Argon2id), état de verrouillage,
et ports vers le hachage et le service de profils.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AccountCredential:
    """
    Identifiants d'un compte.

    Attributes:
        account_id: Identifiant stable (partagé avec le service de profils)
        email: Email normalisé (minuscules), unique
        password_hash: Empreinte Argon2id, jamais le mot de passe
        failed_attempts: Échecs consécutifs depuis le dernier succès
        locked_until: Fin du verrouillage (None = jamais verrouillé)
    """

    account_id: str
    email: str
    password_hash: str
    is_email_verified: bool = False
    is_phone_verified: bool = False
    is_2fa_enabled: bool = False
    totp_secret: Optional[str] = None
    failed_attempts: int = 0
    locked_until: Optional[datetime] = None
    last_login: Optional[datetime] = None
    last_password_change: Optional[datetime] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    created_by: Optional[str] = None

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """True si locked_until est défini et strictement dans le futur."""
        now = now or _utcnow()
        return self.locked_until is not None and self.locked_until > now

    def increment_failed_attempts(self) -> int:
        self.failed_attempts += 1
        return self.failed_attempts

    def lock(self, duration: timedelta, now: Optional[datetime] = None) -> datetime:
        now = now or _utcnow()
        self.locked_until = now + duration
        return self.locked_until

    def reset_failed_attempts(self) -> None:
        # Compteur et verrou repartent ensemble
        self.failed_attempts = 0
        self.locked_until = None

    def touch(self, now: Optional[datetime] = None) -> None:
        self.updated_at = now or _utcnow()


class IPasswordHasher(ABC):
    """Interface hachage mot de passe (sel intégré, comparaison à temps constant)."""

    @abstractmethod
    def hash(self, plaintext: str) -> str:
        pass

    @abstractmethod
    def matches(self, plaintext: str, digest: str) -> bool:
        """
        Vérifie un mot de passe contre son empreinte.

        Returns:
            False si mismatch ou empreinte illisible (jamais d'exception)
        """
        pass

    @abstractmethod
    def needs_rehash(self, digest: str) -> bool:
        """True si l'empreinte a été produite avec d'anciens paramètres."""
        pass


class IAccountRepository(ABC):
    """Interface persistance des identifiants."""

    @abstractmethod
    def get(self, account_id: str) -> Optional[AccountCredential]:
        pass

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[AccountCredential]:
        """Recherche par email normalisé (strip + minuscules)."""
        pass

    @abstractmethod
    def exists_by_email(self, email: str) -> bool:
        pass

    @abstractmethod
    def save(self, account: AccountCredential) -> AccountCredential:
        """Crée ou met à jour le compte."""
        pass

    @abstractmethod
    def list_all(self) -> List[AccountCredential]:
        pass


class IUserProfileClient(ABC):
    """
    Port vers le service de profils utilisateur.

    Le CRUD des profils est hors périmètre: seul l'appel de création au
    moment de l'inscription est consommé.
    """

    @abstractmethod
    def create_profile(self, email: str) -> str:
        """
        Crée un profil et retourne son identifiant.

        Cet identifiant devient l'account_id des identifiants.
        """
        pass

    @abstractmethod
    def get_profile(self, profile_id: str) -> Optional[Dict[str, Any]]:
        pass
