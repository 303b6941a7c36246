"""
RBAC: Interfaces

Rôles à capacités fixes, assignations compte -> rôle, et résolution de
l'ensemble des rôles et permissions effectifs d'un compte.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_permission(name: str) -> str:
    """Forme de comparaison: minuscules, sans underscores."""
    return (name or "").replace("_", "").strip().lower()


class Capability(Enum):
    """Capacités connues, valeur = nom canonique porté dans les tokens."""

    TRADE = "TRADE"
    WITHDRAW = "WITHDRAW"
    MANAGE_USERS = "MANAGE_USERS"
    VIEW_REPORTS = "VIEW_REPORTS"
    MODIFY_ORDERS = "MODIFY_ORDERS"
    ACCESS_API = "ACCESS_API"

    @classmethod
    def parse(cls, name: str) -> Optional["Capability"]:
        """Retourne la capacité correspondante ou None (jamais d'erreur)."""
        wanted = normalize_permission(name)
        for capability in cls:
            if normalize_permission(capability.value) == wanted:
                return capability
        return None


# Champ booléen -> capacité
_FLAG_TO_CAPABILITY = {
    "can_trade": Capability.TRADE,
    "can_withdraw": Capability.WITHDRAW,
    "can_manage_users": Capability.MANAGE_USERS,
    "can_view_reports": Capability.VIEW_REPORTS,
    "can_modify_orders": Capability.MODIFY_ORDERS,
    "can_access_api": Capability.ACCESS_API,
}


@dataclass(frozen=True)
class RolePermissions:
    """
    Enregistrement de capacités à forme fixe.

    Chaque capacité est un booléen explicite; pas de blob JSON libre.
    """

    can_trade: bool = False
    can_withdraw: bool = False
    can_manage_users: bool = False
    can_view_reports: bool = False
    can_modify_orders: bool = False
    can_access_api: bool = False

    def capabilities(self) -> FrozenSet[Capability]:
        return frozenset(
            capability
            for flag, capability in _FLAG_TO_CAPABILITY.items()
            if getattr(self, flag)
        )

    def permission_names(self) -> FrozenSet[str]:
        return frozenset(c.value for c in self.capabilities())

    def has_permission(self, name: str) -> bool:
        """
        Vérifie une capacité par nom.

        Insensible à la casse, underscores optionnels: "manageusers",
        "manage_users" et "MANAGE_USERS" sont équivalents. Nom inconnu = False.
        """
        capability = Capability.parse(name)
        return capability is not None and capability in self.capabilities()

    @classmethod
    def from_capabilities(cls, capabilities: Iterable[Capability]) -> "RolePermissions":
        wanted = set(capabilities)
        return cls(**{flag: cap in wanted for flag, cap in _FLAG_TO_CAPABILITY.items()})

    @classmethod
    def all(cls) -> "RolePermissions":
        return cls(**{f.name: True for f in fields(cls)})

    @classmethod
    def none(cls) -> "RolePermissions":
        return cls()


@dataclass
class Role:
    """Rôle nommé (nom globalement unique)."""

    role_id: str
    name: str
    description: str = ""
    permissions: RolePermissions = field(default_factory=RolePermissions)
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class RoleAssignment:
    """
    Arête compte -> rôle.

    Attributes:
        granted_by: Administrateur ayant accordé le rôle (None = système)
        expires_at: Expiration optionnelle, évaluée à la lecture
    """

    account_id: str
    role_name: str
    granted_at: datetime = field(default_factory=_utcnow)
    granted_by: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_active: bool = True

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        if not self.is_active:
            return False
        if self.expires_at is None:
            return True
        return self.expires_at > (now or _utcnow())


@dataclass(frozen=True)
class ResolvedAuthorization:
    """Rôles et permissions effectifs, triés."""

    roles: Tuple[str, ...] = ()
    permissions: Tuple[str, ...] = ()


class IRoleRepository(ABC):
    """Interface persistance des rôles."""

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Role]:
        pass

    @abstractmethod
    def save(self, role: Role) -> Role:
        pass

    @abstractmethod
    def list_all(self) -> List[Role]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass


class IRoleAssignmentRepository(ABC):
    """Interface persistance des assignations compte -> rôle."""

    @abstractmethod
    def list_for_account(self, account_id: str) -> List[RoleAssignment]:
        pass

    @abstractmethod
    def save(self, assignment: RoleAssignment) -> RoleAssignment:
        """Remplace l'assignation existante pour (account_id, role_name)."""
        pass

    @abstractmethod
    def delete(self, account_id: str, role_name: str) -> bool:
        pass
