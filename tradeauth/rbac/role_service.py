"""
RBAC: Role Service

Administration des rôles et des assignations, et amorçage des rôles par
défaut au démarrage.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..core.exceptions import (
    DefaultRoleMissingError,
    RoleAlreadyExistsError,
    RoleNotFoundError,
)
from ..logging.structured_logger import StructuredLogger
from .interfaces import (
    Capability,
    IRoleAssignmentRepository,
    IRoleRepository,
    Role,
    RoleAssignment,
    RolePermissions,
)


@dataclass(frozen=True)
class RoleSeed:
    name: str
    description: str
    permissions: RolePermissions


DEFAULT_ROLES: List[RoleSeed] = [
    RoleSeed("ROLE_ADMIN", "System Administrator", RolePermissions.all()),
    RoleSeed(
        "ROLE_TRADER",
        "Active Trader",
        RolePermissions.from_capabilities(c for c in Capability if c is not Capability.MANAGE_USERS),
    ),
    RoleSeed("ROLE_USER", "Basic User", RolePermissions.none()),
]


class RoleService:
    """
    Gestion des rôles.

    Example:
        service = RoleService(roles, assignments, logger)
        service.seed_default_roles()
        service.assign_role("a-1", "ROLE_TRADER", granted_by="admin-1")
    """

    def __init__(
        self,
        roles: IRoleRepository,
        assignments: IRoleAssignmentRepository,
        logger: Optional[StructuredLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._roles = roles
        self._assignments = assignments
        self._logger = logger
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ──────────────────────────────────────────────────────────────────────
    # Rôles
    # ──────────────────────────────────────────────────────────────────────

    def create_role(
        self,
        name: str,
        description: str = "",
        permissions: Optional[RolePermissions] = None,
    ) -> Role:
        """
        Raises:
            RoleAlreadyExistsError: Si un rôle porte déjà ce nom
            ValueError: Si nom vide
        """
        if not name or not name.strip():
            raise ValueError("Role name cannot be empty")
        name = name.strip()
        if self._roles.get_by_name(name) is not None:
            raise RoleAlreadyExistsError(name)

        now = self._clock()
        role = Role(
            role_id=str(uuid.uuid4()),
            name=name,
            description=description,
            permissions=permissions or RolePermissions.none(),
            created_at=now,
            updated_at=now,
        )
        self._roles.save(role)
        self._log("Role created", role=name)
        return role

    def get_role_by_name(self, name: str) -> Role:
        """
        Raises:
            RoleNotFoundError: Si rôle inexistant
        """
        role = self._roles.get_by_name(name)
        if role is None:
            raise RoleNotFoundError(name)
        return role

    def list_active_roles(self) -> List[Role]:
        return [r for r in self._roles.list_all() if r.is_active]

    def update_role_permissions(self, name: str, permissions: RolePermissions) -> Role:
        role = self.get_role_by_name(name)
        updated = replace(role, permissions=permissions, updated_at=self._clock())
        self._roles.save(updated)
        self._log("Role permissions updated", role=name, permissions=sorted(permissions.permission_names()))
        return updated

    def deactivate_role(self, name: str) -> Role:
        """Un rôle inactif ne confère plus rien, les assignations restent."""
        role = self.get_role_by_name(name)
        updated = replace(role, is_active=False, updated_at=self._clock())
        self._roles.save(updated)
        self._log("Role deactivated", role=name)
        return updated

    # ──────────────────────────────────────────────────────────────────────
    # Assignations
    # ──────────────────────────────────────────────────────────────────────

    def assign_role(
        self,
        account_id: str,
        role_name: str,
        granted_by: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> RoleAssignment:
        """
        Assigne un rôle (remplace l'assignation précédente du même rôle).

        Raises:
            RoleNotFoundError: Si rôle inexistant
        """
        self.get_role_by_name(role_name)
        assignment = RoleAssignment(
            account_id=account_id,
            role_name=role_name,
            granted_at=self._clock(),
            granted_by=granted_by,
            expires_at=expires_at,
        )
        self._assignments.save(assignment)
        self._log("Role assigned", account_id=account_id, role=role_name, granted_by=granted_by or "system")
        return assignment

    def remove_role(self, account_id: str, role_name: str) -> bool:
        removed = self._assignments.delete(account_id, role_name)
        if removed:
            self._log("Role removed", account_id=account_id, role=role_name)
        return removed

    # ──────────────────────────────────────────────────────────────────────
    # Amorçage
    # ──────────────────────────────────────────────────────────────────────

    def seed_default_roles(self) -> int:
        """
        Crée les rôles par défaut si le dépôt est vide.

        Returns:
            Nombre de rôles créés (0 si déjà amorcé)
        """
        if self._roles.count() > 0:
            return 0
        for seed in DEFAULT_ROLES:
            self.create_role(seed.name, seed.description, seed.permissions)
        return len(DEFAULT_ROLES)

    def ensure_default_role(self, name: str) -> Role:
        """
        Raises:
            DefaultRoleMissingError: Si le rôle par défaut est absent ou inactif
        """
        role = self._roles.get_by_name(name)
        if role is None or not role.is_active:
            raise DefaultRoleMissingError(name)
        return role

    def _log(self, message: str, **extra) -> None:
        if self._logger:
            self._logger.info(message, **extra)
