"""
RBAC: Resolver

Calcule rôles et permissions effectifs d'un compte. Lecture seule.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, Set

from .interfaces import (
    Capability,
    IRoleAssignmentRepository,
    IRoleRepository,
    ResolvedAuthorization,
)


class RbacResolver:
    """
    Résolution RBAC.

    Une assignation compte si elle est valide (active, non expirée) et si
    son rôle existe et est actif. Les permissions sont l'union des
    capacités des rôles retenus.

    Example:
        resolver = RbacResolver(roles, assignments)
        resolved = resolver.resolve("a-1")
        # ResolvedAuthorization(roles=("ROLE_TRADER",), permissions=("ACCESS_API", ...))
    """

    def __init__(
        self,
        roles: IRoleRepository,
        assignments: IRoleAssignmentRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._roles = roles
        self._assignments = assignments
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def resolve(self, account_id: str) -> ResolvedAuthorization:
        now = self._clock()
        role_names: Set[str] = set()
        permissions: Set[str] = set()

        for assignment in self._assignments.list_for_account(account_id):
            if not assignment.is_valid(now):
                continue
            role = self._roles.get_by_name(assignment.role_name)
            if role is None or not role.is_active:
                continue
            role_names.add(role.name)
            permissions.update(role.permissions.permission_names())

        return ResolvedAuthorization(
            roles=tuple(sorted(role_names)),
            permissions=tuple(sorted(permissions)),
        )

    def has_permission(self, account_id: str, permission: str) -> bool:
        """Nom insensible à la casse; nom inconnu = False."""
        capability = Capability.parse(permission)
        if capability is None:
            return False
        return capability.value in self.resolve(account_id).permissions

    def has_role(self, account_id: str, role_name: str) -> bool:
        return role_name in self.resolve(account_id).roles
