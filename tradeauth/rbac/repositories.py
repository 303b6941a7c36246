"""
RBAC: In-Memory Repositories

Stockage en mémoire des rôles et des assignations.
"""

import threading
from typing import Dict, List, Optional, Tuple

from .interfaces import (
    IRoleAssignmentRepository,
    IRoleRepository,
    Role,
    RoleAssignment,
)


class InMemoryRoleRepository(IRoleRepository):
    def __init__(self) -> None:
        self._roles: Dict[str, Role] = {}
        self._lock = threading.Lock()

    def get_by_name(self, name: str) -> Optional[Role]:
        return self._roles.get(name)

    def save(self, role: Role) -> Role:
        with self._lock:
            self._roles[role.name] = role
        return role

    def list_all(self) -> List[Role]:
        return sorted(self._roles.values(), key=lambda r: r.name)

    def count(self) -> int:
        return len(self._roles)


class InMemoryRoleAssignmentRepository(IRoleAssignmentRepository):
    def __init__(self) -> None:
        self._assignments: Dict[Tuple[str, str], RoleAssignment] = {}
        self._lock = threading.Lock()

    def list_for_account(self, account_id: str) -> List[RoleAssignment]:
        return [a for (acc, _), a in self._assignments.items() if acc == account_id]

    def save(self, assignment: RoleAssignment) -> RoleAssignment:
        with self._lock:
            self._assignments[(assignment.account_id, assignment.role_name)] = assignment
        return assignment

    def delete(self, account_id: str, role_name: str) -> bool:
        with self._lock:
            return self._assignments.pop((account_id, role_name), None) is not None
