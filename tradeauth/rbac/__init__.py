"""
RBAC

Contrôle d'accès par rôles:
- Capacités à forme fixe (TRADE, WITHDRAW, MANAGE_USERS, VIEW_REPORTS,
  MODIFY_ORDERS, ACCESS_API)
- Assignations compte -> rôle avec expiration optionnelle
- Résolution des rôles et permissions effectifs
"""

from .interfaces import (
    Capability,
    RolePermissions,
    Role,
    RoleAssignment,
    ResolvedAuthorization,
    IRoleRepository,
    IRoleAssignmentRepository,
    normalize_permission,
)
from .repositories import InMemoryRoleRepository, InMemoryRoleAssignmentRepository
from .resolver import RbacResolver
from .role_service import RoleService, RoleSeed, DEFAULT_ROLES

__all__ = [
    # Enums
    "Capability",
    # Dataclasses
    "RolePermissions",
    "Role",
    "RoleAssignment",
    "ResolvedAuthorization",
    "RoleSeed",
    # Interfaces
    "IRoleRepository",
    "IRoleAssignmentRepository",
    # Implementations
    "InMemoryRoleRepository",
    "InMemoryRoleAssignmentRepository",
    "RbacResolver",
    "RoleService",
    # Constants / helpers
    "DEFAULT_ROLES",
    "normalize_permission",
]
