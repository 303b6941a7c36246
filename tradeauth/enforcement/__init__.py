"""
Enforcement

Filtres d'authentification:
- AuthorizationDecider: décision unique, sans transport
- GatewayAuthMiddleware: Starlette, non bloquant
- ServiceAuthFilter: Flask, bloquant

Fail-closed: store de révocation injoignable = rejet.
"""

from .interfaces import (
    AUTHORIZATION_HEADER,
    USER_ID_HEADER,
    USER_EMAIL_HEADER,
    USER_ROLES_HEADER,
    USER_PERMISSIONS_HEADER,
    REQUEST_ID_HEADER,
    IDENTITY_HEADERS,
    MSG_MISSING_TOKEN,
    MSG_INVALID_TOKEN,
    MSG_INVALID_TOKEN_TYPE,
    MSG_TOKEN_REVOKED,
    MSG_AUTH_ERROR,
    AuthContext,
    Decision,
    PendingCheck,
)
from .decision import AuthorizationDecider
from .gateway import GatewayAuthMiddleware, rejection_response
from .service_filter import (
    ServiceAuthFilter,
    current_auth,
    require_permission,
    require_role,
)

__all__ = [
    # Headers
    "AUTHORIZATION_HEADER",
    "USER_ID_HEADER",
    "USER_EMAIL_HEADER",
    "USER_ROLES_HEADER",
    "USER_PERMISSIONS_HEADER",
    "REQUEST_ID_HEADER",
    "IDENTITY_HEADERS",
    # Messages
    "MSG_MISSING_TOKEN",
    "MSG_INVALID_TOKEN",
    "MSG_INVALID_TOKEN_TYPE",
    "MSG_TOKEN_REVOKED",
    "MSG_AUTH_ERROR",
    # Dataclasses
    "AuthContext",
    "Decision",
    "PendingCheck",
    # Implementations
    "AuthorizationDecider",
    "GatewayAuthMiddleware",
    "ServiceAuthFilter",
    # Helpers
    "rejection_response",
    "current_auth",
    "require_permission",
    "require_role",
]
