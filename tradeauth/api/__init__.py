"""
API

Surface HTTP du service d'authentification (Flask):
- POST /auth/register, /auth/login, /auth/refresh
- POST /auth/logout, /auth/logout-all, GET /auth/me (protégées)
- GET /actuator/health, /actuator/info
"""

from .routes import bp_auth, bp_health, EXTENSION_KEY
from .errors import register_error_handlers
from .schemas import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    LogoutRequest,
    envelope,
)

__all__ = [
    # Blueprints
    "bp_auth",
    "bp_health",
    "EXTENSION_KEY",
    # Error handling
    "register_error_handlers",
    # Schemas
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "LogoutRequest",
    "envelope",
]
