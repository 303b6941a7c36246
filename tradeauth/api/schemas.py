"""
API: Schemas

Corps de requête validés par pydantic. Noms JSON en camelCase.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RegisterRequest(_Request):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=200)
    device_info: Optional[str] = Field(default=None, alias="deviceInfo", max_length=255)


class LoginRequest(_Request):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=200)
    device_info: Optional[str] = Field(default=None, alias="deviceInfo", max_length=255)


class RefreshRequest(_Request):
    refresh_token: str = Field(min_length=1, alias="refreshToken")


class LogoutRequest(_Request):
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")


def envelope(data: Any = None, message: str = "", status: str = "success") -> dict:
    """Enveloppe de réponse {status, message, data, timestamp}."""
    return {
        "status": status,
        "message": message,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
