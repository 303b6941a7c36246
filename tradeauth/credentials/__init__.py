"""
Credentials

Identifiants de compte et secrets:
- Empreintes Argon2id (argon2-cffi), jamais de mot de passe en clair
- Compteur d'échecs et verrouillage temporaire
- Port vers le service de profils utilisateur
"""

from .interfaces import (
    AccountCredential,
    IAccountRepository,
    IPasswordHasher,
    IUserProfileClient,
)
from .password_hasher import Argon2PasswordHasher
from .account_repository import InMemoryAccountRepository, normalize_email

__all__ = [
    # Dataclasses
    "AccountCredential",
    # Interfaces
    "IAccountRepository",
    "IPasswordHasher",
    "IUserProfileClient",
    # Implementations
    "Argon2PasswordHasher",
    "InMemoryAccountRepository",
    "normalize_email",
]
