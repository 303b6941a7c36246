"""
Credentials: Password Hasher

Argon2id via argon2-cffi. Les empreintes embarquent sel et paramètres.
"""

from typing import Optional

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from ..core.interfaces import PasswordSettings
from .interfaces import IPasswordHasher


class Argon2PasswordHasher(IPasswordHasher):
    """
    Hachage Argon2id.

    Example:
        hasher = Argon2PasswordHasher(settings.password)
        digest = hasher.hash("P@ssw0rd1")
        hasher.matches("P@ssw0rd1", digest)  # True
    """

    def __init__(self, settings: Optional[PasswordSettings] = None) -> None:
        settings = settings or PasswordSettings()
        self._hasher = PasswordHasher(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
            hash_len=32,
            salt_len=16,
            type=Type.ID,
        )

    def hash(self, plaintext: str) -> str:
        return self._hasher.hash(plaintext)

    def matches(self, plaintext: str, digest: str) -> bool:
        if not digest:
            return False
        try:
            return self._hasher.verify(digest, plaintext)
        except (VerifyMismatchError, VerificationError, InvalidHash):
            return False

    def needs_rehash(self, digest: str) -> bool:
        try:
            return self._hasher.check_needs_rehash(digest)
        except InvalidHash:
            return True
