"""
Session: Lockout Policy

Verrouillage temporaire après échecs de mot de passe consécutifs.

L'état (compteur, locked_until) vit sur AccountCredential: la politique ne
fait que le lire et le modifier. Le compteur ne revient à zéro que sur un
succès; il reste acquis après expiration d'un verrou.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from ..core.interfaces import LockoutSettings
from ..credentials.interfaces import AccountCredential
from .interfaces import LockStatus


class LockoutPolicy:
    """
    Politique de verrouillage.

    Example:
        policy = LockoutPolicy(max_failed_attempts=5, lockout_duration=timedelta(minutes=15))
        status = policy.register_failure(account, now)
        if status.locked: ...
    """

    MAX_FAILED_ATTEMPTS: int = 5
    LOCKOUT_DURATION: timedelta = timedelta(minutes=15)

    def __init__(
        self,
        max_failed_attempts: Optional[int] = None,
        lockout_duration: Optional[timedelta] = None,
    ) -> None:
        self._max_failed_attempts = (
            max_failed_attempts if max_failed_attempts is not None else self.MAX_FAILED_ATTEMPTS
        )
        self._lockout_duration = lockout_duration if lockout_duration is not None else self.LOCKOUT_DURATION
        if self._max_failed_attempts < 1:
            raise ValueError("max_failed_attempts must be >= 1")

    @classmethod
    def from_settings(cls, settings: LockoutSettings) -> "LockoutPolicy":
        return cls(
            max_failed_attempts=settings.max_failed_attempts,
            lockout_duration=timedelta(minutes=settings.lockout_minutes),
        )

    @property
    def max_failed_attempts(self) -> int:
        return self._max_failed_attempts

    @property
    def lockout_duration(self) -> timedelta:
        return self._lockout_duration

    def is_locked(self, account: AccountCredential, now: Optional[datetime] = None) -> bool:
        return account.is_locked(now or datetime.now(timezone.utc))

    def register_failure(self, account: AccountCredential, now: Optional[datetime] = None) -> LockStatus:
        """
        Enregistre un échec de mot de passe.

        Verrouille dès que le compteur (après incrément) atteint le seuil.
        L'appelant persiste le compte.
        """
        now = now or datetime.now(timezone.utc)
        attempts = account.increment_failed_attempts()
        locked = attempts >= self._max_failed_attempts
        if locked:
            account.lock(self._lockout_duration, now)
        account.touch(now)

        return LockStatus(
            failed_attempts=attempts,
            locked=locked,
            locked_until=account.locked_until if locked else None,
            remaining_attempts=max(0, self._max_failed_attempts - attempts),
        )

    def register_success(self, account: AccountCredential, now: Optional[datetime] = None) -> None:
        account.reset_failed_attempts()
        account.touch(now)

    def remaining_attempts(self, account: AccountCredential, now: Optional[datetime] = None) -> int:
        if self.is_locked(account, now):
            return 0
        return max(0, self._max_failed_attempts - account.failed_attempts)

    def lock_remaining(self, account: AccountCredential, now: Optional[datetime] = None) -> timedelta:
        """Durée restante du verrou (zéro si non verrouillé)."""
        now = now or datetime.now(timezone.utc)
        if not account.is_locked(now):
            return timedelta(0)
        return account.locked_until - now

    def unlock(self, account: AccountCredential, now: Optional[datetime] = None) -> bool:
        """
        Déverrouillage manuel (action admin).

        Returns:
            True si le compte était verrouillé
        """
        was_locked = self.is_locked(account, now)
        account.reset_failed_attempts()
        account.touch(now)
        return was_locked
