"""
Revocation: Access Token Blacklist

Clé Redis token:blacklist:{jti}, valeur "blacklisted", TTL = durée de vie
restante du token en millisecondes. Les entrées disparaissent seules.

Fail-closed: toute erreur Redis (ou timeout) devient StoreUnavailableError;
les filtres la transforment en rejet.
"""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

import redis
import redis.asyncio as aioredis
from redis.exceptions import RedisError

from ..core.exceptions import StoreUnavailableError
from ..core.interfaces import RedisSettings
from ..logging.structured_logger import StructuredLogger
from .interfaces import (
    BLACKLIST_VALUE,
    IAsyncTokenBlacklist,
    ITokenBlacklist,
    blacklist_key,
)


Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _remaining_ms(expires_at: datetime, now: datetime) -> int:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return int((expires_at - now).total_seconds() * 1000)


class RedisTokenBlacklist(ITokenBlacklist):
    """
    Blacklist Redis bloquante (service backend).

    Example:
        blacklist = RedisTokenBlacklist.from_settings(settings.redis)
        blacklist.blacklist_access_token(claims.token_id, claims.expires_at)
    """

    def __init__(
        self,
        client: "redis.Redis",
        logger: Optional[StructuredLogger] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._client = client
        self._logger = logger
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, settings: RedisSettings, logger: Optional[StructuredLogger] = None) -> "RedisTokenBlacklist":
        client = redis.Redis.from_url(
            settings.url,
            decode_responses=True,
            socket_timeout=settings.operation_timeout_seconds,
            socket_connect_timeout=settings.operation_timeout_seconds,
        )
        return cls(client, logger=logger)

    def blacklist_access_token(self, token_id: str, expires_at: datetime) -> bool:
        ttl_ms = _remaining_ms(expires_at, self._clock())
        if ttl_ms <= 0:
            # Déjà expiré: rien à révoquer
            return False
        try:
            self._client.set(blacklist_key(token_id), BLACKLIST_VALUE, px=ttl_ms)
        except RedisError as e:
            raise StoreUnavailableError() from e
        if self._logger:
            self._logger.info("Access token blacklisted", jti=token_id, ttl_ms=ttl_ms)
        return True

    def is_access_token_blacklisted(self, token_id: str) -> bool:
        try:
            return bool(self._client.exists(blacklist_key(token_id)))
        except RedisError as e:
            raise StoreUnavailableError() from e

    def remove_from_blacklist(self, token_id: str) -> bool:
        try:
            removed = self._client.delete(blacklist_key(token_id))
        except RedisError as e:
            raise StoreUnavailableError() from e
        return bool(removed)

    def get_blacklist_ttl(self, token_id: str) -> int:
        try:
            ttl = self._client.ttl(blacklist_key(token_id))
        except RedisError as e:
            raise StoreUnavailableError() from e
        # -2 = clé absente, -1 = sans expiration
        if ttl is None or ttl < 0:
            return -1
        return int(ttl)


class AsyncRedisTokenBlacklist(IAsyncTokenBlacklist):
    """
    Blacklist Redis non bloquante (gateway).

    Chaque appel est borné par operation_timeout_seconds.
    """

    def __init__(
        self,
        client: "aioredis.Redis",
        operation_timeout_seconds: float = 0.5,
        clock: Optional[Clock] = None,
    ) -> None:
        self._client = client
        self._timeout = operation_timeout_seconds
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, settings: RedisSettings) -> "AsyncRedisTokenBlacklist":
        client = aioredis.from_url(
            settings.url,
            decode_responses=True,
            socket_timeout=settings.operation_timeout_seconds,
            socket_connect_timeout=settings.operation_timeout_seconds,
        )
        return cls(client, operation_timeout_seconds=settings.operation_timeout_seconds)

    async def is_access_token_blacklisted(self, token_id: str) -> bool:
        try:
            found = await asyncio.wait_for(
                self._client.exists(blacklist_key(token_id)),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise StoreUnavailableError("Revocation store timeout") from e
        except RedisError as e:
            raise StoreUnavailableError() from e
        return bool(found)

    async def blacklist_access_token(self, token_id: str, expires_at: datetime) -> bool:
        ttl_ms = _remaining_ms(expires_at, self._clock())
        if ttl_ms <= 0:
            return False
        try:
            await asyncio.wait_for(
                self._client.set(blacklist_key(token_id), BLACKLIST_VALUE, px=ttl_ms),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise StoreUnavailableError("Revocation store timeout") from e
        except RedisError as e:
            raise StoreUnavailableError() from e
        return True


class InMemoryTokenBlacklist(ITokenBlacklist):
    """
    Blacklist en mémoire (tests et développement mono-processus).

    Même sémantique d'expiration que Redis, évaluée à la lecture.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or _utcnow
        self._entries: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def size(self) -> int:
        """Nombre d'entrées stockées, expirées non encore purgées comprises."""
        return len(self._entries)

    def blacklist_access_token(self, token_id: str, expires_at: datetime) -> bool:
        now = self._clock()
        if _remaining_ms(expires_at, now) <= 0:
            return False
        with self._lock:
            self._sweep(now)
            self._entries[token_id] = expires_at
        return True

    def is_access_token_blacklisted(self, token_id: str) -> bool:
        return self._live_expiry(token_id) is not None

    def remove_from_blacklist(self, token_id: str) -> bool:
        with self._lock:
            return self._entries.pop(token_id, None) is not None

    def get_blacklist_ttl(self, token_id: str) -> int:
        expires_at = self._live_expiry(token_id)
        if expires_at is None:
            return -1
        return _remaining_ms(expires_at, self._clock()) // 1000

    def _sweep(self, now: datetime) -> None:
        # Appelé sous self._lock
        expired = [jti for jti, exp in self._entries.items() if _remaining_ms(exp, now) <= 0]
        for jti in expired:
            del self._entries[jti]

    def _live_expiry(self, token_id: str) -> Optional[datetime]:
        with self._lock:
            expires_at = self._entries.get(token_id)
            if expires_at is None:
                return None
            if _remaining_ms(expires_at, self._clock()) <= 0:
                del self._entries[token_id]
                return None
            return expires_at


class AsyncInMemoryTokenBlacklist(IAsyncTokenBlacklist):
    """Vue non bloquante d'une InMemoryTokenBlacklist (état partagé)."""

    def __init__(self, shared: InMemoryTokenBlacklist) -> None:
        self._shared = shared

    async def is_access_token_blacklisted(self, token_id: str) -> bool:
        return self._shared.is_access_token_blacklisted(token_id)

    async def blacklist_access_token(self, token_id: str, expires_at: datetime) -> bool:
        return self._shared.blacklist_access_token(token_id, expires_at)
