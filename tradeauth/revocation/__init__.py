"""
Revocation

État de révocation partagé:
- Blacklist des access tokens dans Redis (bloquante et non bloquante)
- Registre durable des refresh tokens (mémoire ou PostgreSQL)

Fail-closed: store injoignable = StoreUnavailableError.
"""

from .interfaces import (
    BLACKLIST_KEY_PREFIX,
    BLACKLIST_VALUE,
    blacklist_key,
    RefreshTokenRecord,
    ITokenBlacklist,
    IAsyncTokenBlacklist,
    IRefreshTokenRepository,
)
from .blacklist import (
    RedisTokenBlacklist,
    AsyncRedisTokenBlacklist,
    InMemoryTokenBlacklist,
    AsyncInMemoryTokenBlacklist,
)
from .refresh_tokens import (
    hash_refresh_token,
    InMemoryRefreshTokenRepository,
    PostgresRefreshTokenRepository,
    SCHEMA_SQL,
)

__all__ = [
    # Constants
    "BLACKLIST_KEY_PREFIX",
    "BLACKLIST_VALUE",
    "SCHEMA_SQL",
    "blacklist_key",
    "hash_refresh_token",
    # Dataclasses
    "RefreshTokenRecord",
    # Interfaces
    "ITokenBlacklist",
    "IAsyncTokenBlacklist",
    "IRefreshTokenRepository",
    # Implementations
    "RedisTokenBlacklist",
    "AsyncRedisTokenBlacklist",
    "InMemoryTokenBlacklist",
    "AsyncInMemoryTokenBlacklist",
    "InMemoryRefreshTokenRepository",
    "PostgresRefreshTokenRepository",
]
