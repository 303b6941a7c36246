"""
Revocation: Refresh Token Repository

Registre durable des refresh tokens, indexé par empreinte. Le token brut
n'est jamais stocké.
"""

import base64
import hashlib
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import psycopg2
import psycopg2.errors
import psycopg2.extras

from ..core.exceptions import StoreUnavailableError
from .interfaces import IRefreshTokenRepository, RefreshTokenRecord


def hash_refresh_token(raw_token: str) -> str:
    """base64(SHA-256(token)), format de la colonne token_hash."""
    digest = hashlib.sha256(raw_token.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRefreshTokenRepository(IRefreshTokenRepository):
    """Registre en mémoire (tests et développement mono-processus)."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or _utcnow
        self._records: Dict[str, RefreshTokenRecord] = {}
        self._lock = threading.Lock()

    def record(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        with self._lock:
            if record.token_hash in self._records:
                raise ValueError("Refresh token hash already recorded")
            self._records[record.token_hash] = record
        return record

    def find_by_hash(self, token_hash: str) -> Optional[RefreshTokenRecord]:
        return self._records.get(token_hash)

    def revoke(self, token_hash: str) -> bool:
        with self._lock:
            record = self._records.get(token_hash)
            if record is None:
                return False
            return record.revoke(self._clock())

    def revoke_all_for_account(self, account_id: str) -> int:
        now = self._clock()
        count = 0
        with self._lock:
            for record in self._records.values():
                if record.account_id == account_id and record.revoke(now):
                    count += 1
        return count

    def list_for_account(self, account_id: str, include_revoked: bool = False) -> List[RefreshTokenRecord]:
        records = [r for r in self._records.values() if r.account_id == account_id]
        if not include_revoked:
            records = [r for r in records if not r.revoked]
        return sorted(records, key=lambda r: r.created_at)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        with self._lock:
            expired = [h for h, r in self._records.items() if r.is_expired(now)]
            for token_hash in expired:
                del self._records[token_hash]
        return len(expired)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS refresh_tokens (
    id          VARCHAR(64) PRIMARY KEY,
    user_id     VARCHAR(64) NOT NULL,
    token_hash  VARCHAR(64) NOT NULL UNIQUE,
    device_info VARCHAR(255),
    ip_address  VARCHAR(64),
    expires_at  TIMESTAMPTZ NOT NULL,
    revoked     BOOLEAN NOT NULL DEFAULT FALSE,
    revoked_at  TIMESTAMPTZ,
    created_at  TIMESTAMPTZ NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_refresh_tokens_user_id ON refresh_tokens (user_id);
"""

_COLUMNS = "id, user_id, token_hash, device_info, ip_address, expires_at, revoked, revoked_at, created_at"


class PostgresRefreshTokenRepository(IRefreshTokenRepository):
    """
    Registre PostgreSQL (psycopg2).

    Une transaction par opération. Les erreurs de connexion deviennent
    StoreUnavailableError.

    Example:
        repo = PostgresRefreshTokenRepository(lambda: psycopg2.connect(dsn))
        repo.ensure_schema()
    """

    def __init__(
        self,
        connect: Callable[[], Any],
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Args:
            connect: Fabrique de connexions psycopg2
            clock: Horloge injectable
        """
        self._connect = connect
        self._clock = clock or _utcnow

    @classmethod
    def from_dsn(cls, dsn: str) -> "PostgresRefreshTokenRepository":
        return cls(lambda: psycopg2.connect(dsn))

    def ensure_schema(self) -> None:
        self._execute(SCHEMA_SQL)

    def record(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        try:
            self._execute(
                f"INSERT INTO refresh_tokens ({_COLUMNS}) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
                (
                    record.record_id,
                    record.account_id,
                    record.token_hash,
                    record.device_info,
                    record.ip_address,
                    record.expires_at,
                    record.revoked,
                    record.revoked_at,
                    record.created_at,
                ),
            )
        except psycopg2.errors.UniqueViolation as e:
            raise ValueError("Refresh token hash already recorded") from e
        return record

    def find_by_hash(self, token_hash: str) -> Optional[RefreshTokenRecord]:
        rows = self._query(
            f"SELECT {_COLUMNS} FROM refresh_tokens WHERE token_hash = %s",
            (token_hash,),
        )
        return self._to_record(rows[0]) if rows else None

    def revoke(self, token_hash: str) -> bool:
        count = self._execute(
            "UPDATE refresh_tokens SET revoked = TRUE, revoked_at = %s "
            "WHERE token_hash = %s AND revoked = FALSE",
            (self._clock(), token_hash),
        )
        return count > 0

    def revoke_all_for_account(self, account_id: str) -> int:
        return self._execute(
            "UPDATE refresh_tokens SET revoked = TRUE, revoked_at = %s "
            "WHERE user_id = %s AND revoked = FALSE",
            (self._clock(), account_id),
        )

    def list_for_account(self, account_id: str, include_revoked: bool = False) -> List[RefreshTokenRecord]:
        sql = f"SELECT {_COLUMNS} FROM refresh_tokens WHERE user_id = %s"
        if not include_revoked:
            sql += " AND revoked = FALSE"
        sql += " ORDER BY created_at"
        return [self._to_record(row) for row in self._query(sql, (account_id,))]

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        return self._execute(
            "DELETE FROM refresh_tokens WHERE expires_at <= %s",
            (now or self._clock(),),
        )

    # ──────────────────────────────────────────────────────────────────────
    # Accès base
    # ──────────────────────────────────────────────────────────────────────

    def _execute(self, sql: str, params: tuple = ()) -> int:
        conn = self._open()
        try:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    return cur.rowcount
        except psycopg2.OperationalError as e:
            raise StoreUnavailableError("Refresh token store unavailable") from e
        finally:
            conn.close()

    def _query(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        conn = self._open()
        try:
            with conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    cur.execute(sql, params)
                    return list(cur.fetchall())
        except psycopg2.OperationalError as e:
            raise StoreUnavailableError("Refresh token store unavailable") from e
        finally:
            conn.close()

    def _open(self) -> Any:
        try:
            return self._connect()
        except psycopg2.OperationalError as e:
            raise StoreUnavailableError("Refresh token store unavailable") from e

    @staticmethod
    def _to_record(row: Dict[str, Any]) -> RefreshTokenRecord:
        return RefreshTokenRecord(
            record_id=row["id"],
            account_id=row["user_id"],
            token_hash=row["token_hash"],
            device_info=row.get("device_info"),
            ip_address=row.get("ip_address"),
            expires_at=row["expires_at"],
            revoked=bool(row["revoked"]),
            revoked_at=row.get("revoked_at"),
            created_at=row["created_at"],
        )
