"""
Enforcement: Authorization Decider

Logique de décision unique, sans transport. Les filtres ne diffèrent que
par la manière d'attendre la blacklist (await ou appel bloquant).

Ordre:
    1. Chemin public -> accepté
    2. Header absent -> rejet
    3. Vérification locale du token (signature, expiration, type)
    4. Blacklist -> rejet si révoqué, rejet si store injoignable
"""

from typing import Iterable, List, Optional, Union

from ..core.exceptions import InvalidTokenError, StoreUnavailableError
from ..logging.structured_logger import StructuredLogger
from ..revocation.interfaces import IAsyncTokenBlacklist, ITokenBlacklist
from ..tokens.interfaces import TokenType
from ..tokens.token_codec import TokenCodec
from .interfaces import (
    MSG_AUTH_ERROR,
    MSG_INVALID_TOKEN,
    MSG_INVALID_TOKEN_TYPE,
    MSG_MISSING_TOKEN,
    MSG_TOKEN_REVOKED,
    AuthContext,
    Decision,
    PendingCheck,
)


BEARER_PREFIX = "Bearer "


class AuthorizationDecider:
    """
    Décision d'authentification partagée.

    Example:
        decider = AuthorizationDecider(codec, settings.service.public_paths, logger)
        decision = decider.decide(path, request.headers.get("Authorization"), blacklist)
    """

    def __init__(
        self,
        codec: TokenCodec,
        public_paths: Iterable[str],
        logger: StructuredLogger,
    ) -> None:
        self._codec = codec
        self._public_paths: List[str] = [p.rstrip("/") or "/" for p in public_paths]
        self._logger = logger

    @property
    def public_paths(self) -> List[str]:
        return list(self._public_paths)

    def is_public(self, path: str) -> bool:
        """Correspondance exacte ou préfixe sur frontière de segment."""
        for public in self._public_paths:
            if path == public or path.startswith(public + "/"):
                return True
        return False

    @staticmethod
    def extract_bearer(authorization: Optional[str]) -> Optional[str]:
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            return None
        token = authorization[len(BEARER_PREFIX):].strip()
        return token or None

    def prepare(self, path: str, authorization: Optional[str]) -> Union[Decision, PendingCheck]:
        """Étapes locales (sans I/O)."""
        if self.is_public(path):
            return Decision.allow_public()

        token = self.extract_bearer(authorization)
        if token is None:
            return Decision.reject(MSG_MISSING_TOKEN)

        try:
            claims = self._codec.verify(token)
        except InvalidTokenError as e:
            self._logger.debug("Token verification failed", path=path, reason=e.message)
            return Decision.reject(MSG_INVALID_TOKEN)

        if claims.token_type is not TokenType.ACCESS:
            return Decision.reject(MSG_INVALID_TOKEN_TYPE)

        return PendingCheck(claims=claims, path=path)

    def complete(self, pending: PendingCheck, blacklisted: bool) -> Decision:
        if blacklisted:
            self._logger.info("Revoked token presented", jti=pending.claims.token_id, path=pending.path)
            return Decision.reject(MSG_TOKEN_REVOKED)
        return Decision.allow(AuthContext.from_claims(pending.claims))

    def decide(
        self,
        path: str,
        authorization: Optional[str],
        blacklist: ITokenBlacklist,
    ) -> Decision:
        """Variante bloquante (service backend)."""
        outcome = self.prepare(path, authorization)
        if isinstance(outcome, Decision):
            return outcome
        try:
            blacklisted = blacklist.is_access_token_blacklisted(outcome.claims.token_id)
        except StoreUnavailableError as e:
            return self._store_failure(outcome, e)
        return self.complete(outcome, blacklisted)

    async def decide_async(
        self,
        path: str,
        authorization: Optional[str],
        blacklist: IAsyncTokenBlacklist,
    ) -> Decision:
        """Variante non bloquante (gateway). Seul point d'attente: la blacklist."""
        outcome = self.prepare(path, authorization)
        if isinstance(outcome, Decision):
            return outcome
        try:
            blacklisted = await blacklist.is_access_token_blacklisted(outcome.claims.token_id)
        except StoreUnavailableError as e:
            return self._store_failure(outcome, e)
        return self.complete(outcome, blacklisted)

    def _store_failure(self, pending: PendingCheck, error: StoreUnavailableError) -> Decision:
        # Fail-closed
        self._logger.critical(
            "Revocation store unavailable, request rejected",
            path=pending.path,
            jti=pending.claims.token_id,
            reason=error.message,
        )
        return Decision.reject(MSG_AUTH_ERROR)
