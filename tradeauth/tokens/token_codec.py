"""
Tokens: Token Codec

Émission et vérification des tokens HS256 (PyJWT). Aucune I/O: la
révocation est vérifiée ailleurs.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Optional

import jwt
from jwt.utils import base64url_decode, base64url_encode

from ..core.exceptions import InvalidTokenError, TokenExpiredError
from ..core.interfaces import JwtSettings
from .interfaces import ITokenCodec, IssuedToken, TokenClaims, TokenType


ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "type", "iss", "iat", "exp", "jti"]


class TokenCodec(ITokenCodec):
    """
    Codec des tokens de session.

    Example:
        codec = TokenCodec(settings.jwt)
        issued = codec.issue_access("a-1", "a@x.com", ["ROLE_USER"], [])
        claims = codec.verify_access(issued.token)
    """

    def __init__(
        self,
        settings: JwtSettings,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Args:
            settings: Clé HMAC (>= 32 octets), issuer et durées de vie
            clock: Horloge injectable (défaut: UTC courant)
        """
        self._secret = settings.secret_key
        self._issuer = settings.issuer
        self._access_ttl = timedelta(seconds=settings.access_token_ttl_seconds)
        self._refresh_ttl = timedelta(seconds=settings.refresh_token_ttl_seconds)
        self._mfa_ttl = timedelta(seconds=settings.mfa_token_ttl_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def issuer(self) -> str:
        return self._issuer

    @property
    def access_ttl_seconds(self) -> int:
        return int(self._access_ttl.total_seconds())

    @property
    def refresh_ttl_seconds(self) -> int:
        return int(self._refresh_ttl.total_seconds())

    # ──────────────────────────────────────────────────────────────────────
    # Émission
    # ──────────────────────────────────────────────────────────────────────

    def issue_access(
        self,
        subject_id: str,
        email: str,
        roles: Iterable[str],
        permissions: Iterable[str],
    ) -> IssuedToken:
        return self._issue(
            subject_id,
            TokenType.ACCESS,
            self._access_ttl,
            {
                "email": email,
                "roles": list(roles),
                "permissions": list(permissions),
            },
        )

    def issue_refresh(self, subject_id: str) -> IssuedToken:
        return self._issue(subject_id, TokenType.REFRESH, self._refresh_ttl)

    def issue_mfa_challenge(self, subject_id: str) -> IssuedToken:
        """Token court remis au client quand la 2FA doit être complétée."""
        return self._issue(subject_id, TokenType.MFA_PENDING, self._mfa_ttl)

    def _issue(
        self,
        subject_id: str,
        token_type: TokenType,
        ttl: timedelta,
        extra: Optional[Dict[str, Any]] = None,
    ) -> IssuedToken:
        if not subject_id:
            raise ValueError("subject_id cannot be empty")

        # Secondes entières: exp doit correspondre exactement au claim signé
        now = self._clock().replace(microsecond=0)
        expires_at = now + ttl
        token_id = str(uuid.uuid4())

        payload: Dict[str, Any] = {
            "sub": subject_id,
            "type": token_type.value,
            "iss": self._issuer,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": token_id,
        }
        if extra:
            payload.update(extra)

        token = jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        return IssuedToken(token=str(token), token_id=token_id, expires_at=expires_at)

    # ──────────────────────────────────────────────────────────────────────
    # Vérification
    # ──────────────────────────────────────────────────────────────────────

    def verify(self, token: str) -> TokenClaims:
        """
        Vérifie un token et retourne ses claims.

        Raises:
            TokenExpiredError: Token expiré (now >= exp)
            InvalidTokenError: Signature, structure, issuer, claims ou type invalides
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError("Token is empty")

        self._check_signature_encoding(token)

        # exp et iat sont évalués avec l'horloge du codec, pas l'heure système
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                issuer=self._issuer,
                options={"require": REQUIRED_CLAIMS, "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidIssuerError as e:
            raise InvalidTokenError("Invalid token issuer") from e
        except jwt.MissingRequiredClaimError as e:
            raise InvalidTokenError(f"Missing claim: {e.claim}") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if not all(isinstance(payload[c], (int, float)) for c in ("iat", "exp")):
            raise InvalidTokenError("Invalid token timestamps")
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        if self._clock() >= expires_at:
            raise TokenExpiredError()

        try:
            token_type = TokenType(payload["type"])
        except ValueError as e:
            raise InvalidTokenError("Unknown token type") from e

        if not isinstance(payload["sub"], str) or not payload["sub"]:
            raise InvalidTokenError("Invalid subject")

        return TokenClaims(
            subject_id=payload["sub"],
            token_type=token_type,
            token_id=str(payload["jti"]),
            issuer=payload["iss"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=expires_at,
            email=payload.get("email"),
            roles=tuple(payload.get("roles") or ()),
            permissions=tuple(payload.get("permissions") or ()),
        )

    def verify_access(self, token: str) -> TokenClaims:
        return self._verify_typed(token, TokenType.ACCESS)

    def verify_refresh(self, token: str) -> TokenClaims:
        return self._verify_typed(token, TokenType.REFRESH)

    def _verify_typed(self, token: str, expected: TokenType) -> TokenClaims:
        claims = self.verify(token)
        if claims.token_type is not expected:
            raise InvalidTokenError("Invalid token type")
        return claims

    @staticmethod
    def _check_signature_encoding(token: str) -> None:
        """
        Refuse une signature base64url non canonique.

        Les bits de remplissage du dernier caractère sont ignorés au décodage:
        deux écritures différentes donneraient la même signature.
        """
        parts = token.split(".")
        if len(parts) != 3:
            return
        segment = parts[2]
        try:
            canonical = base64url_encode(base64url_decode(segment)).decode("ascii")
        except ValueError as e:
            raise InvalidTokenError("Invalid token signature") from e
        if canonical != segment:
            raise InvalidTokenError("Invalid token signature")
