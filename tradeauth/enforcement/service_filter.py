"""
Enforcement: Service Filter

Filtre Flask des services backend (bloquant). Même décision que la
gateway, lecture bloquante de la blacklist. Le contexte accepté est
exposé sur flask.g.auth.
"""

from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from flask import Flask, g, jsonify, request

from ..core.exceptions import ForbiddenError, InvalidTokenError
from ..logging.structured_logger import StructuredLogger
from ..observability.correlation import CorrelationManager
from ..revocation.interfaces import ITokenBlacklist
from .decision import AuthorizationDecider
from .interfaces import (
    AUTHORIZATION_HEADER,
    MSG_MISSING_TOKEN,
    REQUEST_ID_HEADER,
    AuthContext,
)


F = TypeVar("F", bound=Callable[..., Any])


class ServiceAuthFilter:
    """
    Filtre d'authentification service.

    Example:
        auth_filter = ServiceAuthFilter(decider, RedisTokenBlacklist.from_settings(...), logger)
        auth_filter.init_app(app)
    """

    def __init__(
        self,
        decider: AuthorizationDecider,
        blacklist: ITokenBlacklist,
        logger: StructuredLogger,
        correlation: Optional[CorrelationManager] = None,
    ) -> None:
        self._decider = decider
        self._blacklist = blacklist
        self._logger = logger
        self._correlation = correlation or CorrelationManager()

    def init_app(self, app: Flask) -> None:
        app.before_request(self._authenticate)
        app.after_request(self._stamp_request_id)
        app.teardown_request(self._clear_correlation)

    def _authenticate(self):
        self._bind_correlation()
        g.auth = None

        decision = self._decider.decide(
            request.path,
            request.headers.get(AUTHORIZATION_HEADER),
            self._blacklist,
        )
        if not decision.allowed:
            self._logger.warn(
                "Service rejected request",
                method=request.method,
                path=request.path,
                status=decision.status,
                reason=decision.message,
            )
            response = jsonify(decision.error_body())
            response.status_code = decision.status
            response.headers["WWW-Authenticate"] = "Bearer"
            return response

        g.auth = decision.context
        return None

    def _bind_correlation(self) -> None:
        # ID posé par la gateway si valide, sinon généré ici
        incoming = request.headers.get(REQUEST_ID_HEADER)
        if incoming and self._correlation.is_valid_uuid(incoming):
            self._correlation.set_current(incoming)
        else:
            self._correlation.start_request()

    def _stamp_request_id(self, response):
        current = self._correlation.get_current()
        if current:
            response.headers[REQUEST_ID_HEADER] = current
        return response

    def _clear_correlation(self, exc: Optional[BaseException] = None) -> None:
        self._correlation.clear()


def current_auth() -> AuthContext:
    """
    Contexte de la requête courante.

    Raises:
        InvalidTokenError: Si la requête n'est pas authentifiée
    """
    context = getattr(g, "auth", None)
    if context is None:
        raise InvalidTokenError(MSG_MISSING_TOKEN)
    return context


def require_permission(name: str) -> Callable[[F], F]:
    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not current_auth().has_permission(name):
                raise ForbiddenError()
            return fn(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def require_role(name: str) -> Callable[[F], F]:
    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not current_auth().has_role(name):
                raise ForbiddenError()
            return fn(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
