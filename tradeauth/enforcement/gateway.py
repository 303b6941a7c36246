"""
Enforcement: Gateway Filter

Middleware Starlette en bordure. Non bloquant: la seule attente est la
lecture de la blacklist, bornée par un timeout.

Pour chaque requête:
    - Nouveau X-Request-ID (la valeur client est ignorée)
    - Headers d'identité client supprimés
    - Décision partagée, puis injection des X-User-* vers l'aval
"""

from typing import Iterable, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from ..logging.structured_logger import StructuredLogger
from ..observability.correlation import CorrelationManager
from ..revocation.interfaces import IAsyncTokenBlacklist
from .decision import AuthorizationDecider
from .interfaces import (
    AUTHORIZATION_HEADER,
    IDENTITY_HEADERS,
    REQUEST_ID_HEADER,
    AuthContext,
    Decision,
)


RawHeaders = List[Tuple[bytes, bytes]]

_STRIPPED = {h.lower().encode("latin-1") for h in IDENTITY_HEADERS + (REQUEST_ID_HEADER,)}


def rejection_response(decision: Decision, request_id: Optional[str] = None) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"}
    if request_id:
        headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(
        status_code=decision.status,
        content=decision.error_body(),
        headers=headers,
    )


def _rewrite_headers(raw: Iterable[Tuple[bytes, bytes]], request_id: str, context: Optional[AuthContext]) -> RawHeaders:
    headers: RawHeaders = [(k, v) for k, v in raw if k.lower() not in _STRIPPED]
    headers.append((REQUEST_ID_HEADER.lower().encode("latin-1"), request_id.encode("latin-1")))
    if context is not None:
        for name, value in context.to_headers().items():
            headers.append((name.lower().encode("latin-1"), value.encode("utf-8")))
    return headers


class GatewayAuthMiddleware(BaseHTTPMiddleware):
    """
    Filtre d'authentification gateway.

    Example:
        app.add_middleware(
            GatewayAuthMiddleware,
            decider=decider,
            blacklist=AsyncRedisTokenBlacklist.from_settings(settings.redis),
            logger=logger,
        )
    """

    def __init__(
        self,
        app: ASGIApp,
        decider: AuthorizationDecider,
        blacklist: IAsyncTokenBlacklist,
        logger: StructuredLogger,
        correlation: Optional[CorrelationManager] = None,
    ) -> None:
        super().__init__(app)
        self._decider = decider
        self._blacklist = blacklist
        self._logger = logger
        self._correlation = correlation or CorrelationManager()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = self._correlation.start_request()
        try:
            path = request.url.path
            decision = await self._decider.decide_async(
                path,
                request.headers.get(AUTHORIZATION_HEADER),
                self._blacklist,
            )

            if not decision.allowed:
                self._logger.warn(
                    "Gateway rejected request",
                    method=request.method,
                    path=path,
                    status=decision.status,
                    reason=decision.message,
                )
                return rejection_response(decision, request_id)

            request.scope["headers"] = _rewrite_headers(request.scope["headers"], request_id, decision.context)
            request.state.auth = decision.context

            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            self._correlation.clear()
