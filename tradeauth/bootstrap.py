"""
Bootstrap

Assemblage explicite des composants à partir d'un AuthSettings chargé une
fois au démarrage. Aucun état global: chaque processus construit son
conteneur et le passe aux applications.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from flask import Flask
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.routing import Mount
from starlette.types import ASGIApp

from .api.errors import register_error_handlers
from .api.routes import EXTENSION_KEY, bp_auth, bp_health
from .core.interfaces import AuthSettings
from .credentials.account_repository import InMemoryAccountRepository
from .credentials.interfaces import IAccountRepository, IPasswordHasher, IUserProfileClient
from .credentials.password_hasher import Argon2PasswordHasher
from .enforcement.decision import AuthorizationDecider
from .enforcement.gateway import GatewayAuthMiddleware
from .enforcement.service_filter import ServiceAuthFilter
from .logging.interfaces import LogConfig
from .logging.structured_logger import StructuredLogger
from .rbac.interfaces import IRoleAssignmentRepository, IRoleRepository
from .rbac.repositories import InMemoryRoleAssignmentRepository, InMemoryRoleRepository
from .rbac.resolver import RbacResolver
from .rbac.role_service import RoleService
from .revocation.blacklist import (
    AsyncInMemoryTokenBlacklist,
    AsyncRedisTokenBlacklist,
    InMemoryTokenBlacklist,
    RedisTokenBlacklist,
)
from .revocation.interfaces import IAsyncTokenBlacklist, IRefreshTokenRepository, ITokenBlacklist
from .revocation.refresh_tokens import InMemoryRefreshTokenRepository, PostgresRefreshTokenRepository
from .session.lockout import LockoutPolicy
from .session.session_service import SessionService
from .tokens.token_codec import TokenCodec


Clock = Callable[[], datetime]


@dataclass
class AuthContainer:
    """Tous les collaborateurs d'un processus."""

    settings: AuthSettings
    logger: StructuredLogger
    accounts: IAccountRepository
    hasher: IPasswordHasher
    codec: TokenCodec
    roles: IRoleRepository
    assignments: IRoleAssignmentRepository
    role_service: RoleService
    resolver: RbacResolver
    refresh_tokens: IRefreshTokenRepository
    blacklist: ITokenBlacklist
    async_blacklist: IAsyncTokenBlacklist
    lockout: LockoutPolicy
    session_service: SessionService
    service_decider: AuthorizationDecider
    gateway_decider: AuthorizationDecider


def _build(
    settings: AuthSettings,
    logger: StructuredLogger,
    accounts: IAccountRepository,
    refresh_tokens: IRefreshTokenRepository,
    blacklist: ITokenBlacklist,
    async_blacklist: IAsyncTokenBlacklist,
    hasher: Optional[IPasswordHasher] = None,
    profile_client: Optional[IUserProfileClient] = None,
    clock: Optional[Clock] = None,
) -> AuthContainer:
    hasher = hasher or Argon2PasswordHasher(settings.password)
    codec = TokenCodec(settings.jwt, clock=clock)

    roles = InMemoryRoleRepository()
    assignments = InMemoryRoleAssignmentRepository()
    role_service = RoleService(roles, assignments, logger.child("rbac"), clock=clock)
    resolver = RbacResolver(roles, assignments, clock=clock)

    seeded = role_service.seed_default_roles()
    if seeded:
        logger.info("Default roles seeded", count=seeded)
    # Fatal au démarrage si absent
    role_service.ensure_default_role(settings.default_role)

    lockout = LockoutPolicy.from_settings(settings.lockout)
    session_service = SessionService(
        accounts=accounts,
        hasher=hasher,
        codec=codec,
        resolver=resolver,
        role_service=role_service,
        refresh_tokens=refresh_tokens,
        blacklist=blacklist,
        lockout=lockout,
        settings=settings,
        logger=logger.child("session"),
        profile_client=profile_client,
        clock=clock,
    )

    return AuthContainer(
        settings=settings,
        logger=logger,
        accounts=accounts,
        hasher=hasher,
        codec=codec,
        roles=roles,
        assignments=assignments,
        role_service=role_service,
        resolver=resolver,
        refresh_tokens=refresh_tokens,
        blacklist=blacklist,
        async_blacklist=async_blacklist,
        lockout=lockout,
        session_service=session_service,
        service_decider=AuthorizationDecider(
            codec, settings.service.public_paths, logger.child("service-filter")
        ),
        gateway_decider=AuthorizationDecider(
            codec, settings.gateway.resolved_public_paths(), logger.child("gateway-filter")
        ),
    )


def build_logger(settings: AuthSettings, config: Optional[LogConfig] = None) -> StructuredLogger:
    config = config or LogConfig(service=settings.service_name)
    return StructuredLogger("tradeauth", config)


def build_in_memory_container(
    settings: AuthSettings,
    logger: Optional[StructuredLogger] = None,
    hasher: Optional[IPasswordHasher] = None,
    profile_client: Optional[IUserProfileClient] = None,
    clock: Optional[Clock] = None,
) -> AuthContainer:
    """Conteneur mono-processus: blacklist et registres en mémoire."""
    blacklist = InMemoryTokenBlacklist(clock=clock)
    return _build(
        settings,
        logger or build_logger(settings),
        accounts=InMemoryAccountRepository(),
        refresh_tokens=InMemoryRefreshTokenRepository(clock=clock),
        blacklist=blacklist,
        async_blacklist=AsyncInMemoryTokenBlacklist(blacklist),
        hasher=hasher,
        profile_client=profile_client,
        clock=clock,
    )


def build_redis_container(
    settings: AuthSettings,
    logger: Optional[StructuredLogger] = None,
    accounts: Optional[IAccountRepository] = None,
    refresh_tokens: Optional[IRefreshTokenRepository] = None,
    hasher: Optional[IPasswordHasher] = None,
    profile_client: Optional[IUserProfileClient] = None,
) -> AuthContainer:
    """
    Conteneur distribué: blacklist Redis partagée, refresh tokens en
    PostgreSQL si postgres.dsn est configuré.
    """
    logger = logger or build_logger(settings)
    if refresh_tokens is None:
        if settings.postgres.dsn:
            refresh_tokens = PostgresRefreshTokenRepository.from_dsn(settings.postgres.dsn)
        else:
            refresh_tokens = InMemoryRefreshTokenRepository()

    return _build(
        settings,
        logger,
        accounts=accounts or InMemoryAccountRepository(),
        refresh_tokens=refresh_tokens,
        blacklist=RedisTokenBlacklist.from_settings(settings.redis, logger=logger.child("revocation")),
        async_blacklist=AsyncRedisTokenBlacklist.from_settings(settings.redis),
        hasher=hasher,
        profile_client=profile_client,
    )


def create_service_app(container: AuthContainer) -> Flask:
    """Application Flask du service d'authentification."""
    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = container

    ServiceAuthFilter(
        container.service_decider,
        container.blacklist,
        container.logger.child("service-filter"),
    ).init_app(app)

    app.register_blueprint(bp_auth)
    app.register_blueprint(bp_health)
    register_error_handlers(app, container.logger.child("api"))
    return app


def create_gateway_app(container: AuthContainer, downstream: ASGIApp) -> Starlette:
    """Gateway Starlette: filtre d'authentification devant l'application aval."""
    return Starlette(
        routes=[Mount("/", app=downstream)],
        middleware=[
            Middleware(
                GatewayAuthMiddleware,
                decider=container.gateway_decider,
                blacklist=container.async_blacklist,
                logger=container.logger.child("gateway"),
            )
        ],
    )
