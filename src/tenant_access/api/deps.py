"""FastAPI dependency injection."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import cast

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenant_access.auth.session import Identity, SessionAuthenticator, parse_bearer
from tenant_access.config import Settings, get_settings
from tenant_access.errors import UnauthorizedError
from tenant_access.rbac.aggregator import PermissionAggregator
from tenant_access.storage.database import async_session, get_session
from tenant_access.storage.role_repository import RoleRepository
from tenant_access.storage.tenant_repository import TenantStore
from tenant_access.tenancy.context import RequestSignals, TenantContext
from tenant_access.tenancy.domains import DomainOwnershipResolver
from tenant_access.tenancy.provisioner import TenantProvisioner
from tenant_access.tenancy.resolver import TenantContextResolver

__all__ = [
    "get_authenticator",
    "get_domain_resolver",
    "get_identity",
    "get_permission_aggregator",
    "get_provisioner",
    "get_resolution_store",
    "get_role_repository",
    "get_session",
    "get_session_factory",
    "get_tenant_context",
    "get_tenant_resolver",
    "get_tenant_store",
    "request_host",
    "require_identity",
    "signals_from_request",
]

_get_session = Depends(get_session)
_get_settings = Depends(get_settings)


def _is_true(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def request_host(request: Request, settings: Settings) -> str | None:
    """Override host header first, then ``Host``."""
    return request.headers.get(settings.host_override_header) or request.headers.get(
        "host"
    )


def signals_from_request(
    request: Request, settings: Settings, user_id: str = ""
) -> RequestSignals:
    """Collect tenant resolution inputs from request headers."""
    headers = request.headers
    return RequestSignals(
        user_id=user_id,
        from_domain=_is_true(headers.get(settings.from_domain_header)),
        domain_tenant_id=headers.get(settings.domain_tenant_header),
        tenant_header=headers.get(settings.tenant_header),
        host=request_host(request, settings),
        app_id=headers.get(settings.app_id_header),
        tenant_owner_user_id=headers.get(settings.tenant_user_header),
        is_pro=_is_true(headers.get(settings.is_pro_header)),
    )


# ── Session verification ──────────────────────────────────────


async def get_authenticator(request: Request) -> SessionAuthenticator:
    """Retrieve the session authenticator from app state.

    Initialized during lifespan startup.
    """
    return cast(SessionAuthenticator, request.app.state.authenticator)


async def get_identity(
    request: Request,
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> Identity | None:
    """Verified identity of the caller, or None for anonymous requests."""
    token = parse_bearer(request.headers.get("Authorization"))
    if token is None:
        return None
    return await authenticator.authenticate(token)


async def require_identity(
    identity: Identity | None = Depends(get_identity),
) -> Identity:
    """Verified identity of the caller.

    Raises:
        UnauthorizedError: Missing, malformed, or rejected session token.
    """
    if identity is None:
        raise UnauthorizedError()
    return identity


# ── Tenancy ───────────────────────────────────────────────────


async def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that must commit on its own."""
    return async_session


async def get_tenant_store(session: AsyncSession = _get_session) -> TenantStore:
    return TenantStore(session)


async def get_provisioner(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> TenantProvisioner:
    return TenantProvisioner(session_factory)


async def get_domain_resolver(
    store: TenantStore = Depends(get_tenant_store),
    settings: Settings = _get_settings,
) -> DomainOwnershipResolver:
    return DomainOwnershipResolver(store, settings.shared_domains)


async def get_resolution_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[TenantStore]:
    """Tenant store on a session of its own.

    Resolution runs under a timeout; a lookup cancelled mid-query must not
    leave the request session unusable for the role lookups that follow.
    """
    async with session_factory() as session:
        yield TenantStore(session)


async def get_tenant_resolver(
    store: TenantStore = Depends(get_resolution_store),
    provisioner: TenantProvisioner = Depends(get_provisioner),
    settings: Settings = _get_settings,
) -> TenantContextResolver:
    return TenantContextResolver(
        store,
        provisioner,
        DomainOwnershipResolver(store, settings.shared_domains),
        system_tenant_id=settings.system_tenant_id,
        default_app_id=settings.default_app_id,
        timeout=settings.tenant_resolve_timeout_seconds,
    )


async def get_tenant_context(
    request: Request,
    identity: Identity | None = Depends(get_identity),
    resolver: TenantContextResolver = Depends(get_tenant_resolver),
    settings: Settings = _get_settings,
) -> TenantContext:
    """Resolve and attach the tenant context for public and protected routes.

    Anonymous requests still get a context, so public reads stay scoped
    to a tenant (the system tenant when nothing else matches).
    """
    user_id = identity.user_id if identity is not None else ""
    context = await resolver.resolve(signals_from_request(request, settings, user_id))
    request.state.tenant_context = context
    return context


# ── Roles ─────────────────────────────────────────────────────


async def get_role_repository(session: AsyncSession = _get_session) -> RoleRepository:
    return RoleRepository(session)


async def get_permission_aggregator(
    repo: RoleRepository = Depends(get_role_repository),
) -> PermissionAggregator:
    return PermissionAggregator(repo)
