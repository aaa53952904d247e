"""Role and permission enforcement dependency factories."""

from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, Request

from tenant_access.api.deps import (
    get_identity,
    get_permission_aggregator,
    get_tenant_resolver,
    signals_from_request,
)
from tenant_access.auth.session import Identity
from tenant_access.config import Settings, get_settings
from tenant_access.errors import UnauthorizedError
from tenant_access.rbac.aggregator import AccessGrant, PermissionAggregator
from tenant_access.rbac.guard import AccessRequirement, authorize
from tenant_access.tenancy.context import TenantContext
from tenant_access.tenancy.resolver import TenantContextResolver

_identity_dep = Depends(get_identity)
_resolver_dep = Depends(get_tenant_resolver)
_aggregator_dep = Depends(get_permission_aggregator)
_settings_dep = Depends(get_settings)


@dataclass(frozen=True)
class Principal:
    """An authorized caller within its resolved tenant."""

    identity: Identity
    context: TenantContext
    grant: AccessGrant


def require_access(
    requirement: AccessRequirement,
) -> Callable[..., Coroutine[Any, Any, Principal]]:
    """Dependency factory: identity, then tenant, then role/permission check.

    Usage as parameter dependency (returns Principal)::

        async def endpoint(
            principal: Principal = Depends(require_permission("events:create")),
        ): ...

    Raises:
        UnauthorizedError: No verified identity. Raised before any tenant
            resolution or role lookup happens.
        ForbiddenError: Identity lacks the requirement in the resolved
            tenant.
    """

    async def _check_access(
        request: Request,
        identity: Identity | None = _identity_dep,
        resolver: TenantContextResolver = _resolver_dep,
        aggregator: PermissionAggregator = _aggregator_dep,
        settings: Settings = _settings_dep,
    ) -> Principal:
        if identity is None:
            raise UnauthorizedError()

        context = await resolver.resolve(
            signals_from_request(request, settings, identity.user_id)
        )
        request.state.tenant_context = context

        grant = await aggregator.grant_for(identity.user_id, context.tenant_id)
        authorize(identity.user_id, grant, requirement)
        return Principal(identity=identity, context=context, grant=grant)

    return _check_access


def require_authenticated() -> Callable[..., Coroutine[Any, Any, Principal]]:
    return require_access(AccessRequirement())


def require_role(role: str) -> Callable[..., Coroutine[Any, Any, Principal]]:
    return require_access(AccessRequirement(roles=frozenset({role})))


def require_any_role(*roles: str) -> Callable[..., Coroutine[Any, Any, Principal]]:
    return require_access(AccessRequirement(roles=frozenset(roles)))


def require_permission(
    permission: str,
) -> Callable[..., Coroutine[Any, Any, Principal]]:
    return require_access(AccessRequirement(permissions=frozenset({permission})))


def require_any_permission(
    *permissions: str,
) -> Callable[..., Coroutine[Any, Any, Principal]]:
    return require_access(AccessRequirement(permissions=frozenset(permissions)))


def require_minimum_role(role: str) -> Callable[..., Coroutine[Any, Any, Principal]]:
    """Require ``role`` or anything ranked above it."""
    return require_access(AccessRequirement(minimum_role=role))
