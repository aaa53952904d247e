"""Tenant context resolution.

Quick start::

    store = TenantStore(session)
    resolver = TenantContextResolver(
        store,
        TenantProvisioner(async_session),
        DomainOwnershipResolver(store, settings.shared_domains),
    )
    context = await resolver.resolve(RequestSignals(user_id=user_id))

Callers that cannot await use ``resolve_sync(signals)``: headers only, no
store, so an unknown tenant id is taken at face value.
"""

from tenant_access.tenancy.context import RequestSignals, ResolvedFrom, TenantContext
from tenant_access.tenancy.domains import (
    DomainOwner,
    DomainOwnershipResolver,
    is_shared_domain,
    normalize_host,
)
from tenant_access.tenancy.provisioner import ProvisionResult, TenantProvisioner
from tenant_access.tenancy.resolver import (
    TenantContextResolver,
    default_context,
    resolve_sync,
)

__all__ = [
    "DomainOwner",
    "DomainOwnershipResolver",
    "ProvisionResult",
    "RequestSignals",
    "ResolvedFrom",
    "TenantContext",
    "TenantContextResolver",
    "TenantProvisioner",
    "default_context",
    "is_shared_domain",
    "normalize_host",
    "resolve_sync",
]
