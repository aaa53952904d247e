"""Caller access introspection, signup onboarding, and role grants."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from tenant_access.api.deps import (
    get_domain_resolver,
    get_provisioner,
    get_role_repository,
    get_tenant_context,
    request_host,
    require_identity,
)
from tenant_access.api.schemas import (
    AccessMeResponse,
    OnboardRequest,
    OnboardResponse,
    RoleAssignmentResponse,
    TenantContextResponse,
)
from tenant_access.auth.requirements import (
    Principal,
    require_authenticated,
    require_permission,
)
from tenant_access.auth.session import Identity
from tenant_access.config import Settings, get_settings
from tenant_access.errors import ForbiddenError
from tenant_access.onboarding import onboard_user
from tenant_access.rbac.guard import has_role_at_least
from tenant_access.rbac.roles import parse_service, role_rank
from tenant_access.storage.role_repository import RoleRepository
from tenant_access.tenancy.context import TenantContext
from tenant_access.tenancy.domains import DomainOwnershipResolver
from tenant_access.tenancy.provisioner import TenantProvisioner

router = APIRouter(prefix="/access", tags=["access"])

AuthenticatedDep = Annotated[Principal, Depends(require_authenticated())]
AssignDep = Annotated[Principal, Depends(require_permission("tenant:assign"))]
IdentityDep = Annotated[Identity, Depends(require_identity)]
RepoDep = Annotated[RoleRepository, Depends(get_role_repository)]
ProvisionerDep = Annotated[TenantProvisioner, Depends(get_provisioner)]
DomainsDep = Annotated[DomainOwnershipResolver, Depends(get_domain_resolver)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
ContextDep = Annotated[TenantContext, Depends(get_tenant_context)]


def _check_can_grant(principal: Principal, role: str) -> None:
    """Ranked roles can only be granted by someone holding that rank."""
    if role_rank(role) >= 0 and not has_role_at_least(principal.grant.roles, role):
        raise ForbiddenError(f"Requires role {role} or higher to manage it")


@router.get("/context")
async def get_context(context: ContextDep) -> TenantContextResponse:
    """Tenant context of the request; anonymous callers get one too."""
    return TenantContextResponse(
        user_id=context.user_id,
        tenant_id=context.tenant_id,
        app_id=context.app_id,
        is_pro=context.is_pro,
        resolved_from=context.resolved_from,
    )


@router.get("/me")
async def get_me(principal: AuthenticatedDep) -> AccessMeResponse:
    """Resolved tenant context, roles, and permissions of the caller."""
    context = principal.context
    return AccessMeResponse(
        user_id=context.user_id,
        tenant_id=context.tenant_id,
        app_id=context.app_id,
        is_pro=context.is_pro,
        resolved_from=context.resolved_from,
        is_tenant_owner=context.tenant_owner_user_id == context.user_id,
        roles=sorted(principal.grant.roles),
        permissions=sorted(principal.grant.permissions),
        highest_role=principal.grant.highest_role,
    )


@router.post("/onboard")
async def onboard(
    body: OnboardRequest,
    request: Request,
    identity: IdentityDep,
    repo: RepoDep,
    provisioner: ProvisionerDep,
    domains: DomainsDep,
    settings: SettingsDep,
) -> OnboardResponse:
    """Grant the default signup role for the given service."""
    result = await onboard_user(
        identity.user_id,
        parse_service(body.service),
        host=request_host(request, settings),
        repo=repo,
        provisioner=provisioner,
        domains=domains,
        system_tenant_id=settings.system_tenant_id,
    )
    return OnboardResponse(role=result.role, tenant_id=result.tenant_id)


@router.put("/users/{user_id}/roles/{role}")
async def grant_role(
    user_id: str,
    role: str,
    principal: AssignDep,
    repo: RepoDep,
) -> RoleAssignmentResponse:
    """Grant ``role`` to ``user_id`` in the caller's current tenant. Idempotent."""
    _check_can_grant(principal, role)
    tenant_id = principal.context.tenant_id
    changed = await repo.assign_role(user_id, role, tenant_id)
    return RoleAssignmentResponse(
        user_id=user_id, role=role, tenant_id=tenant_id, changed=changed
    )


@router.delete("/users/{user_id}/roles/{role}")
async def revoke_role(
    user_id: str,
    role: str,
    principal: AssignDep,
    repo: RepoDep,
) -> RoleAssignmentResponse:
    """Revoke ``role`` from ``user_id`` in the caller's current tenant. Idempotent."""
    _check_can_grant(principal, role)
    tenant_id = principal.context.tenant_id
    changed = await repo.revoke_role(user_id, role, tenant_id)
    return RoleAssignmentResponse(
        user_id=user_id, role=role, tenant_id=tenant_id, changed=changed
    )
