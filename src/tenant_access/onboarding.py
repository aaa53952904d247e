"""Default role assignment for newly signed-up users.

Producers get ``producer`` in their own tenant, provisioning it if
needed. Viewers get ``viewer`` in the tenant that owns the custom domain
they signed up on, or in the system tenant otherwise. Admins are never
onboarded through self-service; use the operator CLI.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog

from tenant_access.config import SYSTEM_TENANT_ID
from tenant_access.errors import ForbiddenError
from tenant_access.rbac.roles import RoleName, Service
from tenant_access.storage.role_repository import RoleRepository
from tenant_access.tenancy.domains import DomainOwnershipResolver
from tenant_access.tenancy.provisioner import TenantProvisioner

logger = structlog.get_logger()


@dataclass(frozen=True)
class OnboardingResult:
    role: RoleName
    tenant_id: uuid.UUID


async def onboard_user(
    user_id: str,
    service: Service,
    *,
    host: str | None,
    repo: RoleRepository,
    provisioner: TenantProvisioner,
    domains: DomainOwnershipResolver,
    system_tenant_id: uuid.UUID = SYSTEM_TENANT_ID,
) -> OnboardingResult:
    """Grant the signup role for ``service`` in the matching tenant.

    Safe to call more than once: the role assignment is idempotent and
    provisioning returns the existing tenant.

    Raises:
        ForbiddenError: ``service`` is ``admin``.
    """
    if service == Service.ADMIN:
        raise ForbiddenError("Admin role cannot be self-assigned")

    if service == Service.PRODUCER:
        tenant_id = (await provisioner.get_or_create(user_id)).tenant.id
    else:
        owner = await domains.resolve(host)
        tenant_id = owner.tenant_id if owner is not None else system_tenant_id

    role = await repo.assign_default_role(user_id, service, tenant_id)
    logger.info(
        "user_onboarded",
        user_id=user_id,
        service=str(service),
        role=str(role),
        tenant_id=str(tenant_id),
    )
    return OnboardingResult(role=role, tenant_id=tenant_id)
