"""Request/response schemas for the API layer."""

from __future__ import annotations

import uuid
from typing import Annotated

from pydantic import BaseModel, Field

from tenant_access.tenancy.context import ResolvedFrom

PERMISSION_PATTERN = r"^[a-z0-9_.-]+:[a-z0-9_.*-]+$"

Permission = Annotated[str, Field(pattern=PERMISSION_PATTERN, max_length=255)]

# --- Access ---


class TenantContextResponse(BaseModel):
    """Response for ``GET /access/context``. Available to anonymous callers."""

    user_id: str
    tenant_id: uuid.UUID
    app_id: str
    is_pro: bool
    resolved_from: ResolvedFrom


class AccessMeResponse(BaseModel):
    """Response for ``GET /access/me``.

    A projection of the request's tenant context: the owner's user id is
    reduced to ``is_tenant_owner``.
    """

    user_id: str
    tenant_id: uuid.UUID
    app_id: str
    is_pro: bool
    resolved_from: ResolvedFrom
    is_tenant_owner: bool
    roles: list[str]
    permissions: list[str]
    highest_role: str | None


class RoleAssignmentResponse(BaseModel):
    """Response for grant/revoke of a user's role in the current tenant."""

    user_id: str
    role: str
    tenant_id: uuid.UUID
    changed: bool = Field(
        description="False when the call was a no-op (already granted/revoked)."
    )


class OnboardRequest(BaseModel):
    """Request body for ``POST /access/onboard``."""

    service: str | None = Field(
        default=None,
        description="Signup front end: viewer or producer. Unknown values "
        "fall back to viewer.",
    )


class OnboardResponse(BaseModel):
    role: str
    tenant_id: uuid.UUID


# --- Roles ---


class RoleResponse(BaseModel):
    name: str
    permissions: list[str]


class RoleUpsertRequest(BaseModel):
    """Request body for ``PUT /roles/{name}``."""

    permissions: list[Permission] = Field(
        default_factory=list,
        description="Permissions to grant, as 'resource:action'. Existing "
        "grants are kept.",
    )


class RoleUpsertResponse(BaseModel):
    name: str
    created: bool
    permissions: list[str]
