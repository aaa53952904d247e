"""Role and permission administration endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from tenant_access.api.deps import get_role_repository
from tenant_access.api.schemas import (
    RoleResponse,
    RoleUpsertRequest,
    RoleUpsertResponse,
)
from tenant_access.auth.requirements import Principal, require_permission
from tenant_access.storage.role_repository import RoleRepository

router = APIRouter(prefix="/roles", tags=["roles"])

RepoDep = Annotated[RoleRepository, Depends(get_role_repository)]
ReadDep = Annotated[Principal, Depends(require_permission("rolesandpermissions:read"))]
CreateDep = Annotated[
    Principal, Depends(require_permission("rolesandpermissions:create"))
]
DeleteDep = Annotated[
    Principal, Depends(require_permission("rolesandpermissions:delete"))
]


@router.get("")
async def list_roles(
    _principal: ReadDep,
    repo: RepoDep,
) -> list[RoleResponse]:
    """List all roles with the permissions each grants."""
    roles = await repo.list_roles()
    return [
        RoleResponse(
            name=role.name,
            permissions=sorted(p.permission for p in role.permissions),
        )
        for role in roles
    ]


@router.put("/{name}")
async def upsert_role(
    name: str,
    body: RoleUpsertRequest,
    response: Response,
    _principal: CreateDep,
    repo: RepoDep,
) -> RoleUpsertResponse:
    """Create a role, or add the missing permissions to an existing one.

    Returns 201 when the role was created, 200 otherwise.
    """
    created = await repo.create_role_or_add_permissions(name, body.permissions)
    permissions = await repo.get_permissions_for_role(name)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return RoleUpsertResponse(
        name=name, created=created, permissions=sorted(permissions)
    )


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    name: str,
    _principal: DeleteDep,
    repo: RepoDep,
) -> None:
    """Delete a role together with its permissions and assignments."""
    await repo.delete_role(name)
