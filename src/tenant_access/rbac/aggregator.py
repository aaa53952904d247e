"""Effective roles and permissions for a (user, tenant) pair."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from tenant_access.rbac.roles import highest_role
from tenant_access.storage.role_repository import RoleRepository


@dataclass(frozen=True)
class AccessGrant:
    """Everything a user holds within one tenant scope."""

    roles: frozenset[str] = field(default_factory=frozenset)
    permissions: frozenset[str] = field(default_factory=frozenset)
    highest_role: str | None = None


EMPTY_GRANT = AccessGrant()


class PermissionAggregator:
    """Read-side view over ``RoleRepository`` used by authorization."""

    def __init__(self, repo: RoleRepository) -> None:
        self._repo = repo

    async def roles_for(
        self, user_id: str, tenant_id: uuid.UUID | None = None
    ) -> set[str]:
        return await self._repo.get_user_roles(user_id, tenant_id)

    async def permissions_for(
        self, user_id: str, tenant_id: uuid.UUID | None = None
    ) -> set[str]:
        return await self._repo.get_user_permissions(user_id, tenant_id)

    async def highest_role_for(
        self, user_id: str, tenant_id: uuid.UUID | None = None
    ) -> str | None:
        return highest_role(await self.roles_for(user_id, tenant_id))

    async def grant_for(self, user_id: str, tenant_id: uuid.UUID) -> AccessGrant:
        """Collect roles and permissions of ``user_id`` in ``tenant_id``.

        An anonymous caller holds nothing; the store is not queried.
        """
        if not user_id:
            return EMPTY_GRANT
        roles = await self.roles_for(user_id, tenant_id)
        permissions = await self.permissions_for(user_id, tenant_id)
        return AccessGrant(
            roles=frozenset(roles),
            permissions=frozenset(permissions),
            highest_role=highest_role(roles),
        )
