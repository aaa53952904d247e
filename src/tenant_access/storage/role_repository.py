"""Repository for roles, role permissions, and tenant-scoped assignments."""

from __future__ import annotations

import uuid
from collections.abc import Iterable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tenant_access.errors import UnknownRoleError
from tenant_access.rbac.roles import (
    DEFAULT_ROLE_PERMISSIONS,
    ROLE_HIERARCHY,
    RoleName,
    Service,
    role_for_service,
)
from tenant_access.storage.orm import Base, Role, RolePermission, UserRole

logger = structlog.get_logger()

UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True if ``exc`` is a PostgreSQL unique-constraint violation."""
    return getattr(exc.orig, "sqlstate", None) == UNIQUE_VIOLATION


class RoleRepository:
    """CRUD over the role/permission graph.

    Mutations are idempotent: every insert runs in its own SAVEPOINT and
    a unique-constraint violation means "already there", not an error.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ── Roles ──────────────────────────────────────────────────────

    async def get_role_by_name(self, name: str) -> Role | None:
        """Get a role by its unique name."""
        stmt = select(Role).where(Role.name == name)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_roles(self) -> list[Role]:
        """List all roles ordered by name, with permissions eagerly loaded."""
        stmt = select(Role).options(selectinload(Role.permissions)).order_by(Role.name)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_permissions_for_role(self, name: str) -> set[str]:
        """Permissions granted by a single role.

        Raises:
            UnknownRoleError: If no role has this name.
        """
        role = await self._require_role(name)
        return await self._permissions_of(role.id)

    async def create_role_or_add_permissions(
        self, name: str, permissions: Iterable[str]
    ) -> bool:
        """Create ``name`` with ``permissions``, or top up an existing role.

        Only permissions the role does not already grant are inserted, so
        partial overlap is fine.

        Returns:
            True if the role was created by this call.
        """
        created = False
        role = await self.get_role_by_name(name)
        if role is None:
            created = await self._insert_unique(Role(name=name))
            role = await self._require_role(name)

        existing = await self._permissions_of(role.id)
        missing = [p for p in dict.fromkeys(permissions) if p not in existing]
        added = 0
        for permission in missing:
            if await self._insert_unique(
                RolePermission(role_id=role.id, permission=permission)
            ):
                added += 1

        if created or added:
            logger.info(
                "role_updated",
                role=name,
                created=created,
                permissions_added=added,
            )
        return created

    async def delete_role(self, name: str) -> None:
        """Delete a role and everything that references it.

        Order: role permissions, then user assignments, then the role,
        so no dangling reference is observable even without FK cascade.

        Raises:
            UnknownRoleError: If no role has this name.
        """
        role = await self._require_role(name)
        await self._session.execute(
            delete(RolePermission).where(RolePermission.role_id == role.id)
        )
        await self._session.execute(delete(UserRole).where(UserRole.role_id == role.id))
        await self._session.execute(delete(Role).where(Role.id == role.id))
        await self._session.flush()
        logger.info("role_deleted", role=name)

    async def setup_default_roles(self) -> None:
        """Ensure every built-in role exists with its default permissions."""
        for role_name in ROLE_HIERARCHY:
            await self.create_role_or_add_permissions(
                role_name, sorted(DEFAULT_ROLE_PERMISSIONS[role_name])
            )
        logger.info("default_roles_configured", roles=len(ROLE_HIERARCHY))

    # ── Assignments ────────────────────────────────────────────────

    async def assign_role(
        self, user_id: str, role_name: str, tenant_id: uuid.UUID
    ) -> bool:
        """Grant ``role_name`` to a user within one tenant.

        Returns:
            True if a new assignment row was written, False if the user
            already held the role there.

        Raises:
            UnknownRoleError: If no role has this name.
        """
        role = await self._require_role(role_name)
        stmt = select(UserRole.id).where(
            UserRole.user_id == user_id,
            UserRole.role_id == role.id,
            UserRole.tenant_id == tenant_id,
        )
        result = await self._session.execute(stmt)
        if result.scalar_one_or_none() is not None:
            return False

        assigned = await self._insert_unique(
            UserRole(user_id=user_id, role_id=role.id, tenant_id=tenant_id)
        )
        if assigned:
            logger.info(
                "role_assigned",
                user_id=user_id,
                role=role_name,
                tenant_id=str(tenant_id),
            )
        return assigned

    async def revoke_role(
        self, user_id: str, role_name: str, tenant_id: uuid.UUID
    ) -> bool:
        """Remove ``role_name`` from a user within one tenant.

        Returns:
            True if an assignment was removed, False if none existed.

        Raises:
            UnknownRoleError: If no role has this name.
        """
        role = await self._require_role(role_name)
        result = await self._session.execute(
            delete(UserRole).where(
                UserRole.user_id == user_id,
                UserRole.role_id == role.id,
                UserRole.tenant_id == tenant_id,
            )
        )
        revoked = bool(result.rowcount)
        if revoked:
            logger.info(
                "role_revoked",
                user_id=user_id,
                role=role_name,
                tenant_id=str(tenant_id),
            )
        return revoked

    async def assign_default_role(
        self, user_id: str, service: Service, tenant_id: uuid.UUID
    ) -> RoleName:
        """Grant the signup role for ``service`` in ``tenant_id``."""
        role = role_for_service(service)
        await self.assign_role(user_id, role, tenant_id)
        return role

    async def get_user_roles(
        self, user_id: str, tenant_id: uuid.UUID | None = None
    ) -> set[str]:
        """Role names a user holds.

        Args:
            user_id: Identity from the session verifier.
            tenant_id: Restrict to one tenant; None aggregates over all
                tenants the user holds roles in.
        """
        stmt = (
            select(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
        )
        if tenant_id is not None:
            stmt = stmt.where(UserRole.tenant_id == tenant_id)
        result = await self._session.execute(stmt)
        return set(result.scalars().all())

    async def get_user_permissions(
        self, user_id: str, tenant_id: uuid.UUID | None = None
    ) -> set[str]:
        """Union of permissions over every role the user holds in scope.

        There are no negative permissions: a permission granted by any
        held role is in the result.
        """
        stmt = (
            select(RolePermission.permission)
            .distinct()
            .join(UserRole, UserRole.role_id == RolePermission.role_id)
            .where(UserRole.user_id == user_id)
        )
        if tenant_id is not None:
            stmt = stmt.where(UserRole.tenant_id == tenant_id)
        result = await self._session.execute(stmt)
        return set(result.scalars().all())

    # ── Internals ──────────────────────────────────────────────────

    async def _require_role(self, name: str) -> Role:
        role = await self.get_role_by_name(name)
        if role is None:
            raise UnknownRoleError(name)
        return role

    async def _permissions_of(self, role_id: uuid.UUID) -> set[str]:
        stmt = select(RolePermission.permission).where(
            RolePermission.role_id == role_id
        )
        result = await self._session.execute(stmt)
        return set(result.scalars().all())

    async def _insert_unique(self, row: Base) -> bool:
        """Insert ``row`` in a SAVEPOINT; False if a unique key already exists.

        Other integrity errors (a missing tenant or role behind a foreign
        key) propagate.
        """
        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            logger.debug("insert_skipped_duplicate", table=row.__tablename__)
            return False
        return True
