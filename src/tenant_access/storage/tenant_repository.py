"""Tenant lookups and the guarded insert used by first-access provisioning."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_access.config import DEFAULT_APP_ID
from tenant_access.errors import ProvisioningConflictError, TenantNotFoundError
from tenant_access.storage.orm import Tenant, TenantStatus


class TenantStore:
    """Repository for Tenant rows.

    Not tenant-scoped: this is the store that decides which tenant a
    request belongs to in the first place.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, tenant_id: uuid.UUID) -> Tenant | None:
        """Get a tenant by primary key."""
        stmt = select(Tenant).where(Tenant.id == tenant_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_owner(self, owner_user_id: str) -> Tenant | None:
        """Get the tenant owned by a user (at most one exists)."""
        stmt = select(Tenant).where(Tenant.owner_user_id == owner_user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_domain(self, domain: str) -> Tenant | None:
        """Get the tenant bound to a custom domain.

        Args:
            domain: Normalized host name (lower-case, no port).

        Returns:
            Tenant whose ``primary_domain`` equals ``domain``, or None.
        """
        stmt = select(Tenant).where(Tenant.primary_domain == domain)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self, *, limit: int = 100, offset: int = 0) -> list[Tenant]:
        """List tenants, oldest first."""
        stmt = (
            select(Tenant)
            .order_by(Tenant.created_at)
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def create(
        self,
        owner_user_id: str,
        *,
        app_id: str = DEFAULT_APP_ID,
    ) -> Tenant:
        """Insert a tenant for ``owner_user_id`` inside a SAVEPOINT.

        The unique constraint on ``owner_user_id`` is the only arbiter
        between concurrent first requests. A violation rolls back the
        savepoint (the outer transaction stays usable) and is reported
        as ``ProvisioningConflictError``.

        Raises:
            ProvisioningConflictError: A tenant for this owner already exists.
        """
        tenant = Tenant(
            owner_user_id=owner_user_id,
            app_id=app_id,
            is_pro=False,
            status=TenantStatus.ACTIVE,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(tenant)
                await self._session.flush()
        except IntegrityError as exc:
            raise ProvisioningConflictError(owner_user_id) from exc
        return tenant

    async def set_primary_domain(
        self, tenant_id: uuid.UUID, domain: str | None
    ) -> bool:
        """Bind (or with ``None`` unbind) a custom domain.

        Returns:
            True if the tenant exists and was updated.
        """
        tenant = await self.get_by_id(tenant_id)
        if tenant is None:
            return False
        tenant.primary_domain = domain.strip().lower().rstrip(".") if domain else None
        await self._session.flush()
        return True

    async def update_status(self, tenant_id: uuid.UUID, status: TenantStatus) -> bool:
        """Set tenant status. Returns False if the tenant does not exist."""
        tenant = await self.get_by_id(tenant_id)
        if tenant is None:
            return False
        tenant.status = TenantStatus(status)
        await self._session.flush()
        return True

    async def activate_pro(
        self,
        tenant_id: uuid.UUID,
        app_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Tenant:
        """Switch a tenant to Pro and give it its own app id.

        The app id defaults to the tenant id. Calling again with the
        same app id on a Pro tenant changes nothing.

        Args:
            now: Override for current time (useful for testing).

        Raises:
            TenantNotFoundError: If the tenant does not exist.
        """
        tenant = await self.get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)

        new_app_id = app_id or str(tenant.id)
        if tenant.is_pro and tenant.app_id == new_app_id:
            return tenant

        tenant.app_id = new_app_id
        tenant.is_pro = True
        tenant.pro_activated_at = now or datetime.now(UTC)
        await self._session.flush()
        return tenant
