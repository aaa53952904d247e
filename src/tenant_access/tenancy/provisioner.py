"""First-access tenant provisioning for producers.

Two brand-new requests from the same user can race here. The unique
constraint on ``tenants.owner_user_id`` decides the winner; the loser
sees ``ProvisioningConflictError`` from the store and re-reads the
winner's row. Callers never see the conflict.

The insert is committed in its own short session, independent of the
request's transaction, so a cancelled or timed-out request cannot
leave a half-created tenant behind and a concurrent loser is never
blocked on a long-running request transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from tenant_access.config import SYSTEM_TENANT_OWNER
from tenant_access.errors import ProvisioningConflictError
from tenant_access.storage.tenant_repository import TenantStore

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from tenant_access.storage.orm import Tenant

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProvisionResult:
    tenant: Tenant
    created: bool


class TenantProvisioner:
    """Get-or-create the tenant owned by a user, exactly once."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_or_create(self, owner_user_id: str) -> ProvisionResult:
        """Return the user's tenant, creating it on first access.

        Check, try-insert, re-fetch on conflict.

        Raises:
            ValueError: Empty owner id or the reserved system owner.
        """
        if not owner_user_id or owner_user_id == SYSTEM_TENANT_OWNER:
            raise ValueError(f"Cannot provision a tenant for owner {owner_user_id!r}")

        log = logger.bind(owner_user_id=owner_user_id)

        async with self._session_factory() as session:
            store = TenantStore(session)

            existing = await store.get_by_owner(owner_user_id)
            if existing is not None:
                return ProvisionResult(tenant=existing, created=False)

            try:
                tenant = await store.create(owner_user_id)
                await session.commit()
            except ProvisioningConflictError:
                await session.rollback()
                winner = await store.get_by_owner(owner_user_id)
                if winner is None:
                    # Conflict on something other than the owner key.
                    raise
                log.info("tenant_provisioning_race_lost", tenant_id=str(winner.id))
                return ProvisionResult(tenant=winner, created=False)

        log.info("tenant_provisioned", tenant_id=str(tenant.id))
        return ProvisionResult(tenant=tenant, created=True)
