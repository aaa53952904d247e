"""Per-request tenant context resolution.

Resolution priority, first success wins:

1. Domain: upstream flag + pre-resolved tenant id, else the request
   host looked up as a bound custom domain.
2. Header: explicit tenant id header (the system tenant id is ignored).
3. Session: the authenticated user's own tenant, provisioned on first use.
4. Default: the system tenant with no owner.

A failure at one level is logged and the next level is tried. The
resolver itself never raises: on an unexpected error or when the
deadline passes it returns the default context, which grants nothing
beyond public reads.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable

import structlog

from tenant_access.config import DEFAULT_APP_ID, SYSTEM_TENANT_ID
from tenant_access.errors import TenantNotFoundError
from tenant_access.storage.orm import Tenant
from tenant_access.storage.tenant_repository import TenantStore
from tenant_access.tenancy.context import RequestSignals, ResolvedFrom, TenantContext
from tenant_access.tenancy.domains import DomainOwnershipResolver
from tenant_access.tenancy.provisioner import TenantProvisioner

logger = structlog.get_logger()


def _parse_tenant_id(raw: str | None) -> uuid.UUID | None:
    if not raw:
        return None
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        return None


def default_context(
    user_id: str = "",
    *,
    system_tenant_id: uuid.UUID = SYSTEM_TENANT_ID,
    default_app_id: str = DEFAULT_APP_ID,
) -> TenantContext:
    """The most restrictive usable context: system tenant, no owner."""
    return TenantContext(
        user_id=user_id,
        tenant_id=system_tenant_id,
        tenant_owner_user_id="",
        app_id=default_app_id,
        is_pro=False,
        resolved_from=ResolvedFrom.DEFAULT,
    )


def resolve_sync(
    signals: RequestSignals,
    *,
    system_tenant_id: uuid.UUID = SYSTEM_TENANT_ID,
    default_app_id: str = DEFAULT_APP_ID,
) -> TenantContext:
    """Classify a request from its headers alone, without any I/O.

    For call sites that cannot await. Applies the same priority and the
    same rejection rules as the async path to the header signals, and
    trusts the tenant attributes forwarded by upstream middleware.
    Session requests land on the system tenant because provisioning
    needs the database.
    """
    domain_tenant_id = (
        _parse_tenant_id(signals.domain_tenant_id) if signals.from_domain else None
    )
    header_tenant_id = _parse_tenant_id(signals.tenant_header)

    if domain_tenant_id is not None and domain_tenant_id != system_tenant_id:
        tenant_id, resolved_from = domain_tenant_id, ResolvedFrom.DOMAIN
    elif header_tenant_id is not None and header_tenant_id != system_tenant_id:
        tenant_id, resolved_from = header_tenant_id, ResolvedFrom.HEADER
    elif signals.user_id:
        return TenantContext(
            user_id=signals.user_id,
            tenant_id=system_tenant_id,
            tenant_owner_user_id="",
            app_id=default_app_id,
            is_pro=False,
            resolved_from=ResolvedFrom.SESSION,
        )
    else:
        return default_context(
            signals.user_id,
            system_tenant_id=system_tenant_id,
            default_app_id=default_app_id,
        )

    return TenantContext(
        user_id=signals.user_id,
        tenant_id=tenant_id,
        tenant_owner_user_id=signals.tenant_owner_user_id or "",
        app_id=signals.app_id or default_app_id,
        is_pro=signals.is_pro,
        resolved_from=resolved_from,
    )


class TenantContextResolver:
    """Build the ``TenantContext`` for one request.

    Collaborators are passed in explicitly; there is no module-level
    provider hook to register at startup.
    """

    def __init__(
        self,
        store: TenantStore,
        provisioner: TenantProvisioner,
        domains: DomainOwnershipResolver,
        *,
        system_tenant_id: uuid.UUID = SYSTEM_TENANT_ID,
        default_app_id: str = DEFAULT_APP_ID,
        timeout: float | None = None,
    ) -> None:
        self._store = store
        self._provisioner = provisioner
        self._domains = domains
        self._system_tenant_id = system_tenant_id
        self._default_app_id = default_app_id
        self._timeout = timeout

    async def resolve(
        self,
        signals: RequestSignals,
        *,
        timeout: float | None = None,
    ) -> TenantContext:
        """Resolve the tenant context; never raises.

        Args:
            signals: Header and identity inputs of the request.
            timeout: Per-request deadline in seconds; overrides the
                resolver default. None means no deadline.
        """
        deadline = timeout if timeout is not None else self._timeout
        try:
            return await asyncio.wait_for(self._resolve(signals), timeout=deadline)
        except TimeoutError:
            logger.warning(
                "tenant_resolution_timeout",
                timeout=deadline,
                user_id=signals.user_id or None,
            )
        except Exception:
            logger.error(
                "tenant_resolution_error",
                user_id=signals.user_id or None,
                exc_info=True,
            )
        return self._default(signals.user_id)

    async def _resolve(self, signals: RequestSignals) -> TenantContext:
        levels: tuple[
            tuple[ResolvedFrom, Callable[[RequestSignals], Awaitable[Tenant | None]]],
            ...,
        ] = (
            (ResolvedFrom.DOMAIN, self._tenant_from_domain),
            (ResolvedFrom.HEADER, self._tenant_from_header),
            (ResolvedFrom.SESSION, self._tenant_from_session),
        )
        for resolved_from, lookup in levels:
            try:
                tenant = await lookup(signals)
            except Exception as exc:
                logger.warning(
                    "tenant_resolution_failed",
                    source=str(resolved_from),
                    error=type(exc).__name__,
                    detail=str(exc),
                )
                continue
            if tenant is not None:
                return self._context(signals.user_id, tenant, resolved_from)
        return self._default(signals.user_id)

    async def _tenant_from_domain(self, signals: RequestSignals) -> Tenant | None:
        if signals.from_domain and signals.domain_tenant_id:
            tenant_id = uuid.UUID(signals.domain_tenant_id.strip())
            if tenant_id != self._system_tenant_id:
                return await self._active_tenant(tenant_id)
            return None

        owner = await self._domains.resolve(signals.host)
        if owner is None:
            return None
        return await self._active_tenant(owner.tenant_id)

    async def _tenant_from_header(self, signals: RequestSignals) -> Tenant | None:
        if not signals.tenant_header:
            return None
        tenant_id = uuid.UUID(signals.tenant_header.strip())
        if tenant_id == self._system_tenant_id:
            return None
        return await self._active_tenant(tenant_id)

    async def _tenant_from_session(self, signals: RequestSignals) -> Tenant | None:
        if not signals.user_id:
            return None
        result = await self._provisioner.get_or_create(signals.user_id)
        return result.tenant

    async def _active_tenant(self, tenant_id: uuid.UUID) -> Tenant:
        tenant = await self._store.get_by_id(tenant_id)
        if tenant is None or not tenant.is_active:
            raise TenantNotFoundError(tenant_id)
        return tenant

    def _context(
        self, user_id: str, tenant: Tenant, resolved_from: ResolvedFrom
    ) -> TenantContext:
        return TenantContext(
            user_id=user_id,
            tenant_id=tenant.id,
            tenant_owner_user_id=tenant.owner_user_id,
            app_id=tenant.app_id,
            is_pro=bool(tenant.is_pro),
            resolved_from=resolved_from,
        )

    def _default(self, user_id: str) -> TenantContext:
        return default_context(
            user_id,
            system_tenant_id=self._system_tenant_id,
            default_app_id=self._default_app_id,
        )
