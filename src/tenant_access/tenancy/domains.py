"""Host name to tenant resolution for custom domains."""

from __future__ import annotations

import ipaddress
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from tenant_access.storage.tenant_repository import TenantStore

logger = structlog.get_logger()

LOCALHOST = "localhost"


@dataclass(frozen=True)
class DomainOwner:
    tenant_id: uuid.UUID
    app_id: str


def normalize_host(host: str) -> str:
    """Reduce a Host header value to a bare lower-case host name.

    Strips scheme, path, port, and a trailing dot. Bracketed IPv6
    literals keep their address without brackets.
    """
    value = host.strip().lower()
    if "://" in value:
        value = value.split("://", 1)[1]
    value = value.split("/", 1)[0]
    if value.startswith("["):
        value = value[1:].split("]", 1)[0]
    elif value.count(":") == 1:
        value = value.split(":", 1)[0]
    return value.rstrip(".")


def is_localhost(host: str) -> bool:
    """True for localhost, ``*.localhost`` and loopback/unspecified IPs."""
    if host == LOCALHOST or host.endswith(f".{LOCALHOST}"):
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.is_loopback or address.is_unspecified


def is_shared_domain(host: str, shared_domains: Iterable[str]) -> bool:
    """True if ``host`` equals a shared domain or is a subdomain of one.

    Matching respects dot boundaries: ``evilexample.com`` is not under
    ``example.com``.
    """
    for shared in shared_domains:
        candidate = normalize_host(shared)
        if candidate and (host == candidate or host.endswith(f".{candidate}")):
            return True
    return False


class DomainOwnershipResolver:
    """Resolve a request host to the tenant that bound it as a custom domain.

    Localhost and shared platform domains never resolve to a tenant,
    even if some tenant row happens to carry them as ``primary_domain``.
    """

    def __init__(self, store: TenantStore, shared_domains: Iterable[str]) -> None:
        self._store = store
        self._shared_domains = tuple(shared_domains)

    def is_tenant_host(self, host: str) -> bool:
        """Whether ``host`` could belong to a single tenant at all."""
        name = normalize_host(host)
        return bool(name) and not (
            is_localhost(name) or is_shared_domain(name, self._shared_domains)
        )

    async def resolve(self, host: str | None) -> DomainOwner | None:
        """Look up the tenant bound to ``host``.

        Returns:
            DomainOwner for a bound, active custom domain; None for
            localhost, shared domains, unbound hosts, and lookup errors.
        """
        if not host or not self.is_tenant_host(host):
            return None

        name = normalize_host(host)
        try:
            tenant = await self._store.get_by_domain(name)
        except Exception:
            logger.warning("domain_lookup_failed", host=name, exc_info=True)
            return None

        if tenant is None or not tenant.is_active:
            return None
        return DomainOwner(tenant_id=tenant.id, app_id=tenant.app_id)
