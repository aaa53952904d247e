"""Tests for host normalization and custom-domain ownership."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from tenant_access.storage.orm import Tenant, TenantStatus
from tenant_access.tenancy.domains import (
    DomainOwner,
    DomainOwnershipResolver,
    is_localhost,
    is_shared_domain,
    normalize_host,
)

SHARED = ["watch.example.com"]


def _tenant(domain: str, status: str = TenantStatus.ACTIVE) -> Tenant:
    return Tenant(
        id=uuid.uuid4(),
        owner_user_id="owner-1",
        app_id="app-1",
        primary_domain=domain,
        status=status,
    )


class TestNormalizeHost:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Shop.Example.ORG", "shop.example.org"),
            ("shop.example.org:8443", "shop.example.org"),
            ("https://shop.example.org/path?q=1", "shop.example.org"),
            ("shop.example.org.", "shop.example.org"),
            ("[::1]:8000", "::1"),
            ("::1", "::1"),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_host(raw) == expected


class TestHostClassification:
    @pytest.mark.parametrize(
        "host", ["localhost", "app.localhost", "127.0.0.1", "::1", "0.0.0.0"]
    )
    def test_localhost_family(self, host: str) -> None:
        assert is_localhost(host)

    def test_public_host_is_not_localhost(self) -> None:
        assert not is_localhost("shop.example.org")

    @pytest.mark.parametrize(
        "host", ["watch.example.com", "acme.watch.example.com"]
    )
    def test_shared_domain_and_subdomains(self, host: str) -> None:
        assert is_shared_domain(host, SHARED)

    def test_shared_domain_respects_dot_boundary(self) -> None:
        assert not is_shared_domain("evilwatch.example.com", SHARED)

    def test_shared_domain_entries_normalized(self) -> None:
        assert is_shared_domain("watch.example.com", ["https://Watch.Example.com/"])


class TestDomainOwnershipResolver:
    async def test_bound_domain_resolves(self) -> None:
        tenant = _tenant("shop.example.org")
        store = AsyncMock()
        store.get_by_domain.return_value = tenant

        owner = await DomainOwnershipResolver(store, SHARED).resolve(
            "Shop.Example.org:443"
        )

        assert owner == DomainOwner(tenant_id=tenant.id, app_id="app-1")
        store.get_by_domain.assert_awaited_once_with("shop.example.org")

    async def test_shared_domain_never_resolves_even_if_bound(self) -> None:
        store = AsyncMock()
        store.get_by_domain.return_value = _tenant("watch.example.com")

        resolver = DomainOwnershipResolver(store, SHARED)

        assert await resolver.resolve("watch.example.com") is None
        store.get_by_domain.assert_not_awaited()

    @pytest.mark.parametrize("host", ["localhost:3000", "127.0.0.1", None, ""])
    async def test_localhost_and_missing_host(self, host: str | None) -> None:
        store = AsyncMock()
        assert await DomainOwnershipResolver(store, SHARED).resolve(host) is None
        store.get_by_domain.assert_not_awaited()

    async def test_unbound_host(self) -> None:
        store = AsyncMock()
        store.get_by_domain.return_value = None
        assert await DomainOwnershipResolver(store, SHARED).resolve("x.org") is None

    async def test_inactive_tenant_does_not_resolve(self) -> None:
        store = AsyncMock()
        store.get_by_domain.return_value = _tenant("x.org", TenantStatus.SUSPENDED)
        assert await DomainOwnershipResolver(store, SHARED).resolve("x.org") is None

    async def test_lookup_error_returns_none(self) -> None:
        store = AsyncMock()
        store.get_by_domain.side_effect = OperationalError("SELECT", {}, Exception())
        assert await DomainOwnershipResolver(store, SHARED).resolve("x.org") is None

    def test_is_tenant_host(self) -> None:
        resolver = DomainOwnershipResolver(AsyncMock(), SHARED)
        assert resolver.is_tenant_host("shop.example.org")
        assert not resolver.is_tenant_host("acme.watch.example.com")
        assert not resolver.is_tenant_host("localhost")
