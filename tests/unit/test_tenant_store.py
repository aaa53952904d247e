"""Tests for TenantStore (mocked AsyncSession)."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from tenant_access.config import DEFAULT_APP_ID
from tenant_access.errors import ProvisioningConflictError, TenantNotFoundError
from tenant_access.storage.orm import Tenant, TenantStatus
from tenant_access.storage.tenant_repository import TenantStore


def _mock_session(found: Tenant | None = None) -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    session.begin_nested = MagicMock(return_value=MagicMock())
    result = MagicMock()
    result.scalar_one_or_none.return_value = found
    session.execute.return_value = result
    return session


def _tenant(**overrides: object) -> Tenant:
    fields: dict[str, object] = {
        "id": uuid.uuid4(),
        "owner_user_id": "owner-1",
        "app_id": DEFAULT_APP_ID,
        "is_pro": False,
        "status": TenantStatus.ACTIVE,
    }
    fields.update(overrides)
    return Tenant(**fields)


class TestLookups:
    async def test_get_by_owner(self) -> None:
        tenant = _tenant()
        session = _mock_session(tenant)

        assert await TenantStore(session).get_by_owner("owner-1") is tenant
        assert "tenants.owner_user_id" in str(session.execute.call_args[0][0])

    async def test_get_by_domain_missing(self) -> None:
        session = _mock_session(None)
        assert await TenantStore(session).get_by_domain("shop.example.org") is None


class TestCreate:
    async def test_create_inside_savepoint(self) -> None:
        session = _mock_session()
        tenant = await TenantStore(session).create("owner-1")

        session.begin_nested.assert_called_once()
        session.add.assert_called_once_with(tenant)
        session.flush.assert_awaited_once()
        assert tenant.owner_user_id == "owner-1"
        assert tenant.app_id == DEFAULT_APP_ID
        assert tenant.status == TenantStatus.ACTIVE
        assert tenant.is_pro is False

    async def test_unique_violation_becomes_conflict(self) -> None:
        session = _mock_session()
        session.flush.side_effect = IntegrityError("INSERT", {}, Exception("dup"))

        with pytest.raises(ProvisioningConflictError) as exc_info:
            await TenantStore(session).create("owner-1")
        assert exc_info.value.owner_user_id == "owner-1"


class TestMutations:
    async def test_set_primary_domain_normalizes(self) -> None:
        tenant = _tenant()
        session = _mock_session(tenant)

        updated = await TenantStore(session).set_primary_domain(
            tenant.id, " Shop.Example.ORG. "
        )

        assert updated is True
        assert tenant.primary_domain == "shop.example.org"

    async def test_clear_primary_domain(self) -> None:
        tenant = _tenant(primary_domain="shop.example.org")
        session = _mock_session(tenant)

        await TenantStore(session).set_primary_domain(tenant.id, None)

        assert tenant.primary_domain is None

    async def test_set_primary_domain_missing_tenant(self) -> None:
        session = _mock_session(None)
        assert await TenantStore(session).set_primary_domain(uuid.uuid4(), "x.org") is False
        session.flush.assert_not_awaited()

    async def test_update_status(self) -> None:
        tenant = _tenant()
        session = _mock_session(tenant)

        assert await TenantStore(session).update_status(tenant.id, TenantStatus.SUSPENDED)
        assert tenant.status == TenantStatus.SUSPENDED
        assert tenant.is_active is False


class TestActivatePro:
    async def test_app_id_defaults_to_tenant_id(self) -> None:
        tenant = _tenant()
        session = _mock_session(tenant)
        now = datetime(2026, 1, 1, tzinfo=UTC)

        result = await TenantStore(session).activate_pro(tenant.id, now=now)

        assert result.is_pro is True
        assert result.app_id == str(tenant.id)
        assert result.pro_activated_at == now

    async def test_idempotent_when_already_pro(self) -> None:
        activated = datetime(2025, 6, 1, tzinfo=UTC)
        tenant = _tenant(is_pro=True, app_id="my-app", pro_activated_at=activated)
        session = _mock_session(tenant)

        result = await TenantStore(session).activate_pro(tenant.id, "my-app")

        assert result.pro_activated_at == activated
        session.flush.assert_not_awaited()

    async def test_missing_tenant(self) -> None:
        session = _mock_session(None)
        with pytest.raises(TenantNotFoundError):
            await TenantStore(session).activate_pro(uuid.uuid4())
