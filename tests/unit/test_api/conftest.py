"""Shared fixtures for API route tests."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from tenant_access.api.app import app
from tenant_access.api.deps import (
    get_authenticator,
    get_domain_resolver,
    get_provisioner,
    get_role_repository,
    get_tenant_resolver,
)
from tenant_access.storage.database import get_session
from tests.unit.test_api.api_fakes import ApiMocks, FakeAuthenticator, make_api_mocks


@pytest.fixture()
def api_mocks() -> ApiMocks:
    return make_api_mocks()


@pytest.fixture()
async def client(api_mocks: ApiMocks) -> AsyncGenerator[AsyncClient]:
    """AsyncClient with identity, tenancy, and storage stubbed out."""
    app.dependency_overrides[get_authenticator] = lambda: FakeAuthenticator()
    app.dependency_overrides[get_session] = lambda: api_mocks.session
    app.dependency_overrides[get_tenant_resolver] = lambda: api_mocks.resolver
    app.dependency_overrides[get_role_repository] = lambda: api_mocks.repo
    app.dependency_overrides[get_provisioner] = lambda: api_mocks.provisioner
    app.dependency_overrides[get_domain_resolver] = lambda: api_mocks.domains
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
