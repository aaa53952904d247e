"""Tests for /api/v1/roles administration endpoints."""

from httpx import AsyncClient

from tenant_access.errors import UnknownRoleError
from tenant_access.storage.orm import Role, RolePermission
from tests.unit.test_api.api_fakes import (
    ADMIN_TOKEN,
    NOROLE_TOKEN,
    VIEWER_TOKEN,
    ApiMocks,
    auth,
)


class TestListRoles:
    async def test_viewer_can_read(
        self, client: AsyncClient, api_mocks: ApiMocks
    ) -> None:
        role = Role(name="viewer")
        role.permissions = [
            RolePermission(permission="tickets:read"),
            RolePermission(permission="events:read"),
        ]
        api_mocks.repo.list_roles.return_value = [role]

        response = await client.get("/api/v1/roles", headers=auth(VIEWER_TOKEN))

        assert response.status_code == 200
        assert response.json() == [
            {"name": "viewer", "permissions": ["events:read", "tickets:read"]}
        ]

    async def test_user_without_roles_forbidden(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/roles", headers=auth(NOROLE_TOKEN))

        assert response.status_code == 403
        assert response.json()["detail"] == (
            "Requires permission: rolesandpermissions:read"
        )

    async def test_anonymous_unauthorized(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/roles")
        assert response.status_code == 401


class TestUpsertRole:
    async def test_create_returns_201(
        self, client: AsyncClient, api_mocks: ApiMocks
    ) -> None:
        api_mocks.repo.create_role_or_add_permissions.return_value = True
        api_mocks.repo.get_permissions_for_role.return_value = {"events:read"}

        response = await client.put(
            "/api/v1/roles/editor",
            json={"permissions": ["events:read"]},
            headers=auth(ADMIN_TOKEN),
        )

        assert response.status_code == 201
        assert response.json() == {
            "name": "editor",
            "created": True,
            "permissions": ["events:read"],
        }

    async def test_existing_role_returns_200(
        self, client: AsyncClient, api_mocks: ApiMocks
    ) -> None:
        api_mocks.repo.create_role_or_add_permissions.return_value = False
        api_mocks.repo.get_permissions_for_role.return_value = {
            "events:read",
            "events:update",
        }

        response = await client.put(
            "/api/v1/roles/editor",
            json={"permissions": ["events:update"]},
            headers=auth(ADMIN_TOKEN),
        )

        assert response.status_code == 200
        assert response.json()["permissions"] == ["events:read", "events:update"]

    async def test_malformed_permission_rejected(
        self, client: AsyncClient, api_mocks: ApiMocks
    ) -> None:
        response = await client.put(
            "/api/v1/roles/editor",
            json={"permissions": ["no colon here"]},
            headers=auth(ADMIN_TOKEN),
        )

        assert response.status_code == 422
        api_mocks.repo.create_role_or_add_permissions.assert_not_awaited()

    async def test_viewer_cannot_create(
        self, client: AsyncClient, api_mocks: ApiMocks
    ) -> None:
        response = await client.put(
            "/api/v1/roles/editor", json={"permissions": []}, headers=auth(VIEWER_TOKEN)
        )

        assert response.status_code == 403
        api_mocks.repo.create_role_or_add_permissions.assert_not_awaited()


class TestDeleteRole:
    async def test_delete(self, client: AsyncClient, api_mocks: ApiMocks) -> None:
        response = await client.delete(
            "/api/v1/roles/editor", headers=auth(ADMIN_TOKEN)
        )

        assert response.status_code == 204
        api_mocks.repo.delete_role.assert_awaited_once_with("editor")

    async def test_delete_unknown_is_404(
        self, client: AsyncClient, api_mocks: ApiMocks
    ) -> None:
        api_mocks.repo.delete_role.side_effect = UnknownRoleError("ghost")

        response = await client.delete("/api/v1/roles/ghost", headers=auth(ADMIN_TOKEN))

        assert response.status_code == 404
