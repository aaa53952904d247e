"""Tests for the built-in role hierarchy and signup service mapping."""

import pytest

from tenant_access.rbac.roles import (
    DEFAULT_ROLE_PERMISSIONS,
    ROLE_HIERARCHY,
    RoleName,
    Service,
    highest_role,
    parse_service,
    role_for_service,
    role_rank,
)


class TestHierarchy:
    def test_order(self) -> None:
        assert [str(r) for r in ROLE_HIERARCHY] == [
            "viewer",
            "moderator",
            "producer",
            "admin",
        ]

    @pytest.mark.parametrize(
        ("role", "rank"),
        [("viewer", 0), ("moderator", 1), ("producer", 2), ("admin", 3)],
    )
    def test_rank(self, role: str, rank: int) -> None:
        assert role_rank(role) == rank

    def test_unranked_role(self) -> None:
        assert role_rank("editor") == -1

    def test_every_builtin_role_has_defaults(self) -> None:
        assert set(DEFAULT_ROLE_PERMISSIONS) == set(RoleName)

    def test_admin_manages_roles(self) -> None:
        admin = DEFAULT_ROLE_PERMISSIONS[RoleName.ADMIN]
        assert {"rolesandpermissions:create", "tenant:assign"} <= admin


class TestHighestRole:
    def test_viewer_and_producer(self) -> None:
        assert highest_role(["viewer", "producer"]) == "producer"

    def test_unknown_only(self) -> None:
        assert highest_role(["unknown_role"]) is None

    def test_empty(self) -> None:
        assert highest_role([]) is None

    def test_unknown_ignored_among_ranked(self) -> None:
        assert highest_role(["superuser", "moderator"]) == "moderator"

    def test_order_independent(self) -> None:
        assert highest_role({"admin", "viewer", "moderator"}) == "admin"


class TestServiceMapping:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("viewer", Service.VIEWER),
            ("producer", Service.PRODUCER),
            (" Producer ", Service.PRODUCER),
            ("admin", Service.ADMIN),
        ],
    )
    def test_parse_known(self, raw: str, expected: Service) -> None:
        assert parse_service(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "superadmin", "produce"])
    def test_unknown_falls_back_to_viewer(self, raw: str | None) -> None:
        """Unrecognized services get the least privileged role."""
        assert parse_service(raw) == Service.VIEWER
        assert role_for_service(parse_service(raw)) == RoleName.VIEWER

    def test_role_for_service(self) -> None:
        assert role_for_service(Service.PRODUCER) == RoleName.PRODUCER
        assert role_for_service(Service.ADMIN) == RoleName.ADMIN
