"""Tests for the pure authorization guard."""

import pytest

from tenant_access.errors import ForbiddenError, UnauthorizedError
from tenant_access.rbac.aggregator import AccessGrant
from tenant_access.rbac.guard import (
    AccessRequirement,
    authorize,
    has_any_permission,
    has_any_role,
    has_permission,
    has_role,
    has_role_at_least,
)

PRODUCER_GRANT = AccessGrant(
    roles=frozenset({"producer"}),
    permissions=frozenset({"events:create", "events:read"}),
    highest_role="producer",
)


class TestPredicates:
    def test_has_role(self) -> None:
        assert has_role({"viewer"}, "viewer")
        assert not has_role({"viewer"}, "admin")

    def test_has_any_role(self) -> None:
        assert has_any_role({"viewer"}, ["admin", "viewer"])
        assert not has_any_role({"viewer"}, ["admin", "producer"])
        assert not has_any_role(set(), ["viewer"])

    def test_has_permission(self) -> None:
        assert has_permission({"events:read"}, "events:read")
        assert not has_permission({"events:read"}, "events:delete")

    def test_has_any_permission(self) -> None:
        assert has_any_permission({"events:read"}, ["events:read", "x:y"])
        assert not has_any_permission({"events:read"}, [])

    @pytest.mark.parametrize(
        ("roles", "minimum", "expected"),
        [
            ({"producer"}, "moderator", True),
            ({"producer"}, "producer", True),
            ({"moderator"}, "producer", False),
            ({"viewer", "admin"}, "producer", True),
            ({"custom"}, "viewer", False),
            ({"admin"}, "custom", False),
        ],
    )
    def test_has_role_at_least(
        self, roles: set[str], minimum: str, expected: bool
    ) -> None:
        assert has_role_at_least(roles, minimum) is expected


class TestAuthorize:
    def test_unauthorized_before_anything_else(self) -> None:
        """Empty identity is 401 even when the grant would satisfy the check."""
        with pytest.raises(UnauthorizedError):
            authorize("", PRODUCER_GRANT, AccessRequirement(roles=frozenset({"producer"})))

    def test_unauthorized_for_empty_requirement(self) -> None:
        with pytest.raises(UnauthorizedError):
            authorize("", AccessGrant(), AccessRequirement())

    def test_identity_only_requirement_allows(self) -> None:
        authorize("u1", AccessGrant(), AccessRequirement())

    def test_role_allowed(self) -> None:
        authorize(
            "u1",
            PRODUCER_GRANT,
            AccessRequirement(roles=frozenset({"admin", "producer"})),
        )

    def test_missing_role_forbidden(self) -> None:
        with pytest.raises(ForbiddenError, match="Requires role: admin"):
            authorize("u1", PRODUCER_GRANT, AccessRequirement(roles=frozenset({"admin"})))

    def test_missing_permission_forbidden(self) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            authorize(
                "u1",
                PRODUCER_GRANT,
                AccessRequirement(permissions=frozenset({"users:delete"})),
            )
        assert "users:delete" in exc_info.value.message

    def test_minimum_role(self) -> None:
        authorize("u1", PRODUCER_GRANT, AccessRequirement(minimum_role="moderator"))
        with pytest.raises(ForbiddenError, match="admin or higher"):
            authorize("u1", PRODUCER_GRANT, AccessRequirement(minimum_role="admin"))

    def test_all_groups_must_hold(self) -> None:
        requirement = AccessRequirement(
            roles=frozenset({"producer"}),
            permissions=frozenset({"billing:delete"}),
        )
        with pytest.raises(ForbiddenError, match="billing:delete"):
            authorize("u1", PRODUCER_GRANT, requirement)

    def test_forbidden_is_not_unauthorized(self) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            authorize("u1", AccessGrant(), AccessRequirement(roles=frozenset({"viewer"})))
        assert not isinstance(exc_info.value, UnauthorizedError)
