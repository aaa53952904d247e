"""Authorization decisions over already-fetched roles and permissions.

Everything here is pure: no I/O, no tenant lookups. Callers fetch an
``AccessGrant`` scoped to the resolved tenant and ask whether it
satisfies an ``AccessRequirement``.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass

import structlog

from tenant_access.errors import ForbiddenError, UnauthorizedError
from tenant_access.rbac.aggregator import AccessGrant
from tenant_access.rbac.roles import role_rank

logger = structlog.get_logger()


def has_role(roles: Collection[str], role: str) -> bool:
    return role in roles


def has_any_role(roles: Collection[str], required: Iterable[str]) -> bool:
    return any(role in roles for role in required)


def has_permission(permissions: Collection[str], permission: str) -> bool:
    return permission in permissions


def has_any_permission(permissions: Collection[str], required: Iterable[str]) -> bool:
    return any(permission in permissions for permission in required)


def has_role_at_least(roles: Iterable[str], minimum: str) -> bool:
    """True if any held role ranks at or above ``minimum``.

    An unranked ``minimum`` is never satisfied by rank.
    """
    floor = role_rank(minimum)
    if floor < 0:
        return False
    return any(role_rank(role) >= floor for role in roles)


@dataclass(frozen=True)
class AccessRequirement:
    """What an operation needs.

    ``roles`` and ``permissions`` are alternatives within each group (any
    one suffices); the groups themselves and ``minimum_role`` must all be
    satisfied. An empty requirement only demands an identity.
    """

    roles: frozenset[str] = frozenset()
    permissions: frozenset[str] = frozenset()
    minimum_role: str | None = None


def authorize(
    user_id: str,
    grant: AccessGrant,
    requirement: AccessRequirement,
) -> None:
    """Allow or deny one operation.

    Raises:
        UnauthorizedError: No identity. Checked before anything else.
        ForbiddenError: Identity lacks a required role or permission.
            The message names what is missing, never the tenant.
    """
    if not user_id:
        raise UnauthorizedError()

    missing: str | None = None
    if requirement.roles and not has_any_role(grant.roles, requirement.roles):
        missing = f"Requires role: {' or '.join(sorted(requirement.roles))}"
    elif requirement.permissions and not has_any_permission(
        grant.permissions, requirement.permissions
    ):
        missing = (
            f"Requires permission: {' or '.join(sorted(requirement.permissions))}"
        )
    elif requirement.minimum_role is not None and not has_role_at_least(
        grant.roles, requirement.minimum_role
    ):
        missing = f"Requires role {requirement.minimum_role} or higher"

    if missing is not None:
        logger.info("access_denied", user_id=user_id, reason=missing)
        raise ForbiddenError(missing)
