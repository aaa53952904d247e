"""Built-in roles, their hierarchy, and default permission sets."""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

import structlog

logger = structlog.get_logger()


class RoleName(StrEnum):
    VIEWER = "viewer"
    MODERATOR = "moderator"
    PRODUCER = "producer"
    ADMIN = "admin"


# Lowest privilege first; position is the rank.
ROLE_HIERARCHY: tuple[RoleName, ...] = (
    RoleName.VIEWER,
    RoleName.MODERATOR,
    RoleName.PRODUCER,
    RoleName.ADMIN,
)


class Service(StrEnum):
    """Which front end a user signed up through."""

    VIEWER = "viewer"
    PRODUCER = "producer"
    ADMIN = "admin"


_SERVICE_ROLES: dict[Service, RoleName] = {
    Service.VIEWER: RoleName.VIEWER,
    Service.PRODUCER: RoleName.PRODUCER,
    Service.ADMIN: RoleName.ADMIN,
}


def _crud(resource: str) -> list[str]:
    return [f"{resource}:{action}" for action in ("create", "read", "update", "delete")]


DEFAULT_ROLE_PERMISSIONS: dict[RoleName, frozenset[str]] = {
    RoleName.ADMIN: frozenset(
        [
            *_crud("tickets"),
            *_crud("events"),
            *_crud("sales"),
            *_crud("users"),
            *_crud("settings"),
            *_crud("billing"),
            *_crud("rolesandpermissions"),
            "tenant:manage",
            "tenant:assign",
            "app:manage",
        ]
    ),
    RoleName.PRODUCER: frozenset(
        [
            *_crud("tickets"),
            *_crud("events"),
            *_crud("sales"),
            "users:read",
            "users:update",
            "settings:read",
            "settings:update",
            "billing:read",
            "billing:update",
            "rolesandpermissions:read",
        ]
    ),
    RoleName.MODERATOR: frozenset(
        [
            "tickets:read",
            "tickets:update",
            "events:read",
            "events:update",
            "sales:read",
            "users:read",
            "settings:read",
        ]
    ),
    RoleName.VIEWER: frozenset(
        [
            "tickets:read",
            "events:read",
            "sales:read",
            "users:read",
            "settings:read",
            "billing:read",
            "rolesandpermissions:read",
        ]
    ),
}


def role_rank(role: str) -> int:
    """Position of ``role`` in the hierarchy, or -1 for unranked names."""
    try:
        return ROLE_HIERARCHY.index(RoleName(role))
    except ValueError:
        return -1


def highest_role(roles: Iterable[str]) -> str | None:
    """Return the most privileged ranked role, or None.

    Unranked names never win, even when they are the only input.

    Example::

        highest_role(["viewer", "producer"])  # "producer"
        highest_role(["unknown_role"])        # None
    """
    best: str | None = None
    best_rank = -1
    for role in roles:
        rank = role_rank(role)
        if rank > best_rank:
            best, best_rank = ROLE_HIERARCHY[rank].value, rank
    return best


def parse_service(value: str | None) -> Service:
    """Validate a signup service string at the boundary.

    Unknown or missing values map to ``Service.VIEWER``, the least
    privileged option.
    """
    try:
        return Service((value or "").strip().lower())
    except ValueError:
        logger.warning(
            "unknown_signup_service", service=value, fallback=str(Service.VIEWER)
        )
        return Service.VIEWER


def role_for_service(service: Service) -> RoleName:
    """Default role granted on signup through ``service``."""
    return _SERVICE_ROLES[service]
