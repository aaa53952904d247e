"""Role hierarchy, permission aggregation, and authorization guard.

Note: ``aggregator`` and ``guard`` are NOT re-exported here; they depend
on ``storage.role_repository``, which itself imports ``rbac.roles``.
Import them directly from their modules.
"""

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

__all__ = [
    "DEFAULT_ROLE_PERMISSIONS",
    "ROLE_HIERARCHY",
    "RoleName",
    "Service",
    "highest_role",
    "parse_service",
    "role_for_service",
    "role_rank",
]
