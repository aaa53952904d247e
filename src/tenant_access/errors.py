"""Domain-specific exceptions for tenant resolution and authorization.

Only ``UnauthorizedError`` and ``ForbiddenError`` are meant to reach the
client. The others are recovered where they are raised (resolution falls
through to the next source, provisioning re-fetches the winning row).
"""

from __future__ import annotations

import uuid


class AccessError(Exception):
    """Base class for tenant-access errors."""


class IdentityUnverifiedError(AccessError):
    """Session token is missing, malformed, expired, or rejected."""


class TenantNotFoundError(AccessError):
    """An explicit tenant reference (header or domain) points at nothing."""

    def __init__(self, tenant_ref: uuid.UUID | str) -> None:
        self.tenant_ref = tenant_ref
        super().__init__(f"Tenant not found: {tenant_ref}")


class ProvisioningConflictError(AccessError):
    """Another request inserted the tenant for this owner first."""

    def __init__(self, owner_user_id: str) -> None:
        self.owner_user_id = owner_user_id
        super().__init__(f"Tenant for owner {owner_user_id} already exists")


class UnknownRoleError(AccessError):
    """Role name has no row in ``roles``."""

    def __init__(self, role_name: str) -> None:
        self.role_name = role_name
        super().__init__(f"Unknown role: {role_name}")


class UnauthorizedError(AccessError):
    """No identity was established for a protected operation."""

    def __init__(self, message: str = "Authentication required") -> None:
        self.message = message
        super().__init__(message)


class ForbiddenError(AccessError):
    """Identity is known but lacks the required role or permission."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
