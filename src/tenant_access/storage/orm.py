"""SQLAlchemy ORM models for tenants, roles, and assignments."""

import uuid
from datetime import datetime
from enum import StrEnum

import uuid_utils as uuid7_lib
from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from tenant_access.config import DEFAULT_APP_ID


def _uuid7() -> uuid.UUID:
    """Generate a UUIDv7 (time-ordered) for use as default PK value."""
    return uuid.UUID(bytes=uuid7_lib.uuid7().bytes)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class TenantStatus(StrEnum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


# ──────────────────────────────────────────────
# Tenants
# ──────────────────────────────────────────────


class Tenant(Base):
    """A producer's organization. Exactly one per owning user.

    ``owner_user_id`` carries the uniqueness constraint that makes
    first-access provisioning safe under concurrent requests.
    """

    __tablename__ = "tenants"

    def __repr__(self) -> str:
        return (
            f"<Tenant(id={self.id}, owner_user_id='{self.owner_user_id}', "
            f"status='{self.status}')>"
        )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid7)
    owner_user_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    app_id: Mapped[str] = mapped_column(
        String(255), default=DEFAULT_APP_ID, index=True
    )
    is_pro: Mapped[bool] = mapped_column(default=False)
    pro_activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    primary_domain: Mapped[str | None] = mapped_column(
        String(255), unique=True, index=True
    )
    status: Mapped[str] = mapped_column(
        String(50), default=TenantStatus.ACTIVE, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE


# ──────────────────────────────────────────────
# Roles & Permissions
# ──────────────────────────────────────────────


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid7)
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    permissions: Mapped[list["RolePermission"]] = relationship(
        back_populates="role", cascade="all, delete-orphan", passive_deletes=True
    )


class RolePermission(Base):
    """A permission string granted by a role.

    Permissions are not entities of their own: a permission exists
    only as long as some role grants it.
    """

    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint(
            "role_id", "permission", name="uq_role_permissions_role_permission"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid7)
    role_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"), index=True
    )
    permission: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    role: Mapped["Role"] = relationship(back_populates="permissions")


class UserRole(Base):
    """Tenant-scoped role assignment.

    A user may hold several roles in one tenant and the same role in
    many tenants; the (user, role, tenant) triple is unique.
    """

    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "role_id", "tenant_id", name="uq_user_roles_user_role_tenant"
        ),
        Index("ix_user_roles_user_tenant", "user_id", "tenant_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid7)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    role_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"), index=True
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    role: Mapped["Role"] = relationship()
