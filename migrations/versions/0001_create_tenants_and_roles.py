"""create_tenants_and_roles

Creates tenants, roles, role_permissions, and user_roles, then seeds the
reserved system tenant that stands for "no tenant" / public resources.

Revision ID: 0001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SYSTEM_TENANT_ID = "00000000-0000-0000-0000-000000000000"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create tenancy and RBAC tables, seed the system tenant."""
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_user_id", sa.String(length=255), nullable=False),
        sa.Column("app_id", sa.String(length=255), nullable=False),
        sa.Column("is_pro", sa.Boolean(), nullable=False),
        sa.Column("pro_activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("primary_domain", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_tenants_owner_user_id", "tenants", ["owner_user_id"], unique=True
    )
    op.create_index(
        "ix_tenants_primary_domain", "tenants", ["primary_domain"], unique=True
    )
    op.create_index("ix_tenants_app_id", "tenants", ["app_id"])
    op.create_index("ix_tenants_status", "tenants", ["status"])

    op.create_table(
        "roles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_roles_name", "roles", ["name"], unique=True)

    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("role_id", sa.Uuid(), nullable=False),
        sa.Column("permission", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "role_id", "permission", name="uq_role_permissions_role_permission"
        ),
    )
    op.create_index(
        "ix_role_permissions_role_id", "role_permissions", ["role_id"]
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("role_id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "role_id", "tenant_id", name="uq_user_roles_user_role_tenant"
        ),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])
    op.create_index("ix_user_roles_role_id", "user_roles", ["role_id"])
    op.create_index("ix_user_roles_tenant_id", "user_roles", ["tenant_id"])
    op.create_index(
        "ix_user_roles_user_tenant", "user_roles", ["user_id", "tenant_id"]
    )

    conn = op.get_bind()
    conn.execute(
        sa.text(
            "INSERT INTO tenants (id, owner_user_id, app_id, is_pro, status) "
            "VALUES (:id, :owner, :app_id, false, 'active') "
            "ON CONFLICT (id) DO NOTHING"
        ),
        {"id": SYSTEM_TENANT_ID, "owner": "system", "app_id": "public"},
    )


def downgrade() -> None:
    """Drop tenancy and RBAC tables."""
    op.drop_table("user_roles")
    op.drop_table("role_permissions")
    op.drop_table("roles")
    op.drop_table("tenants")
