"""CLI for role, assignment, and tenant management.

Usage::

    uv run python -m scripts.manage_access <command> [options]

Commands:
    seed-roles      Create built-in roles with their default permissions
    list-roles      List roles and their permissions
    create-role     Create a role or add permissions to it
    delete-role     Delete a role with its permissions and assignments
    assign-role     Grant a role to a user within a tenant
    revoke-role     Revoke a role from a user within a tenant
    list-tenants    List tenants
    set-domain      Bind or clear a tenant's custom domain
    activate-pro    Switch a tenant to Pro
    set-status      Set tenant status (active, suspended, deleted)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from collections.abc import AsyncIterator, Callable, Coroutine
from contextlib import asynccontextmanager
from typing import Any, NoReturn

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tenant_access.config import settings
from tenant_access.errors import TenantNotFoundError, UnknownRoleError
from tenant_access.storage.orm import TenantStatus
from tenant_access.storage.role_repository import RoleRepository
from tenant_access.storage.tenant_repository import TenantStore


@asynccontextmanager
async def open_session() -> AsyncIterator[AsyncSession]:
    """Session for one CLI command; committed when the command succeeds.

    Uses the same database URL as the app.
    """
    engine = create_async_engine(settings.database_url)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with factory() as session:
            yield session
            await session.commit()
    finally:
        await engine.dispose()


def _fail(message: str) -> NoReturn:
    print(message, file=sys.stderr)
    sys.exit(1)


def _tenant_id(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid tenant id: {value}") from None


# ── Roles ──────────────────────────────────────────────────────


async def seed_roles(_args: argparse.Namespace) -> None:
    """Create built-in roles with default permissions (idempotent)."""
    async with open_session() as session:
        await RoleRepository(session).setup_default_roles()
    print("Default roles configured.")


async def list_roles(_args: argparse.Namespace) -> None:
    """List roles with their permissions."""
    async with open_session() as session:
        roles = await RoleRepository(session).list_roles()

    if not roles:
        print("No roles found.")
        return

    print("Roles:")
    for i, role in enumerate(roles, 1):
        permissions = sorted(p.permission for p in role.permissions)
        print(f"  {i}. {role.name} ({', '.join(permissions) or 'no permissions'})")


async def create_role(args: argparse.Namespace) -> None:
    """Create a role or add missing permissions to it."""
    permissions = [p.strip() for p in args.permissions.split(",") if p.strip()]
    async with open_session() as session:
        created = await RoleRepository(session).create_role_or_add_permissions(
            args.name, permissions
        )
    verb = "created" if created else "updated"
    print(f"Role {verb}: {args.name}")


async def delete_role(args: argparse.Namespace) -> None:
    """Delete a role with its permissions and assignments."""
    try:
        async with open_session() as session:
            await RoleRepository(session).delete_role(args.name)
    except UnknownRoleError:
        _fail(f"Role not found: {args.name}")
    print(f"Role deleted: {args.name}")


async def assign_role(args: argparse.Namespace) -> None:
    """Grant a role to a user within a tenant."""
    try:
        async with open_session() as session:
            if await TenantStore(session).get_by_id(args.tenant) is None:
                raise TenantNotFoundError(args.tenant)
            assigned = await RoleRepository(session).assign_role(
                args.user, args.role, args.tenant
            )
    except UnknownRoleError:
        _fail(f"Role not found: {args.role}")
    except TenantNotFoundError:
        _fail(f"Tenant not found: {args.tenant}")

    if assigned:
        print(f"Role {args.role} assigned to {args.user} in {args.tenant}")
    else:
        print(f"User {args.user} already has role {args.role} in {args.tenant}")


async def revoke_role(args: argparse.Namespace) -> None:
    """Revoke a role from a user within a tenant."""
    try:
        async with open_session() as session:
            revoked = await RoleRepository(session).revoke_role(
                args.user, args.role, args.tenant
            )
    except UnknownRoleError:
        _fail(f"Role not found: {args.role}")

    if revoked:
        print(f"Role {args.role} revoked from {args.user} in {args.tenant}")
    else:
        print(f"User {args.user} does not have role {args.role} in {args.tenant}")


# ── Tenants ────────────────────────────────────────────────────


async def list_tenants(args: argparse.Namespace) -> None:
    """List tenants, oldest first."""
    async with open_session() as session:
        tenants = await TenantStore(session).list_all(limit=args.limit)

    if not tenants:
        print("No tenants found.")
        return

    print("Tenants:")
    for i, tenant in enumerate(tenants, 1):
        pro = " pro" if tenant.is_pro else ""
        domain = f" domain={tenant.primary_domain}" if tenant.primary_domain else ""
        print(
            f"  {i}. {tenant.id} owner={tenant.owner_user_id} "
            f"app={tenant.app_id} ({tenant.status}{pro}){domain}"
        )


async def set_domain(args: argparse.Namespace) -> None:
    """Bind or clear a tenant's custom domain."""
    domain = None if args.clear else args.domain
    async with open_session() as session:
        updated = await TenantStore(session).set_primary_domain(args.tenant, domain)
    if not updated:
        _fail(f"Tenant not found: {args.tenant}")
    print(f"Domain for {args.tenant}: {domain or '(none)'}")


async def activate_pro(args: argparse.Namespace) -> None:
    """Switch a tenant to Pro."""
    try:
        async with open_session() as session:
            tenant = await TenantStore(session).activate_pro(args.tenant, args.app_id)
    except TenantNotFoundError:
        _fail(f"Tenant not found: {args.tenant}")
    print(f"Tenant {tenant.id} is Pro (app: {tenant.app_id})")


async def set_status(args: argparse.Namespace) -> None:
    """Set tenant status."""
    async with open_session() as session:
        updated = await TenantStore(session).update_status(
            args.tenant, TenantStatus(args.status)
        )
    if not updated:
        _fail(f"Tenant not found: {args.tenant}")
    print(f"Tenant {args.tenant} status: {args.status}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Role and tenant management CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    # seed-roles
    sub.add_parser("seed-roles", help="Create built-in roles")

    # list-roles
    sub.add_parser("list-roles", help="List roles and permissions")

    # create-role
    p = sub.add_parser("create-role", help="Create role or add permissions")
    p.add_argument("--name", required=True, help="Role name")
    p.add_argument(
        "--permissions",
        default="",
        help="Comma-separated: events:read,events:create",
    )

    # delete-role
    p = sub.add_parser("delete-role", help="Delete a role")
    p.add_argument("--name", required=True, help="Role name")

    # assign-role / revoke-role
    for name, text in (("assign-role", "Grant"), ("revoke-role", "Revoke")):
        p = sub.add_parser(name, help=f"{text} a role within a tenant")
        p.add_argument("--user", required=True, help="User id")
        p.add_argument("--role", required=True, help="Role name")
        p.add_argument("--tenant", required=True, type=_tenant_id, help="Tenant id")

    # list-tenants
    p = sub.add_parser("list-tenants", help="List tenants")
    p.add_argument("--limit", type=int, default=100, help="Max rows")

    # set-domain
    p = sub.add_parser("set-domain", help="Bind or clear a custom domain")
    p.add_argument("--tenant", required=True, type=_tenant_id, help="Tenant id")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--domain", help="Host name, e.g. tickets.example.org")
    group.add_argument("--clear", action="store_true", help="Remove the binding")

    # activate-pro
    p = sub.add_parser("activate-pro", help="Switch a tenant to Pro")
    p.add_argument("--tenant", required=True, type=_tenant_id, help="Tenant id")
    p.add_argument("--app-id", default=None, help="App id (default: tenant id)")

    # set-status
    p = sub.add_parser("set-status", help="Set tenant status")
    p.add_argument("--tenant", required=True, type=_tenant_id, help="Tenant id")
    p.add_argument(
        "--status", required=True, choices=[s.value for s in TenantStatus]
    )

    return parser


COMMANDS: dict[str, Callable[[argparse.Namespace], Coroutine[Any, Any, None]]] = {
    "seed-roles": seed_roles,
    "list-roles": list_roles,
    "create-role": create_role,
    "delete-role": delete_role,
    "assign-role": assign_role,
    "revoke-role": revoke_role,
    "list-tenants": list_tenants,
    "set-domain": set_domain,
    "activate-pro": activate_pro,
    "set-status": set_status,
}


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to command handler."""
    args = build_parser().parse_args(argv)
    asyncio.run(COMMANDS[args.command](args))


if __name__ == "__main__":
    main()
