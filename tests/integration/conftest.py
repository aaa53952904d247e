"""Shared fixtures for integration tests requiring a live PostgreSQL.

The schema is expected to be at head (``alembic upgrade head``).
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tenant_access.config import get_settings
from tenant_access.storage.orm import Tenant

# ── Engine ─────────────────────────────────────────────────────────


@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Engine from settings with room for concurrent provisioning."""
    engine = create_async_engine(
        get_settings().database_url,
        pool_size=10,
        max_overflow=0,
    )
    yield engine
    await engine.dispose()


# ── Session factory ────────────────────────────────────────────────


@pytest.fixture()
def session_factory(
    async_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Session with rollback ─────────────────────────────────────────


@pytest.fixture()
async def db_session(
    async_engine: AsyncEngine,
) -> AsyncGenerator[AsyncSession]:
    """Session wrapped in a transaction, rolled back after the test.

    For repository tests that ``flush()`` but never ``commit()``.
    Repository savepoints nest inside the outer transaction.
    """
    async with async_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)

        yield session

        await session.close()
        await trans.rollback()


@pytest.fixture()
async def seed_tenant(db_session: AsyncSession) -> Tenant:
    """A tenant row for assignment FKs."""
    tenant = Tenant(owner_user_id=f"owner-{uuid.uuid4().hex[:12]}")
    db_session.add(tenant)
    await db_session.flush()
    return tenant


# ── Committed owners (real commit + DELETE cleanup) ────────────────


@pytest.fixture()
async def fresh_owner(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[str]:
    """An owner id with no tenant yet; its tenant is deleted afterwards."""
    owner = f"it-owner-{uuid.uuid4().hex[:12]}"

    yield owner

    async with session_factory() as session:
        await session.execute(delete(Tenant).where(Tenant.owner_user_id == owner))
        await session.commit()
