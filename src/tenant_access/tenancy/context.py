"""Request-scoped tenant context and the raw signals it is built from."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import StrEnum


class ResolvedFrom(StrEnum):
    DOMAIN = "domain"
    HEADER = "header"
    SESSION = "session"
    DEFAULT = "default"


@dataclass(frozen=True)
class TenantContext:
    """Which tenant a request acts within, and who acts.

    Built fresh per request, never persisted. ``tenant_id`` is always a
    real tenant or the system tenant. ``user_id`` is empty for
    unauthenticated requests.
    """

    user_id: str
    tenant_id: uuid.UUID
    tenant_owner_user_id: str
    app_id: str
    is_pro: bool
    resolved_from: ResolvedFrom

    @property
    def from_domain(self) -> bool:
        return self.resolved_from == ResolvedFrom.DOMAIN

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


@dataclass(frozen=True)
class RequestSignals:
    """Resolution inputs extracted from one HTTP request.

    Values are raw header strings; parsing and validation happen in the
    resolver so that the async and sync paths classify identically.
    """

    user_id: str = ""
    from_domain: bool = False
    domain_tenant_id: str | None = None
    tenant_header: str | None = None
    host: str | None = None
    # Forwarded by upstream middleware; only the sync path reads them.
    app_id: str | None = None
    tenant_owner_user_id: str | None = None
    is_pro: bool = False
