"""Session verification and access requirements.

Note: the ``require_*`` factories live in ``auth.requirements`` and are NOT
re-exported here to avoid a circular import (auth → requirements →
api.deps → auth). Import directly:
``from tenant_access.auth.requirements import require_permission``.
"""

from tenant_access.auth.session import (
    Identity,
    SessionAuthenticator,
    SupabaseSessionAuthenticator,
    parse_bearer,
)

__all__ = [
    "Identity",
    "SessionAuthenticator",
    "SupabaseSessionAuthenticator",
    "parse_bearer",
]
