"""Session token verification.

Verification is delegated to an external identity provider. This module
only defines the contract (``SessionAuthenticator``) and a Supabase
adapter for it; no token is decoded or checked locally.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol

import structlog
from supabase import Client, create_client

from tenant_access.errors import IdentityUnverifiedError

logger = structlog.get_logger()

BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class Identity:
    """Verified caller identity."""

    user_id: str
    email: str | None = None
    phone: str | None = None


class SessionAuthenticator(Protocol):
    async def authenticate(self, token: str) -> Identity | None:
        """Return the identity behind ``token``, or None if it is not valid."""
        ...


def parse_bearer(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` value."""
    if not authorization:
        return None
    if authorization[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX:
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None


class SupabaseSessionAuthenticator:
    """Verify session tokens against the Supabase auth API.

    The Supabase client is synchronous, so calls run in a worker thread.
    ``verify`` raises for rejected, expired and unverifiable tokens;
    ``authenticate`` turns that into None. Nothing is retried.
    """

    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def from_settings(
        cls, url: str | None, anon_key: str | None
    ) -> SupabaseSessionAuthenticator:
        """Build the adapter from project URL and anon key.

        Raises:
            ValueError: If either setting is missing.
        """
        if not url or not anon_key:
            raise ValueError(
                "Supabase URL and anon key are required for session verification"
            )
        return cls(create_client(url, anon_key))

    async def authenticate(self, token: str) -> Identity | None:
        if not token:
            return None
        try:
            return await self.verify(token)
        except IdentityUnverifiedError:
            return None

    async def verify(self, token: str) -> Identity:
        """Identity behind ``token``.

        Raises:
            IdentityUnverifiedError: Token is empty or rejected, or the
                provider could not be reached.
        """
        if not token:
            raise IdentityUnverifiedError("Empty session token")
        try:
            response = await asyncio.to_thread(self._client.auth.get_user, token)
        except Exception as exc:
            logger.warning("session_verification_failed", error=type(exc).__name__)
            raise IdentityUnverifiedError("Session could not be verified") from exc

        user = getattr(response, "user", None) if response is not None else None
        if user is None or not getattr(user, "id", None):
            logger.info("session_token_rejected")
            raise IdentityUnverifiedError("Session token rejected")

        return Identity(
            user_id=str(user.id),
            email=getattr(user, "email", None),
            phone=getattr(user, "phone", None),
        )
