"""Supabase Auth adapter."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

import httpx
from supabase import AsyncClient

from delivery_tracker.domain.identity import Identity
from delivery_tracker.services.auth import AuthClient, AuthenticationError

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseAuthClient(AuthClient):
    """Auth client backed by Supabase Auth, with an httpx health probe."""

    client: AsyncClient
    supabase_url: str
    api_key: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, client: AsyncClient, supabase_url: str, api_key: str
    ) -> "SupabaseAuthClient":
        """Create an auth client with a managed httpx session."""
        return cls(
            client=client,
            supabase_url=supabase_url.rstrip("/"),
            api_key=api_key,
            http_client=httpx.AsyncClient(),
        )

    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with email and password."""
        response = await self.client.auth.sign_in_with_password(
            {"email": email, "password": password}
        )
        if response.user is None:
            raise AuthenticationError("Invalid email or password.")
        return _to_identity(response.user)

    async def sign_out(self) -> None:
        """Sign out of the current session."""
        await self.client.auth.sign_out()

    async def current_identity(self) -> Identity | None:
        """Return the identity of the stored session, if any."""
        session = await self.client.auth.get_session()
        if session is None:
            return None
        return _to_identity(session.user)

    def on_identity_change(
        self, callback: Callable[[Identity | None], None]
    ) -> Callable[[], None]:
        """Forward Supabase auth state changes as identities."""

        def handle(_event: object, session: object | None) -> None:
            user = getattr(session, "user", None)
            callback(_to_identity(user) if user is not None else None)

        subscription = self.client.auth.on_auth_state_change(handle)
        return subscription.unsubscribe

    async def check_connection(self) -> bool:
        """Probe the Supabase Auth health endpoint."""
        try:
            response = await self.http_client.get(
                f"{self.supabase_url}/auth/v1/health",
                headers={"apikey": self.api_key},
                timeout=10,
            )
        except httpx.HTTPError:
            _logger.warning("Supabase is unreachable at %s", self.supabase_url)
            return False
        return response.is_success

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()


def _to_identity(user: object) -> Identity:
    return Identity(id=UUID(str(user.id)), email=getattr(user, "email", None))
