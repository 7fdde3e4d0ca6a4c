"""Identity and session management."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from delivery_tracker.domain.identity import Identity
from delivery_tracker.services.notifications import Notifier, error, info

_logger = logging.getLogger(__name__)

CONNECTION_ERROR_MESSAGE = (
    "Connection error. Check your internet connection or try again later."
)

IdentityListener = Callable[[Identity | None], Awaitable[None]]


class AuthenticationError(Exception):
    """Raised when signing in fails."""


class ConnectivityError(AuthenticationError):
    """Raised when the remote service cannot be reached at sign-in."""


class AuthClient(Protocol):
    """Interface for the remote authentication service."""

    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with an email and password."""

    async def sign_out(self) -> None:
        """End the current session."""

    async def current_identity(self) -> Identity | None:
        """Return the identity of the stored session, if any."""

    def on_identity_change(
        self, callback: Callable[[Identity | None], None]
    ) -> Callable[[], None]:
        """Register a session-changed callback and return an unsubscribe hook."""

    async def check_connection(self) -> bool:
        """Return whether the remote service is reachable."""


@dataclass
class IdentityService:
    """Tracks the current identity and notifies listeners when it changes."""

    client: AuthClient
    notifier: Notifier
    identity: Identity | None = None
    _listeners: list[IdentityListener] = field(default_factory=list, init=False)
    _unsubscribe: Callable[[], None] | None = field(default=None, init=False)
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    def add_listener(self, listener: IdentityListener) -> None:
        self._listeners.append(listener)

    async def start(self) -> None:
        """Load the stored session and follow remote session changes."""
        self._unsubscribe = self.client.on_identity_change(self._on_remote_change)
        try:
            identity = await self.client.current_identity()
        except Exception:
            _logger.exception("Failed to load the current session")
            self.notifier.notify(
                error(
                    "Authentication error",
                    "There was a problem initializing authentication.",
                )
            )
            return
        await self._set_identity(identity)

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def check_connection(self) -> bool:
        """Return whether the remote service is reachable."""
        try:
            return await self.client.check_connection()
        except Exception:
            _logger.exception("Connection check failed")
            return False

    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in, raising AuthenticationError with a user-facing message."""
        if not await self.check_connection():
            self.notifier.notify(error("Authentication error", CONNECTION_ERROR_MESSAGE))
            raise ConnectivityError(CONNECTION_ERROR_MESSAGE)
        try:
            identity = await self.client.sign_in(email, password)
        except Exception as exc:
            _logger.exception("Sign-in failed")
            message = _sign_in_error_message(exc)
            self.notifier.notify(error("Authentication error", message))
            raise AuthenticationError(message) from exc
        await self._set_identity(identity)
        self.notifier.notify(info("Welcome!", "You have signed in successfully."))
        return identity

    async def sign_out(self) -> None:
        """Sign out, keeping the session if the remote call fails."""
        try:
            await self.client.sign_out()
        except Exception as exc:
            _logger.exception("Sign-out failed")
            self.notifier.notify(error("Sign-out error", str(exc)))
            return
        await self._set_identity(None)
        self.notifier.notify(info("Signed out", "You have signed out successfully."))

    def _on_remote_change(self, identity: Identity | None) -> None:
        _logger.info(
            "Authentication state changed: %s",
            "signed in" if identity else "signed out",
        )
        task = asyncio.get_running_loop().create_task(self._set_identity(identity))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _set_identity(self, identity: Identity | None) -> None:
        if identity == self.identity:
            return
        self.identity = identity
        for listener in self._listeners:
            await listener(identity)


def _sign_in_error_message(exc: Exception) -> str:
    message = str(exc)
    if isinstance(exc, httpx.TransportError) or "network" in message.lower():
        return CONNECTION_ERROR_MESSAGE
    return message or "Invalid email or password."
