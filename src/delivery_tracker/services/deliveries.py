"""Delivery store kept in sync with the remote deliveries table."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

import httpx

from delivery_tracker.domain.deliveries import DeliveryRecord, DeliveryStatus, NewDelivery
from delivery_tracker.domain.identity import Identity
from delivery_tracker.domain.notifications import Notification
from delivery_tracker.services.notifications import Notifier, error

_logger = logging.getLogger(__name__)


class DeliveryRepository(Protocol):
    """Persistence interface for delivery records."""

    async def list_deliveries(self) -> list[DeliveryRecord]:
        """Return every delivery visible to the current identity."""

    async def create_delivery(self, delivery: NewDelivery) -> UUID:
        """Insert a pending delivery and return its id."""

    async def complete_delivery(
        self, delivery_id: UUID, photo: str, completed_at: datetime
    ) -> int:
        """Mark a pending delivery completed and return the affected row count."""


class ChangeSubscription(Protocol):
    """Handle for an active change subscription."""

    async def unsubscribe(self) -> None:
        """Stop receiving change notifications."""


class ChangeFeed(Protocol):
    """Source of change notifications for the deliveries collection."""

    async def subscribe(self, on_change: Callable[[], None]) -> ChangeSubscription:
        """Invoke on_change for every insert, update or delete."""


@dataclass
class DeliveryStore:
    """In-memory snapshot of deliveries that re-fetches on every remote change."""

    repository: DeliveryRepository
    change_feed: ChangeFeed
    notifier: Notifier
    identity: Identity | None = None
    _snapshot: tuple[DeliveryRecord, ...] = field(default=(), init=False)
    _issued: int = field(default=0, init=False)
    _applied: int = field(default=0, init=False)
    _subscription: ChangeSubscription | None = field(default=None, init=False)
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False)
    _closed: bool = field(default=False, init=False)

    def list(self) -> list[DeliveryRecord]:
        """Return the current snapshot, newest first."""
        return list(self._snapshot)

    def pending(self) -> list[DeliveryRecord]:
        return [d for d in self._snapshot if d.status is DeliveryStatus.PENDING]

    def completed(self) -> list[DeliveryRecord]:
        return [d for d in self._snapshot if d.status is DeliveryStatus.COMPLETED]

    def get_by_id(self, delivery_id: UUID) -> DeliveryRecord | None:
        """Return the delivery with this id from the snapshot, if present."""
        for delivery in self._snapshot:
            if delivery.id == delivery_id:
                return delivery
        return None

    async def start(self) -> None:
        """Subscribe to remote changes and load the initial snapshot."""
        if self._subscription is None:
            try:
                self._subscription = await self.change_feed.subscribe(
                    self._on_remote_change
                )
            except Exception as exc:
                _logger.exception("Failed to subscribe to delivery changes")
                self.notifier.notify(
                    _failure_notification("Live updates unavailable", exc)
                )
        if self.identity is not None:
            await self.refresh()

    async def close(self) -> None:
        """Tear down the subscription and drop in-flight refreshes."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if self._subscription is not None:
            subscription, self._subscription = self._subscription, None
            try:
                await subscription.unsubscribe()
            except Exception:
                _logger.exception("Failed to unsubscribe from delivery changes")

    async def set_identity(self, identity: Identity | None) -> None:
        """Rescope the store to a new identity."""
        if identity == self.identity:
            return
        self.identity = identity
        if identity is None:
            self._issued += 1
            self._applied = self._issued
            self._snapshot = ()
            return
        await self.refresh()

    async def refresh(self) -> None:
        """Re-fetch all deliveries and replace the snapshot."""
        identity = self.identity
        if self._closed or identity is None:
            return
        self._issued += 1
        token = self._issued
        try:
            records = await self.repository.list_deliveries()
        except Exception as exc:
            _logger.exception("Failed to load deliveries")
            self.notifier.notify(_failure_notification("Could not load deliveries", exc))
            return
        if self._closed or identity != self.identity or token < self._applied:
            _logger.debug("Discarding stale delivery refresh token=%s", token)
            return
        self._applied = token
        self._snapshot = tuple(
            sorted(records, key=lambda record: record.created_at, reverse=True)
        )

    async def add(self, delivery: NewDelivery) -> bool:
        """Insert a pending delivery and refresh on success."""
        if not self._has_identity():
            return False
        try:
            delivery_id = await self.repository.create_delivery(delivery)
        except Exception as exc:
            _logger.exception("Failed to create delivery")
            self.notifier.notify(_failure_notification("Could not add delivery", exc))
            return False
        _logger.info("Created delivery id=%s", delivery_id)
        await self.refresh()
        return True

    async def complete(self, delivery_id: UUID, photo: str) -> bool:
        """Mark a pending delivery completed with its confirmation photo."""
        if not self._has_identity():
            return False
        completed_at = datetime.now(tz=UTC)
        try:
            updated = await self.repository.complete_delivery(
                delivery_id, photo, completed_at
            )
        except Exception as exc:
            _logger.exception(
                "Failed to complete delivery", extra={"delivery_id": str(delivery_id)}
            )
            self.notifier.notify(
                _failure_notification("Could not complete delivery", exc)
            )
            return False
        if updated == 0:
            _logger.warning("No pending delivery matched id=%s", delivery_id)
            self.notifier.notify(
                error(
                    "Delivery unavailable",
                    "The delivery does not exist or was already completed.",
                )
            )
            return False
        _logger.info("Completed delivery id=%s", delivery_id)
        await self.refresh()
        return True

    def _on_remote_change(self) -> None:
        if self._closed:
            return
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _has_identity(self) -> bool:
        if self.identity is not None:
            return True
        self.notifier.notify(
            error("Sign in required", "Sign in before changing deliveries.")
        )
        return False


def _failure_notification(title: str, exc: Exception) -> Notification:
    if isinstance(exc, httpx.TransportError):
        return error(
            title,
            "Connection error. Check your internet connection and try again.",
        )
    return error(title, str(exc) or exc.__class__.__name__)
