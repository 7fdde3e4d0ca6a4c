"""Delivery-person worklist flow."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import UUID

from delivery_tracker.domain.deliveries import DeliveryRecord, DeliveryStatus
from delivery_tracker.services.capture import CaptureSession
from delivery_tracker.services.deliveries import DeliveryStore
from delivery_tracker.services.notifications import Notifier, info

_logger = logging.getLogger(__name__)


class DeliveryNotPendingError(LookupError):
    """Raised when a completion is started for an unknown or finished delivery."""


@dataclass
class DeliveryWorklist:
    """Lists pending deliveries and completes them with a confirmation photo."""

    store: DeliveryStore
    notifier: Notifier
    session_factory: Callable[[], CaptureSession]
    active_delivery_id: UUID | None = field(default=None, init=False)
    session: CaptureSession | None = field(default=None, init=False)

    def pending(self) -> list[DeliveryRecord]:
        return self.store.pending()

    async def begin(self, delivery_id: UUID) -> CaptureSession:
        """Open a capture session for a pending delivery."""
        delivery = self.store.get_by_id(delivery_id)
        if delivery is None or delivery.status is not DeliveryStatus.PENDING:
            raise DeliveryNotPendingError(str(delivery_id))
        await self.cancel()
        _logger.info("Starting photo capture for delivery id=%s", delivery_id)
        session = self.session_factory()
        self.active_delivery_id = delivery_id
        self.session = session
        await session.start()
        return session

    async def confirm(self) -> bool:
        """Complete the active delivery with the frozen photo."""
        if self.session is None or self.active_delivery_id is None:
            raise DeliveryNotPendingError("No delivery is being completed")
        delivery_id = self.active_delivery_id
        photo = self.session.confirm()
        completed = await self.complete(delivery_id, photo)
        await self.cancel()
        return completed

    async def complete(self, delivery_id: UUID, photo: str) -> bool:
        """Complete a delivery with a photo captured elsewhere."""
        completed = await self.store.complete(delivery_id, photo)
        if completed:
            self.notifier.notify(
                info("Delivery completed", "The delivery has been marked as completed.")
            )
        return completed

    async def cancel(self) -> None:
        """Close the active capture session, if any."""
        session, self.session = self.session, None
        self.active_delivery_id = None
        if session is not None:
            await session.close()
