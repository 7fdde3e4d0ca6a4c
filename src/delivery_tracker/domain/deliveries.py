"""Domain models for delivery records."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class DeliveryStatus(StrEnum):
    """Lifecycle status of a delivery. Only pending -> completed is allowed."""

    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class NewDelivery:
    """Fields supplied by a manager when creating a delivery."""

    address: str
    client_name: str
    notes: str | None = None


@dataclass(frozen=True)
class DeliveryRecord:
    """Represents a delivery stored in the database."""

    id: UUID
    address: str
    client_name: str
    status: DeliveryStatus
    created_at: datetime
    notes: str | None = None
    completed_at: datetime | None = None
    photo: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status is DeliveryStatus.COMPLETED
