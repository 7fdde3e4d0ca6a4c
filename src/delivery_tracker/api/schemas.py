"""Request and response models for the HTTP API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from delivery_tracker.domain.capture import CameraErrorKind, CaptureState
from delivery_tracker.domain.deliveries import DeliveryStatus, NewDelivery
from delivery_tracker.domain.notifications import NotificationLevel


class DeliveryIn(BaseModel):
    """Form fields for a new delivery."""

    address: str = Field(min_length=1)
    client_name: str = Field(min_length=1)
    notes: str | None = None

    def to_domain(self) -> NewDelivery:
        return NewDelivery(
            address=self.address.strip(),
            client_name=self.client_name.strip(),
            notes=self.notes or None,
        )


class DeliveryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    address: str
    client_name: str
    status: DeliveryStatus
    created_at: datetime
    notes: str | None = None
    completed_at: datetime | None = None
    photo: str | None = None


class DashboardOut(BaseModel):
    tab: str
    pending_count: int
    completed_count: int
    deliveries: list[DeliveryOut]


class WorklistOut(BaseModel):
    pending_count: int
    deliveries: list[DeliveryOut]


class SignInIn(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class IdentityOut(BaseModel):
    id: UUID
    email: str | None = None


class LandingOut(BaseModel):
    signed_in: bool
    email: str | None = None
    is_manager: bool
    is_delivery: bool
    loading: bool


class CompleteIn(BaseModel):
    """A confirmation photo as a data URL."""

    photo: str = Field(min_length=1)


class VisibilityIn(BaseModel):
    visible: bool


class CaptureOut(BaseModel):
    delivery_id: UUID | None
    state: CaptureState
    error_kind: CameraErrorKind | None = None
    error_message: str | None = None
    image: str | None = None


class CompletionOut(BaseModel):
    delivery_id: UUID
    completed: bool


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: NotificationLevel
    title: str
    description: str
    created_at: datetime
