"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from delivery_tracker.config import Settings
from delivery_tracker.containers import AppContainer, assemble_container
from delivery_tracker.domain.capture import CameraConstraints
from delivery_tracker.domain.deliveries import (
    DeliveryRecord,
    DeliveryStatus,
    NewDelivery,
)
from delivery_tracker.domain.identity import Identity
from delivery_tracker.services.auth import AuthClient
from delivery_tracker.services.capture import CameraBackend, CameraHandle
from delivery_tracker.services.deliveries import (
    ChangeFeed,
    ChangeSubscription,
    DeliveryRepository,
)
from delivery_tracker.services.roles import RoleRepository

BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)

MANAGER = Identity(id=UUID("00000000-0000-0000-0000-00000000000a"), email="boss@example.com")
COURIER = Identity(id=UUID("00000000-0000-0000-0000-00000000000d"), email="rider@example.com")


@dataclass
class InMemoryDeliveryRepository(DeliveryRepository):
    """In-memory delivery repository for tests."""

    deliveries: dict[UUID, DeliveryRecord] = field(default_factory=dict)
    fail_with: Exception | None = None
    list_calls: int = 0

    def seed(
        self, client_name: str, status: DeliveryStatus = DeliveryStatus.PENDING
    ) -> DeliveryRecord:
        created_at = BASE_TIME + timedelta(minutes=len(self.deliveries))
        record = DeliveryRecord(
            id=uuid4(),
            address=f"{len(self.deliveries) + 1} Main St",
            client_name=client_name,
            status=status,
            created_at=created_at,
            completed_at=created_at if status is DeliveryStatus.COMPLETED else None,
            photo="data:image/jpeg;base64,AAA" if status is DeliveryStatus.COMPLETED else None,
        )
        self.deliveries[record.id] = record
        return record

    async def list_deliveries(self) -> list[DeliveryRecord]:
        self.list_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.deliveries.values())

    async def create_delivery(self, delivery: NewDelivery) -> UUID:
        if self.fail_with is not None:
            raise self.fail_with
        record = DeliveryRecord(
            id=uuid4(),
            address=delivery.address,
            client_name=delivery.client_name,
            notes=delivery.notes,
            status=DeliveryStatus.PENDING,
            created_at=BASE_TIME + timedelta(minutes=len(self.deliveries)),
        )
        self.deliveries[record.id] = record
        return record.id

    async def complete_delivery(
        self, delivery_id: UUID, photo: str, completed_at: datetime
    ) -> int:
        if self.fail_with is not None:
            raise self.fail_with
        current = self.deliveries.get(delivery_id)
        if current is None or current.status is not DeliveryStatus.PENDING:
            return 0
        self.deliveries[delivery_id] = replace(
            current,
            status=DeliveryStatus.COMPLETED,
            completed_at=completed_at,
            photo=photo,
        )
        return 1


@dataclass
class FakeChangeSubscription(ChangeSubscription):
    feed: "FakeChangeFeed"
    callback: Callable[[], None]

    async def unsubscribe(self) -> None:
        self.feed.callbacks.remove(self.callback)
        self.feed.unsubscribed += 1


@dataclass
class FakeChangeFeed(ChangeFeed):
    """Change feed whose events are fired by the test."""

    callbacks: list[Callable[[], None]] = field(default_factory=list)
    unsubscribed: int = 0
    fail_with: Exception | None = None

    async def subscribe(self, on_change: Callable[[], None]) -> FakeChangeSubscription:
        if self.fail_with is not None:
            raise self.fail_with
        self.callbacks.append(on_change)
        return FakeChangeSubscription(feed=self, callback=on_change)

    def emit(self) -> None:
        for callback in list(self.callbacks):
            callback()


@dataclass
class InMemoryRoleRepository(RoleRepository):
    """In-memory role assignments for tests."""

    roles: dict[UUID, list[str]] = field(default_factory=dict)
    fail_with: Exception | None = None
    calls: int = 0

    async def list_roles(self, user_id: UUID) -> list[str]:
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self.roles.get(user_id, [])


@dataclass
class FakeAuthClient(AuthClient):
    """Auth client with a fixed credential table."""

    accounts: dict[tuple[str, str], Identity] = field(default_factory=dict)
    current: Identity | None = None
    connected: bool = True
    sign_out_error: Exception | None = None
    callbacks: list[Callable[[Identity | None], None]] = field(default_factory=list)

    async def sign_in(self, email: str, password: str) -> Identity:
        identity = self.accounts.get((email, password))
        if identity is None:
            raise ValueError("Invalid login credentials")
        self.current = identity
        return identity

    async def sign_out(self) -> None:
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.current = None

    async def current_identity(self) -> Identity | None:
        return self.current

    def on_identity_change(
        self, callback: Callable[[Identity | None], None]
    ) -> Callable[[], None]:
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)

    async def check_connection(self) -> bool:
        return self.connected

    def emit(self, identity: Identity | None) -> None:
        for callback in list(self.callbacks):
            callback(identity)


@dataclass
class FakeCameraHandle(CameraHandle):
    """Camera handle returning fixed JPEG bytes."""

    frame: bytes = b"\xff\xd8\xff-fake-jpeg"
    capture_error: Exception | None = None
    released: bool = False

    async def capture_jpeg(self) -> bytes:
        if self.capture_error is not None:
            raise self.capture_error
        return self.frame

    async def release(self) -> None:
        self.released = True


@dataclass
class FakeCameraBackend(CameraBackend):
    """Camera backend that fails with queued errors before succeeding."""

    errors: list[Exception] = field(default_factory=list)
    handles: list[FakeCameraHandle] = field(default_factory=list)
    requests: list[CameraConstraints] = field(default_factory=list)

    async def open(self, constraints: CameraConstraints) -> FakeCameraHandle:
        self.requests.append(constraints)
        if self.errors:
            raise self.errors.pop(0)
        handle = FakeCameraHandle()
        self.handles.append(handle)
        return handle

    @property
    def open_handles(self) -> list[FakeCameraHandle]:
        return [handle for handle in self.handles if not handle.released]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon-key",
    )


@pytest.fixture
def delivery_repository() -> InMemoryDeliveryRepository:
    return InMemoryDeliveryRepository()


@pytest.fixture
def change_feed() -> FakeChangeFeed:
    return FakeChangeFeed()


@pytest.fixture
def role_repository() -> InMemoryRoleRepository:
    return InMemoryRoleRepository(
        roles={MANAGER.id: ["admin"], COURIER.id: ["delivery"]}
    )


@pytest.fixture
def auth_client() -> FakeAuthClient:
    return FakeAuthClient(
        accounts={
            ("boss@example.com", "secret"): MANAGER,
            ("rider@example.com", "secret"): COURIER,
        }
    )


@pytest.fixture
def camera_backend() -> FakeCameraBackend:
    return FakeCameraBackend()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    auth_client: FakeAuthClient,
    delivery_repository: InMemoryDeliveryRepository,
    change_feed: FakeChangeFeed,
    role_repository: InMemoryRoleRepository,
    camera_backend: FakeCameraBackend,
) -> AppContainer:
    return assemble_container(
        settings=settings,
        auth_client=auth_client,
        delivery_repository=delivery_repository,
        change_feed=change_feed,
        role_repository=role_repository,
        camera_backend=camera_backend,
    )
