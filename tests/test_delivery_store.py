"""Tests for the delivery store."""

import asyncio
from datetime import UTC, datetime
from uuid import uuid4

import httpx

from delivery_tracker.domain.deliveries import DeliveryStatus, NewDelivery
from delivery_tracker.domain.notifications import NotificationLevel
from delivery_tracker.services.deliveries import DeliveryStore
from delivery_tracker.services.notifications import InMemoryNotifier
from tests.conftest import (
    COURIER,
    MANAGER,
    FakeChangeFeed,
    InMemoryDeliveryRepository,
)


def _store(
    repository: InMemoryDeliveryRepository | None = None,
    feed: FakeChangeFeed | None = None,
) -> tuple[DeliveryStore, InMemoryNotifier]:
    notifier = InMemoryNotifier()
    store = DeliveryStore(
        repository or InMemoryDeliveryRepository(),
        feed or FakeChangeFeed(),
        notifier,
        identity=MANAGER,
    )
    return store, notifier


def test_add_then_refresh_yields_one_pending_delivery() -> None:
    store, _ = _store()

    added = asyncio.run(
        store.add(NewDelivery(address="123 Main St", client_name="Acme", notes=""))
    )

    deliveries = store.list()
    assert added is True
    assert len(deliveries) == 1
    assert deliveries[0].client_name == "Acme"
    assert deliveries[0].status is DeliveryStatus.PENDING
    assert deliveries[0].completed_at is None
    assert deliveries[0].photo is None


def test_complete_sets_photo_and_timestamp() -> None:
    store, _ = _store()
    asyncio.run(
        store.add(NewDelivery(address="123 Main St", client_name="Acme", notes=""))
    )
    delivery_id = store.list()[0].id
    before = datetime.now(tz=UTC)

    completed = asyncio.run(store.complete(delivery_id, "data:image/jpeg;base64,XYZ"))

    record = store.get_by_id(delivery_id)
    assert completed is True
    assert record is not None
    assert record.status is DeliveryStatus.COMPLETED
    assert record.photo == "data:image/jpeg;base64,XYZ"
    assert record.completed_at is not None
    assert record.completed_at >= before


def test_second_complete_does_not_overwrite() -> None:
    repository = InMemoryDeliveryRepository()
    pending = repository.seed("Acme")
    store, notifier = _store(repository)
    asyncio.run(store.complete(pending.id, "data:image/jpeg;base64,FIRST"))
    first = store.get_by_id(pending.id)

    again = asyncio.run(store.complete(pending.id, "data:image/jpeg;base64,SECOND"))

    assert again is False
    assert store.get_by_id(pending.id) == first
    assert notifier.drain()[-1].title == "Delivery unavailable"


def test_complete_unknown_id_is_not_success() -> None:
    store, notifier = _store()

    completed = asyncio.run(store.complete(uuid4(), "data:image/jpeg;base64,XYZ"))

    assert completed is False
    assert notifier.drain()[0].level is NotificationLevel.ERROR


def test_get_by_id_unknown_returns_none() -> None:
    repository = InMemoryDeliveryRepository()
    known = repository.seed("Acme")
    store, _ = _store(repository)
    asyncio.run(store.refresh())

    assert store.get_by_id(uuid4()) is None
    found = store.get_by_id(known.id)
    assert found is not None
    assert found.id == known.id


def test_list_is_newest_first() -> None:
    repository = InMemoryDeliveryRepository()
    repository.seed("First")
    repository.seed("Second")
    repository.seed("Third", DeliveryStatus.COMPLETED)
    store, _ = _store(repository)

    asyncio.run(store.refresh())

    assert [d.client_name for d in store.list()] == ["Third", "Second", "First"]
    assert [d.client_name for d in store.pending()] == ["Second", "First"]
    assert [d.client_name for d in store.completed()] == ["Third"]


def test_refresh_failure_keeps_snapshot_and_notifies() -> None:
    repository = InMemoryDeliveryRepository()
    repository.seed("Acme")
    store, notifier = _store(repository)
    asyncio.run(store.refresh())
    repository.fail_with = httpx.ConnectError("offline")

    asyncio.run(store.refresh())

    assert [d.client_name for d in store.list()] == ["Acme"]
    notification = notifier.drain()[0]
    assert notification.level is NotificationLevel.ERROR
    assert "Connection error" in notification.description


def test_add_failure_leaves_state_unchanged() -> None:
    repository = InMemoryDeliveryRepository()
    repository.seed("Acme")
    store, notifier = _store(repository)
    asyncio.run(store.refresh())
    repository.fail_with = RuntimeError("insert rejected")

    added = asyncio.run(store.add(NewDelivery(address="1 Elm", client_name="Beta")))

    assert added is False
    assert [d.client_name for d in store.list()] == ["Acme"]
    assert notifier.drain()[0].description == "insert rejected"


def test_mutations_require_identity() -> None:
    repository = InMemoryDeliveryRepository()
    notifier = InMemoryNotifier()
    store = DeliveryStore(repository, FakeChangeFeed(), notifier)

    added = asyncio.run(store.add(NewDelivery(address="1 Elm", client_name="Beta")))

    assert added is False
    assert repository.deliveries == {}
    assert notifier.drain()[0].title == "Sign in required"


def test_remote_change_triggers_refresh() -> None:
    repository = InMemoryDeliveryRepository()
    feed = FakeChangeFeed()
    store, _ = _store(repository, feed)

    async def scenario() -> None:
        await store.start()
        repository.seed("From another session")
        feed.emit()
        await asyncio.sleep(0)
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert [d.client_name for d in store.list()] == ["From another session"]


def test_close_unsubscribes_and_ignores_changes() -> None:
    repository = InMemoryDeliveryRepository()
    feed = FakeChangeFeed()
    store, _ = _store(repository, feed)

    async def scenario() -> None:
        await store.start()
        await store.close()
        repository.seed("Late")
        await store.refresh()

    asyncio.run(scenario())

    assert feed.unsubscribed == 1
    assert feed.callbacks == []
    assert store.list() == []


def test_stale_refresh_is_discarded() -> None:
    repository = InMemoryDeliveryRepository()
    repository.seed("Old")
    store, _ = _store(repository)
    release_slow = asyncio.Event()
    original_list = repository.list_deliveries

    async def scenario() -> None:
        async def slow_list():  # type: ignore[no-untyped-def]
            snapshot = await original_list()
            await release_slow.wait()
            return snapshot

        repository.list_deliveries = slow_list  # type: ignore[method-assign]
        slow = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        repository.list_deliveries = original_list  # type: ignore[method-assign]
        repository.seed("New")
        await store.refresh()
        release_slow.set()
        await slow

    asyncio.run(scenario())

    assert sorted(d.client_name for d in store.list()) == ["New", "Old"]


def test_identity_change_rescopes_snapshot() -> None:
    repository = InMemoryDeliveryRepository()
    repository.seed("Acme")
    store, _ = _store(repository)
    asyncio.run(store.refresh())

    asyncio.run(store.set_identity(None))
    assert store.list() == []

    asyncio.run(store.set_identity(COURIER))
    assert [d.client_name for d in store.list()] == ["Acme"]


def test_subscribe_failure_is_notified() -> None:
    feed = FakeChangeFeed(fail_with=httpx.ConnectError("offline"))
    store, notifier = _store(feed=feed)

    asyncio.run(store.start())

    assert notifier.drain()[0].title == "Live updates unavailable"
