"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import AsyncClient

from delivery_tracker.adapters.opencv_camera import OpenCVCameraBackend
from delivery_tracker.adapters.supabase_auth_client import SupabaseAuthClient
from delivery_tracker.adapters.supabase_change_feed import SupabaseChangeFeed
from delivery_tracker.adapters.supabase_delivery_repository import (
    SupabaseDeliveryRepository,
)
from delivery_tracker.adapters.supabase_role_repository import SupabaseRoleRepository
from delivery_tracker.config import Settings
from delivery_tracker.domain.capture import CameraConstraints
from delivery_tracker.services.access import AccessGate
from delivery_tracker.services.auth import AuthClient, IdentityService
from delivery_tracker.services.capture import CameraBackend, CaptureSession
from delivery_tracker.services.dashboard import ManagerDashboard
from delivery_tracker.services.deliveries import (
    ChangeFeed,
    DeliveryRepository,
    DeliveryStore,
)
from delivery_tracker.services.notifications import InMemoryNotifier
from delivery_tracker.services.roles import RoleRepository, RoleResolver
from delivery_tracker.services.worklist import DeliveryWorklist


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    notifier: InMemoryNotifier
    identity_service: IdentityService
    role_resolver: RoleResolver
    access_gate: AccessGate
    delivery_store: DeliveryStore
    dashboard: ManagerDashboard
    worklist: DeliveryWorklist
    start_resources: Callable[[], Awaitable[None]]
    close_resources: Callable[[], Awaitable[None]]


def assemble_container(  # noqa: PLR0913
    settings: Settings,
    auth_client: AuthClient,
    delivery_repository: DeliveryRepository,
    change_feed: ChangeFeed,
    role_repository: RoleRepository,
    camera_backend: CameraBackend,
    camera_constraints: CameraConstraints | None = None,
    close_clients: Callable[[], Awaitable[None]] | None = None,
) -> AppContainer:
    """Wire services around the given adapters.

    The store subscribes before the stored session is loaded, so the first
    identity triggers exactly one initial fetch.
    """
    notifier = InMemoryNotifier(limit=settings.notification_limit)
    identity_service = IdentityService(auth_client, notifier)
    role_resolver = RoleResolver(role_repository)
    delivery_store = DeliveryStore(delivery_repository, change_feed, notifier)
    identity_service.add_listener(delivery_store.set_identity)
    identity_service.add_listener(_discard_result(role_resolver.resolve))
    constraints = camera_constraints or settings.camera_constraints()

    def new_capture_session() -> CaptureSession:
        return CaptureSession(camera_backend, notifier, constraints)

    worklist = DeliveryWorklist(delivery_store, notifier, new_capture_session)

    async def start_resources() -> None:
        await delivery_store.start()
        await identity_service.start()

    async def close_resources() -> None:
        await worklist.cancel()
        await delivery_store.close()
        await identity_service.close()
        if close_clients is not None:
            await close_clients()

    return AppContainer(
        settings=settings,
        notifier=notifier,
        identity_service=identity_service,
        role_resolver=role_resolver,
        access_gate=AccessGate(identity_service, role_resolver),
        delivery_store=delivery_store,
        dashboard=ManagerDashboard(delivery_store, notifier),
        worklist=worklist,
        start_resources=start_resources,
        close_resources=close_resources,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = AsyncClient(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    auth_client = SupabaseAuthClient.create(
        supabase_client,
        resolved_settings.supabase_url,
        resolved_settings.supabase_anon_key,
    )
    return assemble_container(
        settings=resolved_settings,
        auth_client=auth_client,
        delivery_repository=SupabaseDeliveryRepository(
            supabase_client, resolved_settings.deliveries_table
        ),
        change_feed=SupabaseChangeFeed(
            supabase_client, resolved_settings.deliveries_table
        ),
        role_repository=SupabaseRoleRepository(
            supabase_client, resolved_settings.roles_table
        ),
        camera_backend=OpenCVCameraBackend(
            index=resolved_settings.camera_index,
            jpeg_quality=resolved_settings.jpeg_quality,
        ),
        close_clients=auth_client.close,
    )


def _discard_result(
    resolve: Callable[..., Awaitable[object]],
) -> Callable[..., Awaitable[None]]:
    async def listener(identity: object) -> None:
        await resolve(identity)

    return listener
