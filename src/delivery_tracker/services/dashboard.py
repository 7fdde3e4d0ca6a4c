"""Manager dashboard flow."""

from dataclasses import dataclass
from enum import StrEnum

from delivery_tracker.domain.deliveries import DeliveryRecord, NewDelivery
from delivery_tracker.services.deliveries import DeliveryStore
from delivery_tracker.services.notifications import Notifier, info


class DashboardTab(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class DashboardView:
    """Deliveries for the selected tab plus status counts."""

    tab: DashboardTab
    deliveries: list[DeliveryRecord]
    pending_count: int
    completed_count: int


@dataclass
class ManagerDashboard:
    """Lets managers schedule deliveries and follow their progress."""

    store: DeliveryStore
    notifier: Notifier

    def view(self, tab: DashboardTab = DashboardTab.ALL) -> DashboardView:
        pending = self.store.pending()
        completed = self.store.completed()
        if tab is DashboardTab.PENDING:
            deliveries = pending
        elif tab is DashboardTab.COMPLETED:
            deliveries = completed
        else:
            deliveries = self.store.list()
        return DashboardView(
            tab=tab,
            deliveries=deliveries,
            pending_count=len(pending),
            completed_count=len(completed),
        )

    async def add_delivery(self, delivery: NewDelivery) -> bool:
        """Schedule a new delivery."""
        added = await self.store.add(delivery)
        if added:
            self.notifier.notify(
                info(
                    "Delivery added",
                    f"A delivery for {delivery.client_name} has been scheduled.",
                )
            )
        return added
