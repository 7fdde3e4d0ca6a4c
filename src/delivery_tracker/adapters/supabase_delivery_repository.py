"""Supabase-backed delivery repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import AsyncClient

from delivery_tracker.domain.deliveries import DeliveryRecord, DeliveryStatus, NewDelivery
from delivery_tracker.services.deliveries import DeliveryRepository

_COLUMNS = "id, client_name, address, notes, status, created_at, completed_at, photo"


@dataclass
class SupabaseDeliveryRepository(DeliveryRepository):
    """Supabase implementation for delivery persistence."""

    client: AsyncClient
    table: str = "deliveries"

    async def list_deliveries(self) -> list[DeliveryRecord]:
        """Return all visible deliveries, newest first."""
        response = await (
            self.client.table(self.table)
            .select(_COLUMNS)
            .order("created_at", desc=True)
            .execute()
        )
        return [_to_record(row) for row in response.data or []]

    async def create_delivery(self, delivery: NewDelivery) -> UUID:
        """Insert a pending delivery row and return its id."""
        response = await (
            self.client.table(self.table)
            .insert(
                {
                    "client_name": delivery.client_name,
                    "address": delivery.address,
                    "notes": delivery.notes,
                    "status": DeliveryStatus.PENDING.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create delivery")
        return UUID(response.data[0]["id"])

    async def complete_delivery(
        self, delivery_id: UUID, photo: str, completed_at: datetime
    ) -> int:
        """Complete a pending delivery and return how many rows changed."""
        response = await (
            self.client.table(self.table)
            .update(
                {
                    "status": DeliveryStatus.COMPLETED.value,
                    "completed_at": completed_at.isoformat(),
                    "photo": photo,
                }
            )
            .eq("id", str(delivery_id))
            .eq("status", DeliveryStatus.PENDING.value)
            .execute()
        )
        return len(response.data or [])


def _to_record(row: dict[str, object]) -> DeliveryRecord:
    return DeliveryRecord(
        id=UUID(str(row["id"])),
        address=str(row["address"]),
        client_name=str(row["client_name"]),
        status=DeliveryStatus(row["status"]),
        created_at=_parse_timestamp(row["created_at"]),
        notes=row.get("notes") or None,
        completed_at=_parse_timestamp(row.get("completed_at")),
        photo=row.get("photo") or None,
    )


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
