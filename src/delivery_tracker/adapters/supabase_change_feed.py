"""Supabase Realtime change feed for the deliveries table."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from supabase import AsyncClient

from delivery_tracker.services.deliveries import ChangeFeed, ChangeSubscription

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseChangeSubscription(ChangeSubscription):
    """An open Realtime channel."""

    client: AsyncClient
    channel: object

    async def unsubscribe(self) -> None:
        """Remove the channel from the Realtime connection."""
        await self.client.remove_channel(self.channel)


@dataclass
class SupabaseChangeFeed(ChangeFeed):
    """Listens to postgres_changes events on one table."""

    client: AsyncClient
    table: str = "deliveries"
    schema: str = "public"

    async def subscribe(self, on_change: Callable[[], None]) -> SupabaseChangeSubscription:
        """Call on_change for every insert, update or delete on the table."""

        def handle(payload: dict[str, object]) -> None:
            _logger.debug("Change on %s: %s", self.table, payload.get("eventType"))
            on_change()

        channel = self.client.channel(f"{self.table}-changes")
        channel.on_postgres_changes(
            "*", schema=self.schema, table=self.table, callback=handle
        )
        await channel.subscribe()
        _logger.info("Subscribed to changes on %s.%s", self.schema, self.table)
        return SupabaseChangeSubscription(client=self.client, channel=channel)
