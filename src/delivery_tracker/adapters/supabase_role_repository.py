"""Supabase role-assignment access."""

from dataclasses import dataclass
from uuid import UUID

from supabase import AsyncClient

from delivery_tracker.services.roles import RoleRepository


@dataclass
class SupabaseRoleRepository(RoleRepository):
    """Supabase implementation for role lookups."""

    client: AsyncClient
    table: str = "user_roles"

    async def list_roles(self, user_id: UUID) -> list[str]:
        """Return the role tags assigned to a user."""
        response = await (
            self.client.table(self.table)
            .select("role")
            .eq("user_id", str(user_id))
            .execute()
        )
        return [str(row["role"]) for row in response.data or []]
