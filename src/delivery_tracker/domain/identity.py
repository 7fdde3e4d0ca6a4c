"""Domain models for identities and roles."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class RoleTag(StrEnum):
    """Capability labels attached to an identity."""

    ADMIN = "admin"
    DELIVERY = "delivery"


@dataclass(frozen=True)
class Identity:
    """The authenticated principal of the current session."""

    id: UUID
    email: str | None = None


@dataclass(frozen=True)
class RoleState:
    """Resolved capabilities for an identity."""

    is_manager: bool = False
    is_delivery: bool = False
    loading: bool = False

    def has(self, role: RoleTag) -> bool:
        """Return whether the resolved state grants the given role."""
        if role is RoleTag.ADMIN:
            return self.is_manager
        return self.is_delivery


LOADING_ROLES = RoleState(loading=True)
NO_ROLES = RoleState()
