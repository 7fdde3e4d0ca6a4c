"""Role resolution for the current identity."""

import logging
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from delivery_tracker.domain.identity import (
    LOADING_ROLES,
    NO_ROLES,
    Identity,
    RoleState,
    RoleTag,
)

_logger = logging.getLogger(__name__)


class RoleRepository(Protocol):
    """Read access to role assignments."""

    async def list_roles(self, user_id: UUID) -> list[str]:
        """Return the role tags assigned to a user."""


@dataclass
class RoleResolver:
    """Resolve capability flags from the role-assignment table.

    Any query failure resolves to no roles, so an ambiguous lookup never
    grants access.
    """

    repository: RoleRepository
    state: RoleState = LOADING_ROLES
    _generation: int = field(default=0, init=False)

    async def resolve(self, identity: Identity | None) -> RoleState:
        """Resolve and record the role state for an identity."""
        self._generation += 1
        generation = self._generation
        if identity is None:
            self.state = NO_ROLES
            return self.state

        self.state = LOADING_ROLES
        try:
            roles = set(await self.repository.list_roles(identity.id))
        except Exception:
            _logger.exception(
                "Failed to resolve roles", extra={"user_id": str(identity.id)}
            )
            resolved = NO_ROLES
        else:
            resolved = RoleState(
                is_manager=RoleTag.ADMIN in roles,
                is_delivery=RoleTag.DELIVERY in roles,
            )
            _logger.info("Resolved roles for user_id=%s: %s", identity.id, sorted(roles))
        if generation == self._generation:
            self.state = resolved
        return resolved
