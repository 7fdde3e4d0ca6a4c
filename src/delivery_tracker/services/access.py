"""Route access decisions based on identity and resolved roles."""

import logging
from dataclasses import dataclass
from enum import StrEnum

from delivery_tracker.domain.identity import Identity, RoleState, RoleTag
from delivery_tracker.services.auth import IdentityService
from delivery_tracker.services.roles import RoleResolver

_logger = logging.getLogger(__name__)

AUTH_ROUTE = "/auth"
HOME_ROUTE = "/"


class AccessDecision(StrEnum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"


def evaluate(
    identity: Identity | None,
    roles: RoleState,
    required_role: RoleTag | None,
) -> AccessDecision:
    """Decide whether a protected view may be entered."""
    if identity is None:
        return AccessDecision.UNAUTHENTICATED
    if roles.loading:
        return AccessDecision.LOADING
    if required_role is not None and not roles.has(required_role):
        return AccessDecision.UNAUTHORIZED
    return AccessDecision.AUTHORIZED


def redirect_target(decision: AccessDecision) -> str | None:
    """Return where a decision sends the user, if anywhere."""
    if decision is AccessDecision.UNAUTHENTICATED:
        return AUTH_ROUTE
    if decision is AccessDecision.UNAUTHORIZED:
        return HOME_ROUTE
    return None


@dataclass
class AccessGate:
    """Evaluates protected routes against the current identity."""

    identity_service: IdentityService
    role_resolver: RoleResolver

    def current(self, required_role: RoleTag | None) -> AccessDecision:
        """Evaluate using the latest known role state without waiting."""
        return evaluate(
            self.identity_service.identity, self.role_resolver.state, required_role
        )

    async def check(self, required_role: RoleTag | None) -> AccessDecision:
        """Resolve roles afresh and evaluate the route."""
        identity = self.identity_service.identity
        if identity is None:
            return AccessDecision.UNAUTHENTICATED
        roles = await self.role_resolver.resolve(identity)
        decision = evaluate(identity, roles, required_role)
        if decision is AccessDecision.UNAUTHORIZED:
            _logger.info(
                "User %s lacks role %s, redirecting home", identity.id, required_role
            )
        return decision
