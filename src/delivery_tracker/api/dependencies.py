"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from fastapi import HTTPException, Request, status

from delivery_tracker.domain.identity import RoleTag
from delivery_tracker.services.access import redirect_target

if TYPE_CHECKING:
    from delivery_tracker.containers import AppContainer


def get_container(request: Request) -> AppContainer:
    """Return the application container, failing loudly when it is missing."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("AppContainer is not configured on this application")
    return container


def require_role(role: RoleTag | None) -> Callable[[Request], Awaitable[None]]:
    """Build a dependency that redirects when the route may not be entered."""

    async def dependency(request: Request) -> None:
        container = get_container(request)
        decision = await container.access_gate.check(role)
        target = redirect_target(decision)
        if target is not None:
            raise HTTPException(
                status_code=status.HTTP_303_SEE_OTHER,
                headers={"Location": target},
            )

    return dependency
