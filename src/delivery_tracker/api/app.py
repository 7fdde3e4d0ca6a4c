"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from delivery_tracker.api.auth import router as auth_router
from delivery_tracker.api.delivery import router as delivery_router
from delivery_tracker.api.dependencies import get_container
from delivery_tracker.api.manager import router as manager_router
from delivery_tracker.api.schemas import LandingOut, NotificationOut
from delivery_tracker.app_logging import configure_logging
from delivery_tracker.containers import AppContainer
from delivery_tracker.domain.capture import InvalidTransitionError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.start_resources()
        except Exception:
            logger.exception("Failed to start delivery sync")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(auth_router)
    app.include_router(manager_router)
    app.include_router(delivery_router)

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition(
        request: Request, exc: InvalidTransitionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/")
    async def landing(request: Request) -> LandingOut:
        """Public landing data: who is signed in and what they may open."""
        state_container = get_container(request)
        identity = state_container.identity_service.identity
        roles = state_container.role_resolver.state
        return LandingOut(
            signed_in=identity is not None,
            email=identity.email if identity else None,
            is_manager=identity is not None and roles.is_manager,
            is_delivery=identity is not None and roles.is_delivery,
            loading=identity is not None and roles.loading,
        )

    @app.get("/notifications")
    async def notifications(request: Request) -> dict[str, list[NotificationOut]]:
        """Return and clear pending notifications."""
        drained = get_container(request).notifier.drain()
        return {
            "notifications": [NotificationOut.model_validate(n) for n in drained]
        }

    @app.api_route(
        "/{path:path}",
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        include_in_schema=False,
    )
    async def not_found(path: str) -> None:
        logger.warning("404: attempted to access non-existent route /%s", path)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    return app
