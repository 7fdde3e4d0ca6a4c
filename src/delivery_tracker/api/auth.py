"""Authentication endpoints."""

from fastapi import APIRouter, HTTPException, Request, status

from delivery_tracker.api.dependencies import get_container
from delivery_tracker.api.schemas import IdentityOut, SignInIn
from delivery_tracker.services.auth import AuthenticationError, ConnectivityError

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("")
async def connection_status(request: Request) -> dict[str, str]:
    """Report whether the backend can reach the remote service."""
    connected = await get_container(request).identity_service.check_connection()
    return {"connection": "connected" if connected else "disconnected"}


@router.post("/sign-in")
async def sign_in(payload: SignInIn, request: Request) -> IdentityOut:
    """Sign in with email and password."""
    identity_service = get_container(request).identity_service
    try:
        identity = await identity_service.sign_in(payload.email, payload.password)
    except ConnectivityError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc
    return IdentityOut(id=identity.id, email=identity.email)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(request: Request) -> None:
    """End the current session."""
    await get_container(request).identity_service.sign_out()
