"""Delivery-person worklist and photo capture endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status

from delivery_tracker.api.dependencies import get_container, require_role
from delivery_tracker.api.schemas import (
    CaptureOut,
    CompleteIn,
    CompletionOut,
    DeliveryOut,
    VisibilityIn,
    WorklistOut,
)
from delivery_tracker.domain.identity import RoleTag
from delivery_tracker.services.capture import CaptureSession
from delivery_tracker.services.worklist import DeliveryNotPendingError, DeliveryWorklist

router = APIRouter(
    prefix="/delivery",
    tags=["delivery"],
    dependencies=[Depends(require_role(RoleTag.DELIVERY))],
)


def _worklist(request: Request) -> DeliveryWorklist:
    return get_container(request).worklist


def _active_session(worklist: DeliveryWorklist) -> CaptureSession:
    if worklist.session is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No photo capture is in progress.",
        )
    return worklist.session


def _capture_out(worklist: DeliveryWorklist) -> CaptureOut:
    session = _active_session(worklist)
    return CaptureOut(
        delivery_id=worklist.active_delivery_id,
        state=session.state,
        error_kind=session.error_kind,
        error_message=session.error_message,
        image=session.image,
    )


@router.get("")
async def pending_deliveries(request: Request) -> WorklistOut:
    """Return deliveries waiting to be completed."""
    pending = _worklist(request).pending()
    return WorklistOut(
        pending_count=len(pending),
        deliveries=[DeliveryOut.model_validate(d) for d in pending],
    )


@router.post("/{delivery_id}/capture/start")
async def start_capture(delivery_id: UUID, request: Request) -> CaptureOut:
    """Open the camera to photograph a pending delivery."""
    worklist = _worklist(request)
    try:
        await worklist.begin(delivery_id)
    except DeliveryNotPendingError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Delivery is not pending.",
        ) from exc
    return _capture_out(worklist)


@router.get("/capture")
async def capture_status(request: Request) -> CaptureOut:
    """Return the state of the active capture."""
    return _capture_out(_worklist(request))


@router.post("/capture/photo")
async def take_photo(request: Request) -> CaptureOut:
    """Freeze the current camera frame."""
    worklist = _worklist(request)
    await _active_session(worklist).capture()
    return _capture_out(worklist)


@router.post("/capture/retake")
async def retake_photo(request: Request) -> CaptureOut:
    """Discard the frozen photo and reopen the camera."""
    worklist = _worklist(request)
    await _active_session(worklist).retake()
    return _capture_out(worklist)


@router.post("/capture/retry")
async def retry_camera(request: Request) -> CaptureOut:
    """Retry opening the camera after an error."""
    worklist = _worklist(request)
    await _active_session(worklist).retry()
    return _capture_out(worklist)


@router.post("/capture/visibility")
async def visibility_changed(payload: VisibilityIn, request: Request) -> CaptureOut:
    """Report that the capture screen was hidden or shown."""
    worklist = _worklist(request)
    await _active_session(worklist).set_visibility(payload.visible)
    return _capture_out(worklist)


@router.post("/capture/confirm")
async def confirm_photo(request: Request) -> CompletionOut:
    """Complete the delivery with the frozen photo."""
    worklist = _worklist(request)
    _active_session(worklist)
    delivery_id = worklist.active_delivery_id
    completed = await worklist.confirm()
    return CompletionOut(delivery_id=delivery_id, completed=completed)


@router.post("/capture/cancel", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_capture(request: Request) -> None:
    """Close the camera without completing the delivery."""
    await _worklist(request).cancel()


@router.post("/{delivery_id}/complete")
async def complete_delivery(
    delivery_id: UUID, payload: CompleteIn, request: Request
) -> CompletionOut:
    """Complete a delivery with a photo captured by the client."""
    completed = await _worklist(request).complete(delivery_id, payload.photo)
    return CompletionOut(delivery_id=delivery_id, completed=completed)
