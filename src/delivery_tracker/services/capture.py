"""Camera capture lifecycle for delivery confirmation photos."""

import base64
import errno
import logging
from dataclasses import dataclass, field
from typing import Protocol

from delivery_tracker.domain.capture import (
    CAMERA_ERROR_MESSAGES,
    CameraConstraints,
    CameraError,
    CameraErrorKind,
    CaptureState,
    InvalidTransitionError,
)
from delivery_tracker.services.notifications import Notifier, error

_logger = logging.getLogger(__name__)


class CameraHandle(Protocol):
    """An acquired camera device."""

    async def capture_jpeg(self) -> bytes:
        """Grab the current frame at native size and return it JPEG-encoded."""

    async def release(self) -> None:
        """Release the device."""


class CameraBackend(Protocol):
    """Source of camera devices."""

    async def open(self, constraints: CameraConstraints) -> CameraHandle:
        """Acquire a camera matching the constraints."""


def classify_camera_error(exc: BaseException) -> CameraErrorKind:
    """Map a device failure onto a user-facing category."""
    if isinstance(exc, CameraError):
        return exc.kind
    if isinstance(exc, PermissionError):
        return CameraErrorKind.PERMISSION_DENIED
    if isinstance(exc, FileNotFoundError):
        return CameraErrorKind.DEVICE_NOT_FOUND
    if isinstance(exc, OSError) and exc.errno == errno.EBUSY:
        return CameraErrorKind.DEVICE_BUSY
    if isinstance(exc, (ValueError, TypeError)):
        return CameraErrorKind.INVALID_PARAMETERS
    return CameraErrorKind.UNKNOWN


@dataclass
class CaptureSession:
    """State machine over acquiring, live, error and frozen.

    Each acquisition gets an attempt number. A device that arrives for an
    outdated attempt, or after the session was closed, is released without
    touching the session.
    """

    backend: CameraBackend
    notifier: Notifier
    constraints: CameraConstraints = field(default_factory=CameraConstraints)
    state: CaptureState = field(default=CaptureState.ACQUIRING, init=False)
    error_kind: CameraErrorKind | None = field(default=None, init=False)
    image: str | None = field(default=None, init=False)
    _handle: CameraHandle | None = field(default=None, init=False)
    _attempt: int = field(default=0, init=False)
    _resume_on_visible: bool = field(default=False, init=False)
    _closed: bool = field(default=False, init=False)

    @property
    def handle(self) -> CameraHandle | None:
        return self._handle

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def error_message(self) -> str | None:
        if self.error_kind is None:
            return None
        return CAMERA_ERROR_MESSAGES[self.error_kind]

    async def start(self) -> CaptureState:
        """Acquire the camera and enter live or error."""
        self._ensure_open()
        await self._release()
        self._attempt += 1
        attempt = self._attempt
        self.state = CaptureState.ACQUIRING
        self.error_kind = None
        self.image = None
        try:
            handle = await self.backend.open(self.constraints)
        except Exception as exc:
            if self._is_stale(attempt):
                return self.state
            self._fail(exc)
            return self.state
        if self._is_stale(attempt):
            await handle.release()
            return self.state
        self._handle = handle
        self.state = CaptureState.LIVE
        return self.state

    async def capture(self) -> str | None:
        """Freeze the current frame, release the camera and return the image."""
        self._require(CaptureState.LIVE, "capture")
        handle = self._handle
        attempt = self._attempt
        try:
            frame = await handle.capture_jpeg()
        except Exception as exc:
            if self._is_stale(attempt):
                return None
            await self._release()
            self._fail(exc)
            return None
        if self._is_stale(attempt):
            return None
        await self._release()
        self.image = _to_data_url(frame)
        self.state = CaptureState.FROZEN
        return self.image

    async def retake(self) -> CaptureState:
        """Discard the frozen image and acquire the camera again."""
        self._require(CaptureState.FROZEN, "retake")
        self.image = None
        return await self.start()

    async def retry(self) -> CaptureState:
        """Retry acquisition after a device error."""
        self._require(CaptureState.ERROR, "retry")
        return await self.start()

    def confirm(self) -> str:
        """Hand the frozen image to the caller and finish the session."""
        self._require(CaptureState.FROZEN, "confirm")
        image = self.image
        if image is None:
            raise InvalidTransitionError("Frozen session has no image")
        self._closed = True
        return image

    async def set_visibility(self, visible: bool) -> CaptureState:
        """Stop the camera while the host is hidden and restart it when shown."""
        if self._closed:
            return self.state
        if not visible:
            if self.state in (CaptureState.LIVE, CaptureState.ACQUIRING):
                _logger.info("Host hidden, stopping camera")
                self._attempt += 1
                await self._release()
                self.state = CaptureState.ACQUIRING
                self._resume_on_visible = True
            return self.state
        if self._resume_on_visible:
            self._resume_on_visible = False
            _logger.info("Host visible again, restarting camera")
            return await self.start()
        return self.state

    async def close(self) -> None:
        """Release the camera and ignore any late acquisition."""
        self._closed = True
        self._attempt += 1
        self._resume_on_visible = False
        await self._release()

    def _fail(self, exc: Exception) -> None:
        kind = classify_camera_error(exc)
        _logger.warning("Camera unavailable (%s): %s", kind, exc)
        self.state = CaptureState.ERROR
        self.error_kind = kind
        self.notifier.notify(error("Camera error", CAMERA_ERROR_MESSAGES[kind]))

    async def _release(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            await handle.release()
        except Exception:
            _logger.exception("Failed to release camera")

    def _is_stale(self, attempt: int) -> bool:
        return self._closed or attempt != self._attempt

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidTransitionError("Capture session is closed")

    def _require(self, state: CaptureState, action: str) -> None:
        self._ensure_open()
        if self.state is not state:
            raise InvalidTransitionError(f"Cannot {action} while {self.state}")


def _to_data_url(image_bytes: bytes) -> str:
    """Convert JPEG bytes to a base64 data URL."""
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:image/jpeg;base64,{encoded}"
