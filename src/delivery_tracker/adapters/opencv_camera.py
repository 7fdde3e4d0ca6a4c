"""OpenCV camera backend."""

import asyncio
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

import cv2

from delivery_tracker.domain.capture import (
    CameraBusyError,
    CameraConstraints,
    CameraConstraintsError,
    CameraError,
    CameraNotFoundError,
    CameraParametersError,
    CameraPermissionError,
)
from delivery_tracker.services.capture import CameraBackend, CameraHandle

_logger = logging.getLogger(__name__)

_FACING_MODES = {"user", "environment"}


@dataclass
class OpenCVCameraHandle(CameraHandle):
    """A VideoCapture device that encodes frames as JPEG."""

    capture: cv2.VideoCapture
    jpeg_quality: int = 85

    async def capture_jpeg(self) -> bytes:
        """Read one frame at native size and JPEG-encode it."""
        return await asyncio.to_thread(self._grab)

    async def release(self) -> None:
        """Release the underlying device."""
        await asyncio.to_thread(self.capture.release)

    def _grab(self) -> bytes:
        ok, frame = self.capture.read()
        if not ok or frame is None:
            raise CameraError("Failed to read a frame from the camera")
        ok, buffer = cv2.imencode(
            ".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality]
        )
        if not ok:
            raise CameraError("Failed to encode the captured frame")
        return buffer.tobytes()


@dataclass
class OpenCVCameraBackend(CameraBackend):
    """Opens a local camera by index through OpenCV.

    On Linux the device node is checked first so a missing device and a
    permission problem can be told apart from a busy device.
    """

    index: int = 0
    jpeg_quality: int = 85
    device_root: Path = field(default_factory=lambda: Path("/dev"))
    check_device_node: bool = sys.platform.startswith("linux")

    async def open(self, constraints: CameraConstraints) -> OpenCVCameraHandle:
        """Acquire the camera in a worker thread."""
        return await asyncio.to_thread(self._open, constraints)

    def _open(self, constraints: CameraConstraints) -> OpenCVCameraHandle:
        if self.index < 0 or constraints.width <= 0 or constraints.height <= 0:
            raise CameraParametersError(
                f"Invalid camera request index={self.index} "
                f"size={constraints.width}x{constraints.height}"
            )
        if constraints.facing_mode not in _FACING_MODES:
            raise CameraParametersError(
                f"Unknown facing mode: {constraints.facing_mode}"
            )
        if self.check_device_node:
            device = self.device_root / f"video{self.index}"
            if not device.exists():
                raise CameraNotFoundError(f"{device} does not exist")
            if not os.access(device, os.R_OK | os.W_OK):
                raise CameraPermissionError(f"No access to {device}")

        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            if self.check_device_node:
                raise CameraBusyError(f"Camera {self.index} could not be opened")
            raise CameraNotFoundError(f"Camera {self.index} could not be opened")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height)
        width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if width <= 0 or height <= 0:
            capture.release()
            raise CameraConstraintsError(
                f"Camera {self.index} rejected {constraints.width}x{constraints.height}"
            )
        _logger.info(
            "Opened camera %s at %sx%s (requested %sx%s, facing %s)",
            self.index,
            width,
            height,
            constraints.width,
            constraints.height,
            constraints.facing_mode,
        )
        return OpenCVCameraHandle(capture=capture, jpeg_quality=self.jpeg_quality)
