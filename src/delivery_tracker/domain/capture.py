"""Domain models for the photo capture lifecycle."""

from dataclasses import dataclass
from enum import StrEnum


class CaptureState(StrEnum):
    """States of a capture session."""

    ACQUIRING = "acquiring"
    LIVE = "live"
    ERROR = "error"
    FROZEN = "frozen"


class CameraErrorKind(StrEnum):
    """Categories of camera acquisition failures."""

    PERMISSION_DENIED = "permission_denied"
    DEVICE_NOT_FOUND = "device_not_found"
    DEVICE_BUSY = "device_busy"
    CONSTRAINTS_UNSATISFIABLE = "constraints_unsatisfiable"
    INVALID_PARAMETERS = "invalid_parameters"
    UNKNOWN = "unknown"


CAMERA_ERROR_MESSAGES: dict[CameraErrorKind, str] = {
    CameraErrorKind.PERMISSION_DENIED: (
        "Camera access was denied. Allow camera access and try again."
    ),
    CameraErrorKind.DEVICE_NOT_FOUND: "No camera was found on this device.",
    CameraErrorKind.DEVICE_BUSY: (
        "The camera is in use by another application. Close it and try again."
    ),
    CameraErrorKind.CONSTRAINTS_UNSATISFIABLE: (
        "The camera does not support the requested settings."
    ),
    CameraErrorKind.INVALID_PARAMETERS: "The camera was requested with invalid settings.",
    CameraErrorKind.UNKNOWN: "The camera could not be started.",
}


@dataclass(frozen=True)
class CameraConstraints:
    """Requested camera parameters."""

    facing_mode: str = "environment"
    width: int = 1280
    height: int = 720


class CameraError(Exception):
    """Raised by camera backends when a device cannot be acquired."""

    kind = CameraErrorKind.UNKNOWN


class CameraPermissionError(CameraError):
    kind = CameraErrorKind.PERMISSION_DENIED


class CameraNotFoundError(CameraError):
    kind = CameraErrorKind.DEVICE_NOT_FOUND


class CameraBusyError(CameraError):
    kind = CameraErrorKind.DEVICE_BUSY


class CameraConstraintsError(CameraError):
    kind = CameraErrorKind.CONSTRAINTS_UNSATISFIABLE


class CameraParametersError(CameraError):
    kind = CameraErrorKind.INVALID_PARAMETERS


class InvalidTransitionError(RuntimeError):
    """Raised when a capture action is not valid in the current state."""
