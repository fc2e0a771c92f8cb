"""Shared error codes, exceptions and user-facing messages."""

from __future__ import annotations

from typing import Optional

from models import Orientation

DEVICE_UNAVAILABLE = "DEVICE_UNAVAILABLE"
CONSTRAINT_UNSUPPORTED = "CONSTRAINT_UNSUPPORTED"
EMPTY_CALIBRATION = "EMPTY_CALIBRATION"
CAPTURE_FAILED = "CAPTURE_FAILED"

ERROR_MESSAGES = {
    DEVICE_UNAVAILABLE: "Could not access camera/microphone. Please check permissions.",
    CONSTRAINT_UNSUPPORTED: "The selected device does not support the requested settings.",
    EMPTY_CALIBRATION: "No audio was captured during calibration, using the default noise floor.",
    CAPTURE_FAILED: "The recording could not be started or finished. Please try again.",
}


class MediaAcquisitionError(Exception):
    code = DEVICE_UNAVAILABLE


class DeviceUnavailableError(MediaAcquisitionError):
    code = DEVICE_UNAVAILABLE


class ConstraintUnsupportedError(MediaAcquisitionError):
    code = CONSTRAINT_UNSUPPORTED


def user_message(code: str, orientation: Optional[Orientation] = None) -> str:
    if code == CONSTRAINT_UNSUPPORTED and orientation is not None:
        return (
            f"The selected device does not support {orientation.value} orientation. "
            "Please try another setting or camera."
        )
    return ERROR_MESSAGES.get(code, ERROR_MESSAGES[DEVICE_UNAVAILABLE])
