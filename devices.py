"""Input device enumeration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = structlog.get_logger()


@dataclass(frozen=True)
class DeviceInfo:
    device_id: str
    label: str


def list_input_devices() -> list[DeviceInfo]:
    if sd is None:
        return []
    try:
        raw = sd.query_devices()
    except sd.PortAudioError as exc:
        logger.warning("device_enumeration_failed", error=str(exc))
        return []

    devices: list[DeviceInfo] = []
    for index, info in enumerate(raw):
        if int(info.get("max_input_channels", 0)) <= 0:
            continue
        label = str(info.get("name") or f"Microphone {len(devices) + 1}")
        devices.append(DeviceInfo(device_id=str(index), label=label))
    return devices


def choose_device(devices: Sequence[DeviceInfo], selected_id: Optional[str]) -> Optional[str]:
    """Keep the selection while it exists, otherwise fall back to the first device."""
    if not devices:
        return None
    if selected_id and any(device.device_id == selected_id for device in devices):
        return selected_id
    return devices[0].device_id
