"""Recorder tunables and a simple JSON-based config store."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from models import Orientation

CALIBRATION_TIME_MS = 3000
SILENCE_DETECTION_TIME_MS = 500
# Audio must be 80% louder than the calibrated room tone to count as sound.
THRESHOLD_MULTIPLIER = 1.8
FFT_SIZE = 256
CALIBRATION_SAMPLE_INTERVAL_MS = 50
COUNTDOWN_STEP_MS = 100


def is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


@dataclass
class RecorderSettings:
    calibration_ms: int = CALIBRATION_TIME_MS
    silence_ms: int = SILENCE_DETECTION_TIME_MS
    threshold_multiplier: float = THRESHOLD_MULTIPLIER
    fft_size: int = FFT_SIZE
    sample_interval_ms: int = CALIBRATION_SAMPLE_INTERVAL_MS
    countdown_step_ms: int = COUNTDOWN_STEP_MS

    def validate(self) -> None:
        if self.calibration_ms <= 0:
            raise ValueError("calibration_ms must be > 0")
        if self.silence_ms <= 0:
            raise ValueError("silence_ms must be > 0")
        if self.threshold_multiplier <= 0:
            raise ValueError("threshold_multiplier must be > 0")
        if not is_power_of_two(self.fft_size) or not 32 <= self.fft_size <= 32768:
            raise ValueError("fft_size must be a power of two between 32 and 32768")
        if not 0 < self.sample_interval_ms < self.calibration_ms:
            raise ValueError("sample_interval_ms must be > 0 and shorter than calibration_ms")
        if self.countdown_step_ms <= 0:
            raise ValueError("countdown_step_ms must be > 0")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecorderSettings":
        defaults = cls()
        values: dict[str, Any] = {}
        for name in (f.name for f in fields(cls)):
            if name not in data:
                continue
            value = _coerce(data[name], type(getattr(defaults, name)))
            if value is not None:
                values[name] = value
        return cls(**values)


def _coerce(value: Any, kind: type) -> int | float | None:
    # bool is an int subclass but never a valid setting
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if kind is int:
        if isinstance(value, float) and not value.is_integer():
            return None
        return int(value)
    return float(value)


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "jumpcut" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_device_id(self) -> str:
        data = self._read_all()
        return str(data.get("device_id", ""))

    def set_device_id(self, device_id: str) -> None:
        data = self._read_all()
        data["device_id"] = device_id
        self._write_all(data)

    def get_orientation(self) -> Orientation:
        data = self._read_all()
        try:
            return Orientation(data.get("orientation", Orientation.LANDSCAPE.value))
        except ValueError:
            return Orientation.LANDSCAPE

    def set_orientation(self, orientation: Orientation) -> None:
        data = self._read_all()
        data["orientation"] = orientation.value
        self._write_all(data)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", "Key.f8"))

    def set_hotkey(self, hotkey: str) -> None:
        data = self._read_all()
        data["hotkey"] = hotkey
        self._write_all(data)

    def get_settings(self) -> RecorderSettings:
        """Return stored tunables, falling back to defaults when invalid."""
        data = self._read_all()
        raw = data.get("settings")
        if not isinstance(raw, dict):
            return RecorderSettings()
        settings = RecorderSettings.from_dict(raw)
        try:
            settings.validate()
        except ValueError:
            return RecorderSettings()
        return settings

    def set_settings(self, settings: RecorderSettings) -> None:
        settings.validate()
        data = self._read_all()
        data["settings"] = settings.to_dict()
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
