"""Core data models for the recorder."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RecordingState(str, Enum):
    IDLE = "IDLE"
    CALIBRATING = "CALIBRATING"
    RECORDING = "RECORDING"
    PAUSED = "PAUSED"
    STOPPED = "STOPPED"


class Classification(str, Enum):
    SILENT = "silent"
    SOUND = "sound"


class Orientation(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"


@dataclass(frozen=True)
class VideoConstraints:
    width: int
    height: int
    aspect_ratio: float

    @classmethod
    def for_orientation(cls, orientation: Orientation) -> "VideoConstraints":
        if orientation == Orientation.PORTRAIT:
            return cls(width=720, height=1280, aspect_ratio=9 / 16)
        return cls(width=1280, height=720, aspect_ratio=16 / 9)


@dataclass
class MediaRequest:
    device_id: Optional[str] = None
    orientation: Orientation = Orientation.LANDSCAPE
    audio: bool = True

    @property
    def video_constraints(self) -> VideoConstraints:
        return VideoConstraints.for_orientation(self.orientation)


@dataclass(frozen=True)
class CalibrationResult:
    sample_count: int
    noise_floor: float


@dataclass
class CaptureSegment:
    start_ms: float
    end_ms: float

    @property
    def duration_ms(self) -> float:
        return self.end_ms - self.start_ms


@dataclass
class CaptureOutput:
    segments: list[CaptureSegment] = field(default_factory=list)

    @property
    def duration_ms(self) -> float:
        return sum(segment.duration_ms for segment in self.segments)
