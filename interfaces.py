"""Protocol interfaces used by SessionController."""

from __future__ import annotations

from typing import Any, Callable, Protocol

import numpy as np

from models import MediaRequest, VideoConstraints

Clock = Callable[[], float]


class AudioSource(Protocol):
    def frequency_data(self) -> np.ndarray: ...


class MediaSource(Protocol):
    audio: AudioSource
    device_id: str | None
    video_constraints: VideoConstraints

    @property
    def released(self) -> bool: ...

    def release(self) -> None: ...


class MediaAcquirer(Protocol):
    def acquire(self, request: MediaRequest) -> MediaSource: ...


class CaptureSink(Protocol):
    def start(self, media: MediaSource) -> Any: ...

    def pause(self, handle: Any) -> None: ...

    def resume(self, handle: Any) -> None: ...

    def stop(self, handle: Any) -> Any: ...
