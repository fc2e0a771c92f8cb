"""In-process capture sink that tracks the kept spans of a recording."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

import structlog

from interfaces import Clock, MediaSource
from models import CaptureOutput, CaptureSegment
from session_controller import monotonic_ms

logger = structlog.get_logger()


@dataclass
class CaptureHandle:
    media: MediaSource
    capture_id: int
    segments: list[CaptureSegment] = field(default_factory=list)
    segment_started_at: Optional[float] = None
    stopped: bool = False

    @property
    def paused(self) -> bool:
        return self.segment_started_at is None and not self.stopped


class SegmentCaptureSink:
    """
    Records which spans of the session are kept.

    Encoding is left to the media pipeline that consumes the segments; this
    sink only enforces the recorder call order and measures the spans.
    """

    def __init__(self, clock: Clock = monotonic_ms) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._active: Optional[CaptureHandle] = None
        self._capture_count = 0

    @property
    def active(self) -> Optional[CaptureHandle]:
        return self._active

    def start(self, media: MediaSource) -> CaptureHandle:
        with self._lock:
            if self._active is not None:
                raise RuntimeError("capture already started")
            self._capture_count += 1
            handle = CaptureHandle(
                media=media,
                capture_id=self._capture_count,
                segment_started_at=self._clock(),
            )
            self._active = handle
        logger.info("capture_started", capture_id=handle.capture_id, device_id=media.device_id)
        return handle

    def pause(self, handle: CaptureHandle) -> None:
        with self._lock:
            self._check_active(handle)
            if handle.segment_started_at is None:
                raise RuntimeError("capture is not recording")
            self._close_segment(handle)
        logger.debug("capture_paused", capture_id=handle.capture_id)

    def resume(self, handle: CaptureHandle) -> None:
        with self._lock:
            self._check_active(handle)
            if handle.segment_started_at is not None:
                raise RuntimeError("capture is not paused")
            handle.segment_started_at = self._clock()
        logger.debug("capture_resumed", capture_id=handle.capture_id)

    def stop(self, handle: CaptureHandle) -> CaptureOutput:
        with self._lock:
            self._check_active(handle)
            if handle.segment_started_at is not None:
                self._close_segment(handle)
            handle.stopped = True
            self._active = None
            output = CaptureOutput(segments=list(handle.segments))
        logger.info(
            "capture_stopped",
            capture_id=handle.capture_id,
            segments=len(output.segments),
            duration_ms=round(output.duration_ms, 1),
        )
        return output

    def _check_active(self, handle: CaptureHandle) -> None:
        if handle.stopped or handle is not self._active:
            raise RuntimeError("capture is not active")

    def _close_segment(self, handle: CaptureHandle) -> None:
        if handle.segment_started_at is None:
            return
        handle.segments.append(CaptureSegment(handle.segment_started_at, self._clock()))
        handle.segment_started_at = None
