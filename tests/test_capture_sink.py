from __future__ import annotations

import pytest

from capture_sink import SegmentCaptureSink
from models import CaptureSegment, VideoConstraints


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FakeMedia:
    audio = None
    device_id = "0"
    video_constraints = VideoConstraints(1280, 720, 16 / 9)
    released = False

    def release(self) -> None:
        self.released = True


def test_segments_follow_pause_and_resume() -> None:
    clock = FakeClock()
    sink = SegmentCaptureSink(clock=clock)

    handle = sink.start(FakeMedia())
    clock.now = 1000.0
    sink.pause(handle)
    assert handle.paused is True
    clock.now = 1800.0
    sink.resume(handle)
    clock.now = 2500.0
    output = sink.stop(handle)

    assert output.segments == [CaptureSegment(0.0, 1000.0), CaptureSegment(1800.0, 2500.0)]
    assert output.duration_ms == 1700.0
    assert sink.active is None


def test_stop_while_paused_keeps_closed_segments_only() -> None:
    clock = FakeClock()
    sink = SegmentCaptureSink(clock=clock)

    handle = sink.start(FakeMedia())
    clock.now = 400.0
    sink.pause(handle)
    clock.now = 900.0
    output = sink.stop(handle)

    assert output.segments == [CaptureSegment(0.0, 400.0)]


def test_start_twice_without_stop_raises() -> None:
    sink = SegmentCaptureSink(clock=FakeClock())
    sink.start(FakeMedia())

    with pytest.raises(RuntimeError, match="already started"):
        sink.start(FakeMedia())


def test_out_of_order_calls_raise() -> None:
    sink = SegmentCaptureSink(clock=FakeClock())
    handle = sink.start(FakeMedia())

    with pytest.raises(RuntimeError, match="not paused"):
        sink.resume(handle)

    sink.pause(handle)
    with pytest.raises(RuntimeError, match="not recording"):
        sink.pause(handle)

    sink.stop(handle)
    with pytest.raises(RuntimeError, match="not active"):
        sink.stop(handle)
    with pytest.raises(RuntimeError, match="not active"):
        sink.resume(handle)


def test_sink_can_restart_after_stop() -> None:
    sink = SegmentCaptureSink(clock=FakeClock())
    first = sink.start(FakeMedia())
    sink.stop(first)

    second = sink.start(FakeMedia())

    assert second.capture_id == first.capture_id + 1
    assert sink.active is second
