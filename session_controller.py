"""State-machine based recording orchestration with silence debounce."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

import structlog

from calibrator import Calibrator
from classifier import SilenceClassifier
from config import RecorderSettings
from errors import CAPTURE_FAILED, ERROR_MESSAGES, MediaAcquisitionError, user_message
from interfaces import CaptureSink, Clock, MediaAcquirer, MediaSource
from models import Classification, MediaRequest, Orientation, RecordingState
from sampler import SignalSampler

logger = structlog.get_logger()

StateCallback = Callable[[RecordingState, RecordingState], None]
CountdownCallback = Callable[[int], None]
ErrorCallback = Callable[[str, str], None]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SessionController:
    """
    Owns the recording state and is the only caller of the capture sink.

    The host calls ``step()`` once per frame. Calibration and the silence
    debounce are deadlines checked on each step against ``clock`` (ms).
    Entering a pause needs ``silence_ms`` of uninterrupted silence; leaving
    it happens on the first sound sample.
    """

    def __init__(
        self,
        acquirer: MediaAcquirer,
        sink: CaptureSink,
        settings: Optional[RecorderSettings] = None,
        clock: Clock = monotonic_ms,
        on_state_change: Optional[StateCallback] = None,
        on_countdown: Optional[CountdownCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._settings = settings or RecorderSettings()
        self._settings.validate()
        self._acquirer = acquirer
        self._sink = sink
        self._clock = clock
        self._on_state_change = on_state_change
        self._on_countdown = on_countdown
        self._on_error = on_error

        self._lock = threading.RLock()
        self._state = RecordingState.IDLE
        self._sampler = SignalSampler(self._settings.fft_size)
        self._calibrator = Calibrator(
            duration_ms=self._settings.calibration_ms,
            sample_interval_ms=self._settings.sample_interval_ms,
            countdown_step_ms=self._settings.countdown_step_ms,
        )
        self._classifier: Optional[SilenceClassifier] = None
        self._media: Optional[MediaSource] = None
        self._capture: Any = None
        self._output: Any = None
        self._silence_deadline: Optional[float] = None
        self._last_countdown: Optional[int] = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def settings(self) -> RecorderSettings:
        return self._settings

    @property
    def media(self) -> Optional[MediaSource]:
        return self._media

    @property
    def noise_floor(self) -> Optional[float]:
        return self._classifier.noise_floor if self._classifier else None

    @property
    def threshold(self) -> Optional[float]:
        return self._classifier.threshold if self._classifier else None

    @property
    def silence_pending(self) -> bool:
        return self._silence_deadline is not None

    @property
    def output(self) -> Any:
        return self._output

    def start_session(
        self,
        device_id: Optional[str] = None,
        orientation: Orientation = Orientation.LANDSCAPE,
    ) -> bool:
        with self._lock:
            if self._state != RecordingState.IDLE:
                return False
            self._output = None
            self._classifier = None
            self._transition(RecordingState.CALIBRATING)
            request = MediaRequest(device_id=device_id, orientation=orientation, audio=True)
            try:
                media = self._acquirer.acquire(request)
            except MediaAcquisitionError as exc:
                logger.warning("media_acquisition_failed", code=exc.code, error=str(exc))
                self._release_media()
                self._transition(RecordingState.IDLE)
                self._emit_error(exc.code, user_message(exc.code, orientation))
                return False

            self._media = media
            self._sampler.attach(media.audio)
            now = self._clock()
            self._calibrator.begin(now)
            self._last_countdown = None
            self._emit_countdown(now)
            return True

    def step(self) -> None:
        with self._lock:
            if self._state == RecordingState.CALIBRATING:
                self._step_calibration()
            elif self._state in (RecordingState.RECORDING, RecordingState.PAUSED):
                self._step_detection()

    def stop_session(self) -> None:
        with self._lock:
            if self._state == RecordingState.CALIBRATING:
                self._calibrator.abort()
                self._release_media()
                self._transition(RecordingState.IDLE)
                return
            if self._state not in (RecordingState.RECORDING, RecordingState.PAUSED):
                return
            self._silence_deadline = None
            capture, self._capture = self._capture, None
            try:
                self._output = self._sink.stop(capture)
            except Exception as exc:
                logger.warning("capture_stop_failed", error=str(exc))
                self._emit_error(CAPTURE_FAILED, ERROR_MESSAGES[CAPTURE_FAILED])
            finally:
                self._release_media()
                self._transition(RecordingState.STOPPED)

    def reset_session(self) -> None:
        with self._lock:
            if self._state != RecordingState.STOPPED:
                return
            self._release_media()
            self._output = None
            self._classifier = None
            self._transition(RecordingState.IDLE)

    def _step_calibration(self) -> None:
        now = self._clock()
        elapsed = self._calibrator.tick(now, self._sampler)
        self._emit_countdown(now)
        if not elapsed:
            return

        result = self._calibrator.finish()
        self._classifier = SilenceClassifier(result.noise_floor, self._settings.threshold_multiplier)
        if self._media is None:
            return
        try:
            self._capture = self._sink.start(self._media)
        except Exception as exc:
            logger.warning("capture_start_failed", error=str(exc))
            self._capture = None
            self._classifier = None
            self._release_media()
            self._transition(RecordingState.IDLE)
            self._emit_error(CAPTURE_FAILED, ERROR_MESSAGES[CAPTURE_FAILED])
            return
        logger.info(
            "recording_started",
            noise_floor=round(result.noise_floor, 3),
            threshold=round(self._classifier.threshold, 3),
        )
        self._transition(RecordingState.RECORDING)

    def _step_detection(self) -> None:
        if self._classifier is None:
            return
        now = self._clock()
        verdict = self._classifier.classify(self._sampler.sample())

        if self._state == RecordingState.PAUSED:
            if verdict == Classification.SOUND:
                self._sink.resume(self._capture)
                self._transition(RecordingState.RECORDING)
            return

        if verdict == Classification.SOUND:
            self._silence_deadline = None
            return
        if self._silence_deadline is None:
            self._silence_deadline = now + self._settings.silence_ms
            return
        if now >= self._silence_deadline:
            self._silence_deadline = None
            self._sink.pause(self._capture)
            self._transition(RecordingState.PAUSED)

    def _release_media(self) -> None:
        self._sampler.detach()
        self._silence_deadline = None
        media, self._media = self._media, None
        if media is None:
            return
        try:
            media.release()
        except Exception as exc:
            logger.warning("media_release_failed", error=str(exc))

    def _emit_countdown(self, now: float) -> None:
        remaining = self._calibrator.remaining_ms(now)
        if remaining == self._last_countdown:
            return
        self._last_countdown = remaining
        if self._on_countdown:
            self._on_countdown(remaining)

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _transition(self, to_state: RecordingState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.info("state_changed", from_state=from_state.value, to_state=to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
