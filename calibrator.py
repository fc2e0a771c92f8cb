"""Noise-floor calibration over a fixed window."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import structlog

from config import CALIBRATION_SAMPLE_INTERVAL_MS, CALIBRATION_TIME_MS, COUNTDOWN_STEP_MS
from errors import EMPTY_CALIBRATION
from models import CalibrationResult
from sampler import SignalSampler

logger = structlog.get_logger()

FALLBACK_NOISE_FLOOR = 1.0


def compute_noise_floor(samples: Sequence[float]) -> float:
    """Mean of the samples, floored to 1 so the threshold is never zero."""
    if not samples:
        return FALLBACK_NOISE_FLOOR
    average = math.fsum(samples) / len(samples)
    return average if average > 0 else FALLBACK_NOISE_FLOOR


class Calibrator:
    """
    Collects baseline readings on its own sub-interval schedule.

    The host drives it through ``tick``; nothing here sleeps. Readings are
    taken at most once per tick, every ``sample_interval_ms``, for readings
    due strictly before the end of the window.
    """

    def __init__(
        self,
        duration_ms: int = CALIBRATION_TIME_MS,
        sample_interval_ms: int = CALIBRATION_SAMPLE_INTERVAL_MS,
        countdown_step_ms: int = COUNTDOWN_STEP_MS,
    ) -> None:
        self.duration_ms = duration_ms
        self.sample_interval_ms = sample_interval_ms
        self.countdown_step_ms = countdown_step_ms
        self._samples: list[float] = []
        self._started_at: Optional[float] = None
        self._next_sample_at = 0.0

    @property
    def active(self) -> bool:
        return self._started_at is not None

    @property
    def samples(self) -> list[float]:
        return list(self._samples)

    def begin(self, now_ms: float) -> None:
        self._samples = []
        self._started_at = now_ms
        self._next_sample_at = now_ms + self.sample_interval_ms
        logger.debug("calibration_started", duration_ms=self.duration_ms)

    def tick(self, now_ms: float, sampler: SignalSampler) -> bool:
        """Collect a due reading; return True once the window has elapsed."""
        if self._started_at is None:
            return False
        deadline = self._started_at + self.duration_ms
        if self._next_sample_at <= now_ms and self._next_sample_at < deadline:
            self._samples.append(sampler.sample())
            while self._next_sample_at <= now_ms:
                self._next_sample_at += self.sample_interval_ms
        return now_ms >= deadline

    def remaining_ms(self, now_ms: float) -> int:
        if self._started_at is None:
            return self.duration_ms
        elapsed = max(0.0, now_ms - self._started_at)
        steps = int(elapsed // self.countdown_step_ms)
        return max(0, self.duration_ms - steps * self.countdown_step_ms)

    def finish(self) -> CalibrationResult:
        count = len(self._samples)
        noise_floor = compute_noise_floor(self._samples)
        if count == 0:
            logger.warning("calibration_empty", code=EMPTY_CALIBRATION, noise_floor=noise_floor)
        else:
            logger.info("calibration_complete", samples=count, noise_floor=round(noise_floor, 3))
        self._samples = []
        self._started_at = None
        return CalibrationResult(sample_count=count, noise_floor=noise_floor)

    def abort(self) -> None:
        if self._started_at is not None:
            logger.info("calibration_aborted", samples=len(self._samples))
        self._samples = []
        self._started_at = None
