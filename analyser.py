"""Spectrum analyser producing byte-scaled frequency magnitudes.

The analyser keeps the last ``fft_size`` PCM samples pushed from the audio
callback and, on demand, turns them into ``fft_size // 2`` magnitudes in the
0..255 range: Blackman window, real FFT, magnitude normalised by the window
length, exponential smoothing over successive reads, then a linear map of
``[min_db, max_db]`` onto the byte range.
"""

from __future__ import annotations

import threading

import numpy as np

from config import is_power_of_two

DEFAULT_MIN_DB = -100.0
DEFAULT_MAX_DB = -30.0
DEFAULT_SMOOTHING = 0.8


def blackman_window(size: int) -> np.ndarray:
    n = np.arange(size, dtype=np.float64)
    return 0.42 - 0.5 * np.cos(2.0 * np.pi * n / size) + 0.08 * np.cos(4.0 * np.pi * n / size)


class SpectrumAnalyser:
    def __init__(
        self,
        fft_size: int = 256,
        min_db: float = DEFAULT_MIN_DB,
        max_db: float = DEFAULT_MAX_DB,
        smoothing: float = DEFAULT_SMOOTHING,
    ) -> None:
        if not is_power_of_two(fft_size):
            raise ValueError("fft_size must be a power of two")
        if min_db >= max_db:
            raise ValueError("min_db must be lower than max_db")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError("smoothing must be in [0, 1)")
        self.fft_size = fft_size
        self.min_db = min_db
        self.max_db = max_db
        self.smoothing = smoothing
        self._window = blackman_window(fft_size)
        self._buffer = np.zeros(fft_size, dtype=np.float64)
        self._smoothed = np.zeros(fft_size // 2, dtype=np.float64)
        self._lock = threading.Lock()

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def feed(self, samples: np.ndarray) -> None:
        """Append mono float samples in [-1, 1], keeping the newest window."""
        chunk = np.asarray(samples, dtype=np.float64).reshape(-1)
        if chunk.size == 0:
            return
        with self._lock:
            if chunk.size >= self.fft_size:
                self._buffer[:] = chunk[-self.fft_size:]
            else:
                self._buffer = np.concatenate((self._buffer[chunk.size:], chunk))

    def frequency_data(self) -> np.ndarray:
        with self._lock:
            windowed = self._buffer * self._window
            spectrum = np.fft.rfft(windowed)[: self.frequency_bin_count]
            magnitudes = np.abs(spectrum) / self.fft_size
            self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * magnitudes
            smoothed = self._smoothed.copy()

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(smoothed)
        scaled = 255.0 / (self.max_db - self.min_db) * (decibels - self.min_db)
        return np.clip(np.floor(scaled), 0, 255).astype(np.uint8)

    def reset(self) -> None:
        with self._lock:
            self._buffer[:] = 0.0
            self._smoothed[:] = 0.0
