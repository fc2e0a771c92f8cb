"""Energy sampler reading the attached audio source."""

from __future__ import annotations

from typing import Optional

import numpy as np

from config import FFT_SIZE, is_power_of_two
from interfaces import AudioSource


class SignalSampler:
    def __init__(self, fft_size: int = FFT_SIZE) -> None:
        if not is_power_of_two(fft_size):
            raise ValueError("fft_size must be a power of two")
        self.fft_size = fft_size
        self._source: Optional[AudioSource] = None

    @property
    def attached(self) -> bool:
        return self._source is not None

    def attach(self, source: AudioSource) -> None:
        self._source = source

    def detach(self) -> None:
        self._source = None

    def sample(self) -> float:
        """Mean magnitude over the frequency bins, or 0.0 without a source."""
        if self._source is None:
            return 0.0
        data = np.asarray(self._source.frequency_data(), dtype=np.float64)
        bins = data[: self.fft_size // 2]
        if bins.size == 0:
            return 0.0
        return float(bins.mean())
