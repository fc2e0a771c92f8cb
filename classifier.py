"""Threshold-based silence classification."""

from __future__ import annotations

from config import THRESHOLD_MULTIPLIER
from models import Classification


class SilenceClassifier:
    def __init__(self, noise_floor: float, multiplier: float = THRESHOLD_MULTIPLIER) -> None:
        if noise_floor <= 0:
            raise ValueError("noise_floor must be > 0")
        if multiplier <= 0:
            raise ValueError("multiplier must be > 0")
        self.noise_floor = noise_floor
        self.multiplier = multiplier
        self._threshold = noise_floor * multiplier

    @property
    def threshold(self) -> float:
        return self._threshold

    def classify(self, energy: float) -> Classification:
        if energy < self._threshold:
            return Classification.SILENT
        return Classification.SOUND
