"""Measurement noise models for the position sensor."""

from abc import ABC, abstractmethod

import numpy as np


class NoiseSource(ABC):
    """Corrupts a true 2D position into a measurement."""

    @abstractmethod
    def add_gaussian_noise(self, position: np.ndarray, sigma: float) -> np.ndarray:
        """Add independent zero-mean Gaussian noise of std sigma to each coordinate."""


class GaussianNoise(NoiseSource):
    """Box-Muller Gaussian noise driven by a seeded numpy Generator.

    Two uniforms are drawn per coordinate, so the stream consumed per
    measurement is fixed regardless of sigma. Same seed, same noise.
    """

    def __init__(self, rng: np.random.Generator | None = None, seed: int | None = None):
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    def gaussian(self, sigma: float = 1.0) -> float:
        # 1 - U keeps the log argument in (0, 1]
        u = 1.0 - self._rng.random()
        v = self._rng.random()
        return float(np.sqrt(-2.0 * np.log(u)) * np.cos(2.0 * np.pi * v) * sigma)

    def add_gaussian_noise(self, position: np.ndarray, sigma: float) -> np.ndarray:
        return np.array([
            position[0] + self.gaussian(sigma),
            position[1] + self.gaussian(sigma),
        ])


class NoNoise(NoiseSource):
    """Returns the position unchanged."""

    def add_gaussian_noise(self, position: np.ndarray, sigma: float) -> np.ndarray:
        return np.array(position, dtype=float)
