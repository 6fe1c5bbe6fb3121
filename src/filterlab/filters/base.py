"""Abstract base class for the position-tracking estimators."""

from abc import ABC, abstractmethod
from enum import Enum

import numpy as np

from . import matrix


class Phase(Enum):
    """Lifecycle of an estimator inside a run."""

    UNINITIALIZED = "uninitialized"
    BOOTSTRAPPING = "bootstrapping"
    READY = "ready"


class StepOutcome(Enum):
    """Result of a predict/update call."""

    APPLIED = "applied"
    NOT_READY = "not_ready"


class BayesianFilter(ABC):
    """Common interface for KalmanFilter2D and IMMFilter.

    Filters start uninitialized; predict() and update() return
    StepOutcome.NOT_READY without touching anything until initialize()
    has been called.
    """

    def __init__(self):
        self._x: np.ndarray | None = None
        self._P: np.ndarray | None = None
        self.last_innovation: np.ndarray | None = None
        self.last_kalman_gain: np.ndarray | None = None
        self.last_innovation_covariance: np.ndarray | None = None

    @abstractmethod
    def initialize(self, x0: np.ndarray, P0: np.ndarray) -> None:
        """Set initial state estimate and covariance."""

    @abstractmethod
    def predict(self) -> StepOutcome:
        """Propagate state forward one timestep using the dynamics model."""

    @abstractmethod
    def update(self, z: np.ndarray) -> StepOutcome:
        """Fuse a 2D position measurement."""

    @abstractmethod
    def update_noise(self, measurement_noise: float, process_noise: float) -> None:
        """Replace the noise scalars; state and covariance are kept."""

    @abstractmethod
    def get_system_matrices(self) -> dict[str, np.ndarray]:
        """Model matrices for display, keyed by their conventional names."""

    def get_state(self) -> np.ndarray | None:
        return None if self._x is None else self._x.copy()

    def get_covariance(self) -> np.ndarray | None:
        return None if self._P is None else self._P.copy()

    def get_position(self) -> np.ndarray | None:
        return None if self._x is None else self._x[:2].copy()

    def get_position_covariance(self) -> np.ndarray | None:
        if self._P is None:
            return None
        return matrix.extract_submatrix(self._P, 0, 1, 0, 1)

    def _clear_step_cache(self) -> None:
        self.last_innovation = None
        self.last_kalman_gain = None
        self.last_innovation_covariance = None

    @property
    def initialized(self) -> bool:
        return self._x is not None

    @property
    def phase(self) -> Phase:
        return Phase.READY if self.initialized else Phase.UNINITIALIZED

    @property
    @abstractmethod
    def name(self) -> str:
        """Filter name for display."""
