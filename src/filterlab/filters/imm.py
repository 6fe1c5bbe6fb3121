"""Interacting Multiple Model (IMM) filter for 2D position tracking.

Runs two KalmanFilter2D sub-filters on the same constant-acceleration
dynamics with different process noise levels. Model probabilities are
updated each measurement from the innovation likelihoods. Output is the
probability-weighted blend of the sub-filter estimates.

Two modes: CA-smooth (low q) and CA-maneuver (high q).
"""

import numpy as np

from . import matrix
from .base import BayesianFilter, StepOutcome
from .kalman import KalmanFilter2D
from ..dynamics.motion import MotionModelParams


DEFAULT_TRANSITION = ((0.94, 0.06), (0.06, 0.94))
DEFAULT_SLOW_FACTOR = 0.5
DEFAULT_FAST_FACTOR = 3.0
DEFAULT_SLOW_FLOOR = 0.1

# Numerical floors
MIX_FLOOR = 1e-12
DET_FLOOR = 1e-9
PROB_FLOOR = 1e-12


def mode_process_noise(process_noise: float, slow_factor: float = DEFAULT_SLOW_FACTOR,
                       fast_factor: float = DEFAULT_FAST_FACTOR,
                       slow_floor: float = DEFAULT_SLOW_FLOOR) -> tuple[float, float]:
    """Process noise of the (smooth, maneuver) models for a base noise q."""
    return max(slow_floor, process_noise * slow_factor), process_noise * fast_factor


def validate_transition_matrix(transition_matrix) -> np.ndarray:
    Pi = np.array(transition_matrix, dtype=float)
    if Pi.shape != (2, 2):
        raise ValueError(f"IMM transition matrix must be 2x2, got shape {Pi.shape}")
    if np.any(Pi < 0) or not np.allclose(Pi.sum(axis=1), 1.0, atol=1e-9):
        raise ValueError(f"IMM transition matrix rows must be probabilities summing to 1, got {Pi.tolist()}")
    return Pi


def gaussian_likelihood(y: np.ndarray, S: np.ndarray) -> tuple[float, float]:
    """Innovation likelihood under N(0, S), returned as (likelihood, log-likelihood).

    L = exp(-0.5 * max(0, y' S^-1 y)) / sqrt(max(det S, DET_FLOOR)).
    The 2*pi factor is common to both models and cancels in the
    normalization, so it is left out.
    """
    with np.errstate(all="ignore"):
        S_inv = matrix.inverse2x2(S)
        q = float(y @ S_inv @ y)
        det_S = matrix.determinant2x2(S)
        log_like = -0.5 * max(0.0, q) - 0.5 * np.log(max(det_S, DET_FLOOR))
        return float(np.exp(log_like)), float(log_like)


class IMMFilter(BayesianFilter):
    """Interacting Multiple Model filter with two constant-acceleration sub-filters."""

    def __init__(
        self,
        params: MotionModelParams,
        transition_matrix=DEFAULT_TRANSITION,
        slow_factor: float = DEFAULT_SLOW_FACTOR,
        fast_factor: float = DEFAULT_FAST_FACTOR,
        slow_floor: float = DEFAULT_SLOW_FLOOR,
        symmetrize: bool = False,
    ):
        super().__init__()
        self._params = params
        self._slow_factor = slow_factor
        self._fast_factor = fast_factor
        self._slow_floor = slow_floor
        self._Pi = validate_transition_matrix(transition_matrix)  # Pi[i,j] = P(model i -> model j)
        self._M = 2

        q_slow, q_fast = self._mode_noise(params.process_noise)
        self.models = [
            KalmanFilter2D(params.with_noise(params.measurement_noise, q_slow), symmetrize),
            KalmanFilter2D(params.with_noise(params.measurement_noise, q_fast), symmetrize),
        ]

        # Model probabilities (uniform prior)
        self._mu = np.ones(self._M) / self._M
        self._likelihoods = np.zeros(self._M)
        self._active = 0

    def _mode_noise(self, process_noise: float) -> tuple[float, float]:
        return mode_process_noise(process_noise, self._slow_factor,
                                  self._fast_factor, self._slow_floor)

    def initialize(self, x0: np.ndarray, P0: np.ndarray, mu0=None) -> None:
        for model in self.models:
            model.initialize(x0, P0)
        if mu0 is None:
            self._mu = np.ones(self._M) / self._M
        else:
            self._mu = np.array(mu0, dtype=float)
        self._likelihoods = np.zeros(self._M)
        self._active = self._select_active()
        self._clear_step_cache()
        self._combine()

    def _predicted_probabilities(self) -> np.ndarray:
        """c_j = sum_i Pi[i,j] * mu[i]."""
        return self._Pi.T @ self._mu

    def predict(self) -> StepOutcome:
        if not self.initialized:
            return StepOutcome.NOT_READY

        M = self._M
        Pi = self._Pi

        # --- Mixing step ---
        c = np.maximum(self._predicted_probabilities(), MIX_FLOOR)

        # Mixing probabilities: w[i,j] = Pi[i,j] * mu[i] / c[j]
        w = np.zeros((M, M))
        for i in range(M):
            for j in range(M):
                w[i, j] = Pi[i, j] * self._mu[i] / c[j]

        # Mixed priors are built from the pre-mixing states of every model
        # before any model is overwritten.
        xs = [m.get_state() for m in self.models]
        Ps = [m.get_covariance() for m in self.models]
        x_mixed = [np.zeros(6) for _ in range(M)]
        P_mixed = [np.zeros((6, 6)) for _ in range(M)]
        for j in range(M):
            for i in range(M):
                x_mixed[j] += w[i, j] * xs[i]
            # Mixed covariance (with spread-of-means)
            for i in range(M):
                diff = xs[i] - x_mixed[j]
                P_mixed[j] += w[i, j] * (Ps[i] + matrix.outer(diff))

        # --- Per-model prediction ---
        for j in range(M):
            self.models[j].set_state(x_mixed[j], P_mixed[j])
            self.models[j].predict()

        self._clear_step_cache()
        self._combine()
        return StepOutcome.APPLIED

    def update(self, z: np.ndarray) -> StepOutcome:
        if not self.initialized:
            return StepOutcome.NOT_READY

        M = self._M
        likelihoods = np.zeros(M)
        log_likes = np.zeros(M)
        for j in range(M):
            model = self.models[j]
            model.update(z)
            likelihoods[j], log_likes[j] = gaussian_likelihood(
                model.last_innovation, model.last_innovation_covariance,
            )
        self._likelihoods = likelihoods

        # Model probability update: mu_j = L_j c_j / sum_i L_i c_i.
        # Evaluated relative to the largest log-likelihood so that two
        # underflowing likelihoods still give a proper distribution.
        c = self._predicted_probabilities()
        with np.errstate(all="ignore"):
            scaled = np.exp(log_likes - np.max(log_likes)) * c
            total = np.sum(scaled)
        if np.isfinite(total) and total > PROB_FLOOR:
            self._mu = scaled / total
        else:
            # Nothing to discriminate on, fall back to the predicted probabilities
            self._mu = c / np.sum(c)

        self._active = self._select_active()
        active = self.models[self._active]
        self.last_innovation = active.last_innovation
        self.last_innovation_covariance = active.last_innovation_covariance
        self.last_kalman_gain = active.last_kalman_gain

        self._combine()
        return StepOutcome.APPLIED

    def _select_active(self) -> int:
        # Ties go to the smooth model
        return 0 if self._mu[0] >= self._mu[1] else 1

    def _combine(self) -> None:
        x_hat = np.zeros(6)
        for j in range(self._M):
            x_hat += self._mu[j] * self.models[j].get_state()
        P_hat = np.zeros((6, 6))
        for j in range(self._M):
            diff = self.models[j].get_state() - x_hat
            P_hat += self._mu[j] * (self.models[j].get_covariance() + matrix.outer(diff))
        self._x = x_hat
        self._P = P_hat

    def update_noise(self, measurement_noise: float, process_noise: float) -> None:
        q_slow, q_fast = self._mode_noise(process_noise)
        self._params = self._params.with_noise(measurement_noise, process_noise)
        self.models[0].update_noise(measurement_noise, q_slow)
        self.models[1].update_noise(measurement_noise, q_fast)

    def get_system_matrices(self) -> dict[str, np.ndarray | None]:
        m0 = self.models[0].get_system_matrices()
        m1 = self.models[1].get_system_matrices()
        return {
            "F": m0["F"],
            "H": m0["H"],
            "R": m0["R"],
            "Q0": m0["Q"],
            "Q1": m1["Q"],
            "Pi": self._Pi.copy(),
            "P": self.get_covariance(),
        }

    def get_mode_probabilities(self) -> np.ndarray:
        """Return (M,) vector of current model probabilities."""
        return self._mu.copy()

    def get_likelihoods(self) -> np.ndarray:
        """Innovation likelihoods from the most recent update."""
        return self._likelihoods.copy()

    @property
    def transition_matrix(self) -> np.ndarray:
        return self._Pi.copy()

    @property
    def active_model(self) -> int:
        return self._active

    def model_entropy(self) -> float:
        """-sum mu log mu over the non-negligible probabilities."""
        mu = self._mu[self._mu > 1e-10]
        return float(-np.sum(mu * np.log(mu)))

    def model_positions(self) -> list[np.ndarray | None]:
        return [m.get_position() for m in self.models]

    @property
    def name(self) -> str:
        return "IMM Filter (2-Model)"
