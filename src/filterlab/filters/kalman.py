"""Linear Kalman filter over the 2D constant-acceleration state.

State is [px, py, vx, vy, ax, ay]; only position is observed, so the
innovation covariance is 2x2 and is inverted in closed form.
Covariance update uses the simple form P = (I - KH) P. Symmetrization
after the update is available but off by default.
"""

import numpy as np

from . import matrix
from .base import BayesianFilter, StepOutcome
from ..dynamics.motion import ConstantAccelerationModel, MotionModelParams


class KalmanFilter2D(BayesianFilter):

    def __init__(self, params: MotionModelParams, symmetrize: bool = False):
        super().__init__()
        self._symmetrize = symmetrize
        self._model = ConstantAccelerationModel(params)
        self.F = self._model.F()
        self.H = self._model.H()
        self._rebuild_noise()

    def _rebuild_noise(self) -> None:
        self.Q = self._model.Q()
        self.R = self._model.R()

    @property
    def params(self) -> MotionModelParams:
        return self._model.params

    def initialize(self, x0: np.ndarray, P0: np.ndarray) -> None:
        self._x = np.array(x0, dtype=float).reshape(6)
        self._P = np.array(P0, dtype=float)
        self._clear_step_cache()

    def set_state(self, x: np.ndarray, P: np.ndarray) -> None:
        """Overwrite state and covariance with copies of the given arrays."""
        self.initialize(x, P)

    def predict(self) -> StepOutcome:
        if not self.initialized:
            return StepOutcome.NOT_READY
        F = self.F
        self._x = matrix.multiply(F, self._x)
        FP = matrix.multiply(F, self._P)
        self._P = matrix.add(matrix.multiply(FP, matrix.transpose(F)), self.Q)
        self._clear_step_cache()
        return StepOutcome.APPLIED

    def update(self, z: np.ndarray) -> StepOutcome:
        if not self.initialized:
            return StepOutcome.NOT_READY
        H = self.H
        z = np.asarray(z, dtype=float).reshape(2)

        with np.errstate(all="ignore"):
            y = matrix.subtract(z, matrix.multiply(H, self._x))

            # Innovation covariance
            HP = matrix.multiply(H, self._P)
            S = matrix.add(matrix.multiply(HP, matrix.transpose(H)), self.R)

            # Kalman gain
            PHt = matrix.multiply(self._P, matrix.transpose(H))
            K = matrix.multiply(PHt, matrix.inverse2x2(S))

            # State update
            self._x = matrix.add(self._x, matrix.multiply(K, y))

            # Simple-form covariance update: P = (I-KH)P
            I_KH = matrix.subtract(matrix.identity(6), matrix.multiply(K, H))
            self._P = matrix.multiply(I_KH, self._P)

        if self._symmetrize:
            self._P = 0.5 * (self._P + self._P.T)

        self.last_innovation = y
        self.last_innovation_covariance = S
        self.last_kalman_gain = K
        return StepOutcome.APPLIED

    def update_noise(self, measurement_noise: float, process_noise: float) -> None:
        self._model = ConstantAccelerationModel(
            self.params.with_noise(measurement_noise, process_noise)
        )
        self._rebuild_noise()

    def get_system_matrices(self) -> dict[str, np.ndarray]:
        return {"F": self.F.copy(), "H": self.H.copy(), "Q": self.Q.copy(), "R": self.R.copy()}

    @property
    def name(self) -> str:
        return "Kalman Filter 2D"
