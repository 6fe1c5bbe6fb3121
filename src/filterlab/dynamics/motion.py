"""Constant-acceleration motion model in 2D.

State vector: x = [px, py, vx, vy, ax, ay] (6D)
Measurement:  z = [px, py] (position only)
"""

from dataclasses import dataclass

import numpy as np


STATE_DIM = 6
MEAS_DIM = 2


@dataclass(frozen=True)
class MotionModelParams:
    """Time step and the two noise scalars that fully determine F, H, Q, R."""

    dt: float
    process_noise: float
    measurement_noise: float

    def __post_init__(self):
        if not self.dt > 0:
            raise ValueError(f"dt must be positive, got {self.dt}")

    def with_noise(self, measurement_noise: float, process_noise: float) -> "MotionModelParams":
        return MotionModelParams(self.dt, process_noise, measurement_noise)


class ConstantAccelerationModel:
    """Constant acceleration (CA) model, x and y axes independent.

    F_ca = [[I2, dt*I2, dt^2/2*I2],
            [0,   I2,    dt*I2   ],
            [0,   0,     I2      ]]
    """

    def __init__(self, params: MotionModelParams):
        self.params = params
        self.state_dim = STATE_DIM

    @property
    def dt(self) -> float:
        return self.params.dt

    def F(self, dt: float | None = None) -> np.ndarray:
        dt = dt if dt is not None else self.dt
        F = np.eye(6)
        for i in range(2):
            F[i, i + 2] = dt
            F[i, i + 4] = 0.5 * dt * dt
            F[i + 2, i + 4] = dt
        return F

    def H(self) -> np.ndarray:
        H = np.zeros((2, 6))
        H[0, 0] = 1.0
        H[1, 1] = 1.0
        return H

    def G(self, dt: float | None = None) -> np.ndarray:
        """Per-axis noise gain [dt^2/2, dt, 1] laid out on the 6D state."""
        dt = dt if dt is not None else self.dt
        G = np.zeros((6, 2))
        for i in range(2):
            G[i, i] = dt**2 / 2
            G[i + 2, i] = dt
            G[i + 4, i] = 1.0
        return G

    def Q(self, dt: float | None = None) -> np.ndarray:
        """Piecewise white noise jerk model, Q = q * G G^T."""
        dt = dt if dt is not None else self.dt
        q = self.params.process_noise
        # Block structure for each axis over (p, v, a)
        q_pp = q * dt**4 / 4
        q_pv = q * dt**3 / 2
        q_pa = q * dt**2 / 2
        q_vv = q * dt**2
        q_va = q * dt
        q_aa = q
        Q = np.zeros((6, 6))
        for i in range(2):
            p, v, a = i, i + 2, i + 4
            Q[p, p] = q_pp
            Q[p, v] = Q[v, p] = q_pv
            Q[p, a] = Q[a, p] = q_pa
            Q[v, v] = q_vv
            Q[v, a] = Q[a, v] = q_va
            Q[a, a] = q_aa
        return Q

    def R(self) -> np.ndarray:
        r = self.params.measurement_noise
        return np.eye(2) * r * r

    def predict(self, x: np.ndarray, dt: float | None = None) -> np.ndarray:
        return self.F(dt) @ x

    def sample(self, x: np.ndarray, rng: np.random.Generator,
               dt: float | None = None) -> np.ndarray:
        """Propagate one step with process noise drawn from N(0, Q)."""
        dt = dt if dt is not None else self.dt
        w = self.G(dt) @ (np.sqrt(self.params.process_noise) * rng.standard_normal(2))
        return self.predict(x, dt) + w
