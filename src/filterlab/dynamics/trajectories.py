"""Ground-truth trajectory generators for the 2D target.

Every generator is a TrajectorySource: generate_position(t) returns the true
[x, y] at time t for any t in [0, max_time]. Most are closed-form curves;
the few that need integration or randomness precompute their path once at
construction from the generator they are given.
"""

from abc import ABC, abstractmethod
from typing import Callable

import numpy as np

from .motion import ConstantAccelerationModel, MotionModelParams


DEFAULT_SCALE = 150.0


class TrajectorySource(ABC):

    def __init__(self, max_time: float = 30.0, scale: float = DEFAULT_SCALE):
        self.max_time = max_time
        self.scale = scale

    @abstractmethod
    def generate_position(self, t: float) -> np.ndarray:
        """True (2,) position at time t."""

    @property
    def name(self) -> str:
        return type(self).__name__


class ParametricTrajectory(TrajectorySource):
    """Closed-form curve p(t; max_time, scale)."""

    def __init__(self, fn: Callable[[float, float, float], tuple[float, float]],
                 label: str, max_time: float = 30.0, scale: float = DEFAULT_SCALE):
        super().__init__(max_time, scale)
        self._fn = fn
        self._label = label

    def generate_position(self, t: float) -> np.ndarray:
        return np.array(self._fn(t, self.max_time, self.scale), dtype=float)

    @property
    def name(self) -> str:
        return self._label


class SampledTrajectory(TrajectorySource):
    """Path precomputed on a fixed grid; looked up by floor(t / step)."""

    def __init__(self, path: np.ndarray, step: float, label: str,
                 max_time: float = 30.0, scale: float = DEFAULT_SCALE):
        super().__init__(max_time, scale)
        self.path = np.asarray(path, dtype=float)
        self.step = step
        self._label = label

    def generate_position(self, t: float) -> np.ndarray:
        # Small epsilon so t = k*step computed in floating point lands on k
        idx = int(np.floor(t / self.step + 1e-9))
        idx = min(max(idx, 0), len(self.path) - 1)
        return self.path[idx, :2].copy()

    @property
    def name(self) -> str:
        return self._label


def _clip01(v: float) -> float:
    return min(max(v, 0.0), 1.0)


# --- Geometric ---

def _figure8(t, T, s):
    phase = t * 3 * 2 * np.pi / T
    return s * np.sin(phase), s * np.sin(phase) * np.cos(phase)


def _circle(t, T, s):
    phase = t * 2 * np.pi / (T / 3)
    return s * np.cos(phase), s * np.sin(phase)


def _square(t, T, s):
    phase = _clip01(t / T)
    if phase < 0.25:
        return s * (phase / 0.25 * 2 - 1), s
    if phase < 0.5:
        return s, s * (1 - (phase - 0.25) / 0.25 * 2)
    if phase < 0.75:
        return s * (1 - (phase - 0.5) / 0.25 * 2), -s
    return -s, s * ((phase - 0.75) / 0.25 * 2 - 1)


def _heart(t, T, s):
    phase = t * 6 * np.pi / T
    x = s * 0.8 * (16 * np.sin(phase) ** 3) / 16
    y = s * 0.8 * (13 * np.cos(phase) - 5 * np.cos(2 * phase)
                   - 2 * np.cos(3 * phase) - np.cos(4 * phase)) / 16
    return x, -y


def _star(t, T, s):
    cycle = T / 2
    phase = ((t % cycle) / cycle) * 10
    k = int(np.floor(phase))
    progress = phase - k

    def vertex(index, outer_point):
        angle = index * 2 * np.pi / 10 - np.pi / 2
        radius = s if outer_point else 0.4 * s
        return radius * np.cos(angle), radius * np.sin(angle)

    outer_point = k % 2 == 0
    x0, y0 = vertex(k, outer_point)
    x1, y1 = vertex((k + 1) % 10, not outer_point)
    return x0 + progress * (x1 - x0), y0 + progress * (y1 - y0)


def _infinity(t, T, s):
    phase = t * 6 * np.pi / T
    denom = 1 + np.sin(phase) ** 2
    return s * np.cos(phase) / denom, s * np.sin(phase) * np.cos(phase) / denom


def _spiral(t, T, s):
    phase = t * 4 * np.pi / T
    radius = s * (0.2 + 0.8 * t / T)
    return radius * np.cos(phase), radius * np.sin(phase)


# --- Mathematical ---

def _lissajous(t, T, s):
    w = 2 * np.pi / (T / 1.5)
    return s * np.sin(2 * w * t + np.pi / 6), s * 0.7 * np.sin(3 * w * t)


def _min_jerk(t, T, s):
    tau = _clip01(t / T)
    e = 10 * tau**3 - 15 * tau**4 + 6 * tau**5
    return -s + 2 * s * e, 0.6 * s * np.sin(np.pi * e)


# --- Physics ---

def _stationary(t, T, s):
    return 0.0, 0.0


def _constant_velocity(t, T, s):
    return -s + 2 * s * _clip01(t / T), 0.0


def _constant_acceleration(t, T, s):
    a = 2 * (2 * s) / (T * T)
    return -s + 0.5 * a * t * t, 0.0


def _sine_wave(t, T, s):
    return s * np.sin(2 * np.pi * (6 / T) * t), 0.0


def _parabolic(t, T, s):
    phase = _clip01(t / T)
    return s * (phase * 2 - 1), 0.8 * s * (1 - 4 * phase * (1 - phase))


def _step_function(t, T, s):
    positions = [(-s, -0.5 * s), (s, -0.5 * s), (-s, 0.5 * s),
                 (s, 0.5 * s), (0.0, -s), (0.0, s)]
    k = int(np.floor(t / (T / 6)))
    return positions[k % len(positions)]


def _stop_and_go(t, T, s):
    cycle = T / 4
    phase = (t % cycle) / cycle
    angle = (int(np.floor(t / cycle)) % 4) * np.pi / 2
    reach = phase / 0.7 if phase < 0.7 else 1.0
    return s * reach * np.cos(angle), s * reach * np.sin(angle)


def _const_accel_bezier(t, T, s):
    tau = _clip01(t / T)
    u = 1 - tau
    p0, c, p1 = (-s, 0.0), (0.0, -0.8 * s), (s, 0.0)
    x = u * u * p0[0] + 2 * u * tau * c[0] + tau * tau * p1[0]
    y = u * u * p0[1] + 2 * u * tau * c[1] + tau * tau * p1[1]
    return x, y


def _const_accel_line(t, T, s):
    a = 2 * (2 * s) / (T * T)
    return -s + 0.5 * a * t * t, -s + 0.5 * a * t * t


_PARAMETRIC = {
    "figure8": (_figure8, "Figure-8"),
    "circle": (_circle, "Circle"),
    "square": (_square, "Square"),
    "heart": (_heart, "Heart"),
    "star": (_star, "Star"),
    "infinity": (_infinity, "Infinity"),
    "spiral": (_spiral, "Spiral"),
    "lissajous": (_lissajous, "Lissajous"),
    "minjerk": (_min_jerk, "Minimum-Jerk Arc"),
    "stationary": (_stationary, "Stationary"),
    "constantvelocity": (_constant_velocity, "Constant Velocity Line"),
    "constantacceleration": (_constant_acceleration, "Constant Acceleration Line"),
    "sinewave": (_sine_wave, "Sine Wave"),
    "parabolic": (_parabolic, "Parabolic Arc"),
    "stepfunction": (_step_function, "Step Function"),
    "stopandgo": (_stop_and_go, "Stop and Go"),
    "constaccel_bezier": (_const_accel_bezier, "Const-Accel Bezier"),
    "constaccel_line": (_const_accel_line, "Const-Accel Diagonal"),
}


# --- Precomputed ---

def _clothoid(max_time: float, scale: float, rng: np.random.Generator) -> SampledTrajectory:
    """Euler spiral: curvature grows linearly with arclength at constant speed."""
    step = 0.01
    v = scale * 3 / max_time
    k0 = 0.0
    k1 = (np.pi / (scale * 2)) / (v * max_time)
    n = max(2, int(np.floor(max_time / step)))

    path = np.zeros((n + 1, 2))
    x, y, theta, arc = -scale, 0.0, 0.0, 0.0
    for i in range(n + 1):
        path[i] = x, y
        theta += (k0 + k1 * arc) * v * step
        x += v * np.cos(theta) * step
        y += v * np.sin(theta) * step
        arc += v * step
    path -= (path[0] + path[-1]) / 2
    return SampledTrajectory(path, max_time / n, "Euler Spiral (Clothoid)", max_time, scale)


def _random_walk(max_time: float, scale: float, rng: np.random.Generator) -> SampledTrajectory:
    step = 0.05
    n = int(np.ceil(max_time / step))
    step_size = scale * 0.02
    bound = scale * 1.2

    path = np.zeros((n + 1, 2))
    pos = np.zeros(2)
    for i in range(n + 1):
        path[i] = pos
        angle = rng.uniform(0, 2 * np.pi)
        pos = np.clip(pos + step_size * np.array([np.cos(angle), np.sin(angle)]), -bound, bound)
    return SampledTrajectory(path, step, "Random Walk", max_time, scale)


class RandomFourierTrajectory(TrajectorySource):
    """Band-limited sum of low harmonics, normalized to ~70% of scale."""

    FREQS = (1, 2, 3)

    def __init__(self, max_time: float, scale: float, rng: np.random.Generator):
        super().__init__(max_time, scale)
        k = len(self.FREQS)
        self.coeffs = rng.uniform(-1, 1, size=(4, k))  # ax, bx, ay, by
        norm = np.sqrt(np.mean(self.coeffs**2))
        self.gain = 0.7 / max(norm, 1e-6)

    def generate_position(self, t: float) -> np.ndarray:
        w = np.array(self.FREQS) * 2 * np.pi / self.max_time
        ax, bx, ay, by = self.coeffs
        x = np.sum(ax * np.sin(w * t) + bx * np.cos(w * t))
        y = np.sum(ay * np.sin(w * t) + by * np.cos(w * t))
        return self.scale * self.gain * np.array([x, y])

    @property
    def name(self) -> str:
        return "Random Fourier (Smooth)"


def constant_acceleration_walk(
    num_steps: int, params: MotionModelParams, rng: np.random.Generator,
    x0: np.ndarray | None = None,
) -> SampledTrajectory:
    """Truth drawn from the filter's own CA model with process noise N(0, Q).

    Matches the estimator's assumptions exactly, which makes it the
    reference truth for calibration runs.
    """
    model = ConstantAccelerationModel(params)
    states = np.zeros((num_steps + 1, 6))
    states[0] = np.zeros(6) if x0 is None else x0
    for k in range(1, num_steps + 1):
        states[k] = model.sample(states[k - 1], rng)
    return SampledTrajectory(states, params.dt, "CA Random Walk",
                             max_time=num_steps * params.dt, scale=0.0)


_PRECOMPUTED = {
    "clothoid": _clothoid,
    "randomwalk": _random_walk,
    "rfsmooth": RandomFourierTrajectory,
}

TRAJECTORY_TYPES = sorted([*_PARAMETRIC, *_PRECOMPUTED])


def make_trajectory(
    traj_type: str,
    max_time: float = 30.0,
    scale: float = DEFAULT_SCALE,
    rng: np.random.Generator | None = None,
) -> TrajectorySource:
    """Dispatch to the appropriate trajectory generator."""
    rng = rng or np.random.default_rng()
    if traj_type in _PARAMETRIC:
        fn, label = _PARAMETRIC[traj_type]
        return ParametricTrajectory(fn, label, max_time, scale)
    if traj_type in _PRECOMPUTED:
        return _PRECOMPUTED[traj_type](max_time, scale, rng)
    raise ValueError(f"Unknown trajectory type: {traj_type}. Choose from {TRAJECTORY_TYPES}")
