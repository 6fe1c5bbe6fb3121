"""Estimation pipeline: drives one estimator over a finite time horizon.

Each run pulls truth from a TrajectorySource, decides measurement arrival
on the measurement cadence, bootstraps the estimator from the first few
raw measurements, then predicts every tick and updates whenever a
measurement arrived. Every tick produces an immutable FilterSnapshot.

A run is a pure function of (config, trajectory, noise stream). Changing
any setting goes through reconfigure(), which discards the estimator and
replays from tick 0.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from ..config import SimulationConfig
from ..dynamics.trajectories import TrajectorySource, make_trajectory
from ..filters.base import BayesianFilter, Phase
from ..filters.registry import (
    FilterSpec, FilterType, build_filter_table, extract_filter_data, lookup,
)
from ..sensors.noise_models import GaussianNoise, NoiseSource
from .statistics import (
    CHI2_95_2DOF, CoverageAccumulator, confidence_bound, mahalanobis_sq,
)

logger = logging.getLogger(__name__)

# Initial velocity / acceleration variances for a freshly bootstrapped track
P0_VEL = 1000.0
P0_ACC = 10000.0

# Settings baked into a filter table when it is built
TABLE_SETTINGS = frozenset({
    "imm_transition_matrix", "imm_slow_factor", "imm_fast_factor", "imm_slow_floor", "symmetrize",
})


@dataclass(frozen=True)
class Measurement:
    time: float
    position: np.ndarray


@dataclass(frozen=True)
class FilterSnapshot:
    """Everything the estimator reported at one tick."""

    index: int
    time: float
    truth: np.ndarray
    measurement: Measurement | None
    phase: Phase
    bootstrap_count: int
    bootstrap_needed: int
    state: np.ndarray | None = None
    covariance: np.ndarray | None = None  # 2x2 position block
    full_covariance: np.ndarray | None = None
    innovation: np.ndarray | None = None
    kalman_gain: np.ndarray | None = None
    innovation_covariance: np.ndarray | None = None
    position_error: float | None = None
    confidence_95: float | None = None
    mahalanobis_sq: float | None = None
    coverage_pct: float | None = None
    filter_data: dict = field(default_factory=dict)

    @property
    def initialized(self) -> bool:
        return self.phase is Phase.READY

    @property
    def had_measurement(self) -> bool:
        return self.measurement is not None

    @property
    def model_probabilities(self) -> np.ndarray | None:
        return self.filter_data.get("model_probabilities")

    @property
    def active_model(self) -> int | None:
        return self.filter_data.get("active_model")


@dataclass
class SimulationResult:
    config: SimulationConfig
    filter_name: str
    snapshots: list[FilterSnapshot]
    measurements: list[Measurement]
    coverage: CoverageAccumulator

    @property
    def times(self) -> np.ndarray:
        return np.array([s.time for s in self.snapshots])

    @property
    def truths(self) -> np.ndarray:
        return np.array([s.truth for s in self.snapshots])

    @property
    def estimates(self) -> np.ndarray:
        """(T, 2) estimated positions, nan before initialization."""
        return np.array([
            s.state[:2] if s.state is not None else [np.nan, np.nan] for s in self.snapshots
        ])

    @property
    def errors(self) -> np.ndarray:
        return np.array([np.nan if s.position_error is None else s.position_error
                         for s in self.snapshots])

    @property
    def confidence_bounds(self) -> np.ndarray:
        return np.array([np.nan if s.confidence_95 is None else s.confidence_95
                         for s in self.snapshots])

    @property
    def bootstrap_index(self) -> int | None:
        for s in self.snapshots:
            if s.initialized:
                return s.index
        return None

    def summary(self) -> dict:
        errors = self.errors
        valid = errors[np.isfinite(errors)]
        bounds = self.confidence_bounds
        bounds = bounds[np.isfinite(bounds)]
        return {
            "filter": self.filter_name,
            "trajectory": self.config.trajectory,
            "ticks": len(self.snapshots),
            "measurements": len(self.measurements),
            "bootstrap_index": self.bootstrap_index,
            "pos_rmse": float(np.sqrt(np.mean(valid**2))) if len(valid) else np.nan,
            "final_error": float(valid[-1]) if len(valid) else np.nan,
            "mean_conf95": float(np.mean(bounds)) if len(bounds) else np.nan,
            "coverage": self.coverage.pct,
        }


def bootstrap_estimate(positions: list[np.ndarray], measurement_noise: float
                       ) -> tuple[np.ndarray, np.ndarray]:
    """Initial state and covariance from a handful of raw position fixes.

    Position is the mean of the fixes, velocity and acceleration start at
    zero with wide variances.
    """
    mean = np.mean(np.asarray(positions, dtype=float), axis=0)
    x0 = np.array([mean[0], mean[1], 0.0, 0.0, 0.0, 0.0])
    meas_var = measurement_noise * measurement_noise
    P0 = np.diag([4 * meas_var, 4 * meas_var, P0_VEL, P0_VEL, P0_ACC, P0_ACC])
    return x0, P0


class EstimationPipeline:

    def __init__(
        self,
        config: SimulationConfig,
        trajectory: TrajectorySource | None = None,
        noise: NoiseSource | None = None,
        filter_table: dict[FilterType, FilterSpec] | None = None,
    ):
        self.config = config
        self._explicit_trajectory = trajectory
        self._explicit_noise = noise
        self._explicit_table = filter_table
        self._build_table()
        self.filter: BayesianFilter | None = None
        self.result: SimulationResult | None = None

    def _build_table(self) -> None:
        self.filter_table = self._explicit_table or build_filter_table(
            self.config.imm_settings(), symmetrize=self.config.symmetrize,
        )
        self.filter_spec = lookup(self.filter_table, self.config.filter_type)

    def _make_trajectory(self) -> TrajectorySource:
        if self._explicit_trajectory is not None:
            return self._explicit_trajectory
        # Separate stream from the noise so trajectory choice never shifts the noise
        rng = np.random.default_rng(None if self.config.seed is None else self.config.seed + 1)
        return make_trajectory(self.config.trajectory, self.config.max_time,
                               self.config.trajectory_scale, rng)

    def _make_noise(self) -> NoiseSource:
        if self._explicit_noise is not None:
            return self._explicit_noise
        return GaussianNoise(seed=self.config.seed)

    def reconfigure(self, **overrides) -> SimulationResult:
        """Apply setting changes, discard the estimator and replay from tick 0.

        An explicitly supplied noise source is reused as-is, so its stream
        continues where the previous run left it. An explicitly supplied
        filter table pins the IMM and symmetrize settings; overriding them
        raises ValueError.
        """
        pinned = sorted(TABLE_SETTINGS.intersection(overrides))
        if self._explicit_table is not None and pinned:
            raise ValueError(
                f"{', '.join(pinned)} cannot be changed on a pipeline built with an explicit filter table"
            )
        self.config = self.config.with_overrides(**overrides)
        self._build_table()
        if "trajectory" in overrides or "max_time" in overrides or "trajectory_scale" in overrides:
            self._explicit_trajectory = None
        logger.debug("Reconfigured pipeline: %s", overrides)
        return self.run()

    def run(self) -> SimulationResult:
        cfg = self.config
        trajectory = self._make_trajectory()
        noise = self._make_noise()
        filt = self.filter_spec.create(cfg.to_params())
        self.filter = filt

        dt = cfg.dt
        sigma = cfg.measurement_noise
        bootstrap_needed = cfg.bootstrap_needed
        coverage = CoverageAccumulator(CHI2_95_2DOF)

        snapshots: list[FilterSnapshot] = []
        measurements: list[Measurement] = []
        buffer: list[np.ndarray] = []
        last_measurement_time = -np.inf

        last_innovation = None
        last_gain = None
        last_S = None

        for k in range(cfg.num_ticks):
            t = k * dt
            truth = np.asarray(trajectory.generate_position(t), dtype=float)

            # Measurement arrival, half-step tolerance against float drift
            measurement = None
            if t - last_measurement_time >= cfg.measurement_rate - dt / 2:
                measurement = Measurement(t, noise.add_gaussian_noise(truth, sigma))
                measurements.append(measurement)
                last_measurement_time = t

                buffer.append(measurement.position)
                if not filt.initialized and len(buffer) >= bootstrap_needed:
                    filt.initialize(*bootstrap_estimate(buffer[-bootstrap_needed:], sigma))
                    logger.debug("%s bootstrapped at tick %d (t=%.3f)", filt.name, k, t)

            fields = {}
            if filt.initialized:
                filt.predict()
                if measurement is not None:
                    filt.update(measurement.position)

                # Innovation / gain persist on the snapshot until the next update
                if filt.last_innovation is not None:
                    last_innovation = filt.last_innovation.copy()
                if filt.last_kalman_gain is not None:
                    last_gain = filt.last_kalman_gain.copy()
                if filt.last_innovation_covariance is not None:
                    last_S = filt.last_innovation_covariance.copy()

                state = filt.get_state()
                cov_pos = filt.get_position_covariance()
                err_vec = truth - state[:2]
                d2 = mahalanobis_sq(err_vec, cov_pos)
                coverage.add(d2)
                if not np.isfinite(d2):
                    logger.warning("Non-finite coverage distance at tick %d; counted as a miss", k)

                fields = dict(
                    state=state,
                    covariance=cov_pos,
                    full_covariance=filt.get_covariance(),
                    innovation=last_innovation,
                    kalman_gain=last_gain,
                    innovation_covariance=last_S,
                    position_error=float(np.linalg.norm(err_vec)),
                    confidence_95=confidence_bound(cov_pos),
                    mahalanobis_sq=d2,
                    coverage_pct=coverage.pct,
                    filter_data=extract_filter_data(self.filter_table, cfg.filter_type, filt, truth),
                )
                phase = Phase.READY
            else:
                phase = Phase.BOOTSTRAPPING if buffer else Phase.UNINITIALIZED

            snapshots.append(FilterSnapshot(
                index=k,
                time=t,
                truth=truth,
                measurement=measurement,
                phase=phase,
                bootstrap_count=min(len(buffer), bootstrap_needed),
                bootstrap_needed=bootstrap_needed,
                **fields,
            ))

        self.result = SimulationResult(cfg, filt.name, snapshots, measurements, coverage)
        return self.result


def run_simulation(config: SimulationConfig, trajectory: TrajectorySource | None = None,
                   noise: NoiseSource | None = None) -> SimulationResult:
    return EstimationPipeline(config, trajectory, noise).run()
