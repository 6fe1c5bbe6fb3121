"""Run configuration: defaults, YAML loading and validation."""

import os
from dataclasses import asdict, dataclass, replace

import numpy as np
import yaml

from .dynamics.motion import MotionModelParams
from .filters.imm import validate_transition_matrix
from .filters.registry import FilterType, IMMSettings


DEFAULT_CONFIG_PATH = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "..", "..", "config", "default.yaml"
)


@dataclass(frozen=True)
class SimulationConfig:
    # --- Simulation ---
    dt: float = 0.05               # 20 Hz
    max_time: float = 30.0
    measurement_ratio: float = 2.0  # measurement period in units of dt
    bootstrap_needed: int = 3
    seed: int | None = 42

    # --- Noise ---
    measurement_noise: float = 15.0  # std-dev of position measurements
    process_noise: float = 1.0       # q

    # --- Filter ---
    filter_type: str = FilterType.KALMAN_2D.value
    symmetrize: bool = False

    # --- IMM ---
    imm_transition_matrix: tuple = ((0.94, 0.06), (0.06, 0.94))
    imm_slow_factor: float = 0.5
    imm_fast_factor: float = 3.0
    imm_slow_floor: float = 0.1

    # --- Trajectory ---
    trajectory: str = "circle"
    trajectory_scale: float = 150.0

    def __post_init__(self):
        if not self.dt > 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.max_time < 0:
            raise ValueError(f"max_time must be non-negative, got {self.max_time}")
        if not self.measurement_ratio > 0:
            raise ValueError(f"measurement_ratio must be positive, got {self.measurement_ratio}")
        if self.bootstrap_needed < 1:
            raise ValueError(f"bootstrap_needed must be at least 1, got {self.bootstrap_needed}")
        if self.measurement_noise < 0 or self.process_noise < 0:
            raise ValueError("noise parameters must be non-negative")
        Pi = validate_transition_matrix(self.imm_transition_matrix)
        object.__setattr__(self, "imm_transition_matrix", tuple(map(tuple, Pi.tolist())))
        object.__setattr__(self, "filter_type", FilterType.parse(self.filter_type).value)

    @property
    def measurement_rate(self) -> float:
        return self.dt * self.measurement_ratio

    @property
    def num_ticks(self) -> int:
        return int(np.floor(self.max_time / self.dt + 1e-9)) + 1

    def to_params(self) -> MotionModelParams:
        return MotionModelParams(self.dt, self.process_noise, self.measurement_noise)

    def imm_settings(self) -> IMMSettings:
        return IMMSettings(
            transition_matrix=self.imm_transition_matrix,
            slow_factor=self.imm_slow_factor,
            fast_factor=self.imm_fast_factor,
            slow_floor=self.imm_slow_floor,
        )

    def with_overrides(self, **overrides) -> "SimulationConfig":
        """New config with the given fields replaced, None included (seed=None unseeds)."""
        return replace(self, **overrides)

    def to_dict(self) -> dict:
        return asdict(self)


# YAML section -> {yaml key: config field}
_SECTIONS = {
    "sim": {
        "dt": "dt",
        "max_time": "max_time",
        "measurement_ratio": "measurement_ratio",
        "bootstrap_measurements": "bootstrap_needed",
        "seed": "seed",
    },
    "noise": {
        "measurement": "measurement_noise",
        "process": "process_noise",
    },
    "filter": {
        "type": "filter_type",
        "symmetrize": "symmetrize",
    },
    "imm": {
        "transition_matrix": "imm_transition_matrix",
        "slow_factor": "imm_slow_factor",
        "fast_factor": "imm_fast_factor",
        "slow_floor": "imm_slow_floor",
    },
    "trajectory": {
        "type": "trajectory",
        "scale": "trajectory_scale",
    },
}


def config_from_dict(cfg: dict) -> SimulationConfig:
    kwargs = {}
    for section, keys in _SECTIONS.items():
        values = cfg.get(section) or {}
        for yaml_key, field_name in keys.items():
            if yaml_key in values:
                kwargs[field_name] = values[yaml_key]
    if "imm_transition_matrix" in kwargs:
        kwargs["imm_transition_matrix"] = tuple(map(tuple, kwargs["imm_transition_matrix"]))
    return SimulationConfig(**kwargs)


def load_config(path: str | None = None) -> SimulationConfig:
    with open(path or DEFAULT_CONFIG_PATH) as f:
        return config_from_dict(yaml.safe_load(f) or {})
