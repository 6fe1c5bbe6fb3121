"""filterlab: recursive Bayesian state estimation of a 2D target.

Kalman and two-model IMM filters over a constant-acceleration state,
driven by a bootstrapped estimation pipeline with chi-square coverage
checks.
"""

from .config import SimulationConfig, load_config
from .filters import FilterType, IMMFilter, KalmanFilter2D, UnknownFilterType
from .simulation import EstimationPipeline, run_simulation

__version__ = "0.1.0"

__all__ = [
    "SimulationConfig", "load_config",
    "FilterType", "IMMFilter", "KalmanFilter2D", "UnknownFilterType",
    "EstimationPipeline", "run_simulation",
]
