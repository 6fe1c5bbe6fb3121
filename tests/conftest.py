"""Shared pytest fixtures."""

import numpy as np
import pytest

from filterlab.config import SimulationConfig
from filterlab.dynamics.motion import MotionModelParams
from filterlab.dynamics.trajectories import make_trajectory
from filterlab.sensors.noise_models import NoNoise


@pytest.fixture
def rng():
    """Seeded random number generator."""
    return np.random.default_rng(42)


@pytest.fixture
def params():
    """20 Hz CA model, unit process noise, 5-unit measurement noise."""
    return MotionModelParams(dt=0.05, process_noise=1.0, measurement_noise=5.0)


@pytest.fixture
def default_config():
    return SimulationConfig()


@pytest.fixture
def stationary():
    """Target parked at the origin."""
    return make_trajectory("stationary", max_time=30.0)


@pytest.fixture
def no_noise():
    return NoNoise()


@pytest.fixture
def random_psd(rng):
    """Factory for well-conditioned random 6x6 covariances."""
    def make(scale=10.0):
        A = rng.normal(size=(6, 6))
        return scale * (A @ A.T) + np.eye(6)
    return make
