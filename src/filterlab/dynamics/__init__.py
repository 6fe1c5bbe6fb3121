"""Target motion model and ground-truth trajectories."""

from .motion import ConstantAccelerationModel, MotionModelParams
from .trajectories import (
    TRAJECTORY_TYPES,
    TrajectorySource,
    constant_acceleration_walk,
    make_trajectory,
)

__all__ = [
    "ConstantAccelerationModel", "MotionModelParams",
    "TRAJECTORY_TYPES", "TrajectorySource",
    "constant_acceleration_walk", "make_trajectory",
]
