"""Bayesian filters for 2D position tracking."""

from .base import BayesianFilter, Phase, StepOutcome
from .kalman import KalmanFilter2D
from .imm import IMMFilter, gaussian_likelihood, mode_process_noise
from .registry import (
    FilterSpec,
    FilterType,
    IMMSettings,
    UnknownFilterType,
    available_filters,
    build_filter_table,
    create_filter,
    extract_filter_data,
    supports_feature,
    update_noise,
)

__all__ = [
    "BayesianFilter", "Phase", "StepOutcome",
    "KalmanFilter2D", "IMMFilter",
    "gaussian_likelihood", "mode_process_noise",
    "FilterSpec", "FilterType", "IMMSettings", "UnknownFilterType",
    "available_filters", "build_filter_table", "create_filter",
    "extract_filter_data", "supports_feature", "update_noise",
]
