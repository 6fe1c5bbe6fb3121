"""Filter table: maps a FilterType to its factory and display metadata.

The table is a plain mapping built by build_filter_table() at startup and
handed to whatever needs to create filters (the pipeline, the scripts).
There is no module-level mutable registry.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping

import numpy as np

from .base import BayesianFilter
from .imm import (
    DEFAULT_FAST_FACTOR, DEFAULT_SLOW_FACTOR, DEFAULT_SLOW_FLOOR,
    DEFAULT_TRANSITION, IMMFilter,
)
from .kalman import KalmanFilter2D
from ..dynamics.motion import MotionModelParams


class UnknownFilterType(KeyError):
    """Raised when a filter key is not present in the filter table."""

    def __init__(self, key, known=()):
        self.key = key
        self.known = list(known)
        super().__init__(f"Unknown filter type: {key!r}. Choose from {self.known}")

    def __str__(self):
        return self.args[0]


class FilterType(Enum):
    KALMAN_2D = "kalman-2d"
    IMM = "imm"

    @classmethod
    def parse(cls, key) -> "FilterType":
        """Accept a FilterType or its string key."""
        if isinstance(key, cls):
            return key
        try:
            return cls(str(key).lower())
        except ValueError:
            raise UnknownFilterType(key, [ft.value for ft in cls]) from None


@dataclass(frozen=True)
class IMMSettings:
    transition_matrix: tuple = DEFAULT_TRANSITION
    slow_factor: float = DEFAULT_SLOW_FACTOR
    fast_factor: float = DEFAULT_FAST_FACTOR
    slow_floor: float = DEFAULT_SLOW_FLOOR


@dataclass(frozen=True)
class FilterSpec:
    """Factory plus display metadata for one filter type."""

    label: str
    title: str
    description: str
    create: Callable[[MotionModelParams], BayesianFilter]
    features: tuple[str, ...] = ()
    extract_data: Callable[[BayesianFilter, np.ndarray | None], dict] = field(
        default=lambda filt, truth: {}
    )


def _extract_imm_data(filt: IMMFilter, truth: np.ndarray | None) -> dict:
    if not filt.initialized:
        return {}
    mu = filt.get_mode_probabilities()
    data = {
        "model_probabilities": mu,
        "active_model": filt.active_model,
        "model_entropy": filt.model_entropy(),
    }
    if truth is not None:
        data["model_errors"] = np.array([
            np.linalg.norm(np.asarray(truth) - pos) for pos in filt.model_positions()
        ])
    return data


def build_filter_table(imm: IMMSettings | None = None,
                       symmetrize: bool = False) -> dict[FilterType, FilterSpec]:
    """Create the table of available filters."""
    imm = imm or IMMSettings()
    return {
        FilterType.KALMAN_2D: FilterSpec(
            label="Kalman (CA 6-state)",
            title="2D Kalman Filter",
            description="Standard Kalman filter with constant acceleration motion model",
            create=lambda params: KalmanFilter2D(params, symmetrize=symmetrize),
            features=("standard_kalman",),
        ),
        FilterType.IMM: FilterSpec(
            label="IMM (2-model: CA low/high noise)",
            title="IMM Filter (2-Model)",
            description="Interacting Multiple Model filter with CA low-noise and high-noise models",
            create=lambda params: IMMFilter(
                params,
                transition_matrix=imm.transition_matrix,
                slow_factor=imm.slow_factor,
                fast_factor=imm.fast_factor,
                slow_floor=imm.slow_floor,
                symmetrize=symmetrize,
            ),
            features=("model_probabilities", "active_model", "model_entropy"),
            extract_data=_extract_imm_data,
        ),
    }


def lookup(table: Mapping[FilterType, FilterSpec], key) -> FilterSpec:
    known = [ft.value for ft in table]
    try:
        kind = FilterType.parse(key)
    except UnknownFilterType:
        raise UnknownFilterType(key, known) from None
    if kind not in table:
        raise UnknownFilterType(key, known)
    return table[kind]


def create_filter(table: Mapping[FilterType, FilterSpec], key,
                  params: MotionModelParams) -> BayesianFilter:
    return lookup(table, key).create(params)


def supports_feature(table: Mapping[FilterType, FilterSpec], key, feature: str) -> bool:
    return feature in lookup(table, key).features


def extract_filter_data(table: Mapping[FilterType, FilterSpec], key,
                        filt: BayesianFilter, truth: np.ndarray | None = None) -> dict:
    return lookup(table, key).extract_data(filt, truth)


def update_noise(table: Mapping[FilterType, FilterSpec], key, filt: BayesianFilter,
                 measurement_noise: float, process_noise: float) -> None:
    lookup(table, key)
    filt.update_noise(measurement_noise, process_noise)


def available_filters(table: Mapping[FilterType, FilterSpec]) -> list[dict]:
    return [
        {"value": kind.value, "label": spec.label, "description": spec.description}
        for kind, spec in table.items()
    ]
