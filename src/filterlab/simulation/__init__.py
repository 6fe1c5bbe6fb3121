"""Estimation pipeline and run statistics."""

from .pipeline import (
    EstimationPipeline,
    FilterSnapshot,
    Measurement,
    SimulationResult,
    bootstrap_estimate,
    run_simulation,
)
from .statistics import (
    CHI2_95_2DOF,
    CoverageAccumulator,
    chi2_threshold,
    confidence_bound,
    ellipse_axes,
    mahalanobis_sq,
    max_eigenvalue_2x2,
)

__all__ = [
    "EstimationPipeline", "FilterSnapshot", "Measurement", "SimulationResult",
    "bootstrap_estimate", "run_simulation",
    "CHI2_95_2DOF", "CoverageAccumulator", "chi2_threshold", "confidence_bound",
    "ellipse_axes", "mahalanobis_sq", "max_eigenvalue_2x2",
]
