"""Confidence-region statistics for 2D position estimates."""

import numpy as np
from scipy import stats

from ..filters import matrix
from ..filters.imm import DET_FLOOR


# chi2(2 dof).ppf(0.95), rounded as used throughout the coverage test
CHI2_95_2DOF = 5.991


def chi2_threshold(confidence: float = 0.95, dof: int = 2) -> float:
    """Exact chi-square quantile; CHI2_95_2DOF is the rounded 95%/2-dof value."""
    return float(stats.chi2.ppf(confidence, dof))


def max_eigenvalue_2x2(cov: np.ndarray) -> float:
    """Largest eigenvalue of a symmetric 2x2 matrix in closed form."""
    a, b, c = cov[0, 0], cov[0, 1], cov[1, 1]
    trace = a + c
    det = a * c - b * b
    disc = np.sqrt(max(0.0, trace * trace - 4 * det))
    return float((trace + disc) / 2)


def confidence_bound(cov: np.ndarray, threshold: float = CHI2_95_2DOF) -> float:
    """Semi-major axis of the confidence ellipse: sqrt(lambda_max * threshold)."""
    return float(np.sqrt(max(0.0, max_eigenvalue_2x2(cov) * threshold)))


def mahalanobis_sq(error: np.ndarray, cov: np.ndarray) -> float:
    """Squared Mahalanobis distance e' C^-1 e with det(C) floored at DET_FLOOR.

    Uses the adjugate so a collapsed covariance with zero error gives 0.
    """
    a, b, c, d = cov[0, 0], cov[0, 1], cov[1, 0], cov[1, 1]
    adj = np.array([[d, -b], [-c, a]])
    det = max(matrix.determinant2x2(cov), DET_FLOOR)
    return float(error @ adj @ error / det)


def ellipse_axes(cov: np.ndarray, threshold: float = CHI2_95_2DOF) -> tuple[float, float, float]:
    """(width, height, angle_deg) of the confidence ellipse, for plotting."""
    vals, vecs = np.linalg.eigh(0.5 * (cov + cov.T))
    vals = np.maximum(vals, 0.0)
    order = np.argsort(vals)[::-1]
    vals, vecs = vals[order], vecs[:, order]
    angle = np.degrees(np.arctan2(vecs[1, 0], vecs[0, 0]))
    width, height = 2 * np.sqrt(vals * threshold)
    return float(width), float(height), float(angle)


class CoverageAccumulator:
    """Running count of ticks whose truth fell inside the 95% ellipse."""

    def __init__(self, threshold: float = CHI2_95_2DOF):
        self.threshold = threshold
        self.hits = 0
        self.total = 0

    def add(self, d2: float) -> bool:
        """Record one test and return whether the truth was inside.

        Every call counts toward the total; a non-finite distance is a miss.
        """
        self.total += 1
        inside = bool(np.isfinite(d2) and d2 <= self.threshold)
        if inside:
            self.hits += 1
        return inside

    @property
    def pct(self) -> float | None:
        return self.hits / self.total if self.total > 0 else None
