"""Tests for confidence-region statistics."""

import numpy as np
import pytest

from filterlab.filters.imm import DET_FLOOR
from filterlab.simulation.statistics import (
    CHI2_95_2DOF, CoverageAccumulator, chi2_threshold, confidence_bound,
    ellipse_axes, mahalanobis_sq, max_eigenvalue_2x2,
)


class TestEigen:

    @pytest.mark.parametrize("cov", [
        [[4.0, 0.0], [0.0, 1.0]],
        [[2.0, 0.9], [0.9, 1.0]],
        [[1.0, 0.0], [0.0, 1.0]],
    ])
    def test_max_eigenvalue(self, cov):
        cov = np.array(cov)
        assert max_eigenvalue_2x2(cov) == pytest.approx(np.max(np.linalg.eigvalsh(cov)))

    def test_confidence_bound(self):
        assert confidence_bound(np.eye(2)) == pytest.approx(np.sqrt(5.991))
        assert confidence_bound(np.diag([9.0, 1.0])) == pytest.approx(3.0 * np.sqrt(5.991))

    def test_threshold_constant(self):
        assert chi2_threshold(0.95, 2) == pytest.approx(CHI2_95_2DOF, abs=1e-3)


class TestMahalanobis:

    def test_identity(self):
        assert mahalanobis_sq(np.array([3.0, 4.0]), np.eye(2)) == pytest.approx(25.0)

    def test_scaled(self):
        cov = np.diag([4.0, 16.0])
        assert mahalanobis_sq(np.array([2.0, 4.0]), cov) == pytest.approx(2.0)

    def test_collapsed_covariance_zero_error(self):
        assert mahalanobis_sq(np.zeros(2), np.zeros((2, 2))) == 0.0

    def test_determinant_floored(self):
        """det = 1e-12 is raised to DET_FLOOR before dividing."""
        d2 = mahalanobis_sq(np.array([1.0, 0.0]), np.diag([1e-6, 1e-6]))
        assert np.isfinite(d2)
        assert d2 == pytest.approx(1e-6 / DET_FLOOR)

    def test_negative_determinant_floored(self):
        d2 = mahalanobis_sq(np.array([1.0, 1.0]), np.array([[1e-20, 1e-9], [1e-9, 1e-20]]))
        assert np.isfinite(d2)


class TestEllipse:

    def test_axis_aligned(self):
        width, height, angle = ellipse_axes(np.diag([4.0, 1.0]))
        assert width == pytest.approx(2 * np.sqrt(4.0 * CHI2_95_2DOF))
        assert height == pytest.approx(2 * np.sqrt(CHI2_95_2DOF))
        assert np.sin(np.radians(angle)) == pytest.approx(0.0, abs=1e-12)

    def test_rotated(self):
        width, height, angle = ellipse_axes(np.array([[2.0, 1.0], [1.0, 2.0]]))
        assert width > height
        assert np.tan(np.radians(angle)) == pytest.approx(1.0)


class TestCoverageAccumulator:

    def test_empty(self):
        assert CoverageAccumulator().pct is None

    def test_counts(self):
        acc = CoverageAccumulator()
        inside = [acc.add(d2) for d2 in (0.0, 1.0, 5.991, 6.0)]
        assert inside == [True, True, True, False]
        assert acc.total == 4
        assert acc.hits == 3
        assert acc.pct == pytest.approx(0.75)

    @pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
    def test_non_finite_counts_as_miss(self, bad):
        acc = CoverageAccumulator()
        acc.add(1.0)
        assert not acc.add(bad)
        assert acc.total == 2
        assert acc.pct == pytest.approx(0.5)

    def test_chi2_samples(self, rng):
        """Squared norms of standard 2D normals land inside about 95% of the time."""
        acc = CoverageAccumulator()
        for e in rng.standard_normal((20000, 2)):
            acc.add(mahalanobis_sq(e, np.eye(2)))
        assert acc.pct == pytest.approx(0.95, abs=0.006)
