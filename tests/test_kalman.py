"""Tests for the 2D constant-acceleration Kalman filter."""

import numpy as np
import pytest

from filterlab.dynamics.motion import MotionModelParams
from filterlab.filters import KalmanFilter2D, Phase, StepOutcome


def _p0(pos_var=100.0):
    return np.diag([pos_var, pos_var, 1000.0, 1000.0, 10000.0, 10000.0])


class TestLifecycle:

    def test_not_ready_before_initialize(self, params):
        kf = KalmanFilter2D(params)
        assert kf.predict() is StepOutcome.NOT_READY
        assert kf.update(np.zeros(2)) is StepOutcome.NOT_READY
        assert kf.get_state() is None
        assert kf.get_position_covariance() is None
        assert kf.phase is Phase.UNINITIALIZED

    def test_ready_after_initialize(self, params):
        kf = KalmanFilter2D(params)
        kf.initialize(np.zeros(6), _p0())
        assert kf.phase is Phase.READY
        assert kf.predict() is StepOutcome.APPLIED
        assert kf.update(np.array([1.0, 1.0])) is StepOutcome.APPLIED

    def test_accessors_return_copies(self, params):
        kf = KalmanFilter2D(params)
        kf.initialize(np.zeros(6), _p0())
        kf.get_state()[0] = 1e6
        kf.get_covariance()[0, 0] = -1.0
        kf.get_position_covariance()[0, 0] = -1.0
        assert kf.get_state()[0] == 0.0
        assert kf.get_covariance()[0, 0] == 100.0

    def test_initialize_copies_inputs(self, params):
        x0 = np.zeros(6)
        P0 = _p0()
        kf = KalmanFilter2D(params)
        kf.initialize(x0, P0)
        x0[0] = 50.0
        P0[0, 0] = 0.0
        assert kf.get_state()[0] == 0.0
        assert kf.get_covariance()[0, 0] == 100.0


class TestStep:

    def test_predict_matches_model(self, params, random_psd):
        kf = KalmanFilter2D(params)
        x0 = np.array([1.0, 2.0, 3.0, 4.0, 0.5, -0.5])
        P0 = random_psd()
        kf.initialize(x0, P0)
        kf.predict()
        np.testing.assert_allclose(kf.get_state(), kf.F @ x0)
        np.testing.assert_allclose(kf.get_covariance(), kf.F @ P0 @ kf.F.T + kf.Q, rtol=1e-12)

    def test_update_matches_textbook(self, params, random_psd):
        kf = KalmanFilter2D(params)
        x0 = np.zeros(6)
        P0 = random_psd()
        kf.initialize(x0, P0)
        z = np.array([3.0, -2.0])
        kf.update(z)

        H, R = kf.H, kf.R
        S = H @ P0 @ H.T + R
        K = P0 @ H.T @ np.linalg.inv(S)
        np.testing.assert_allclose(kf.get_state(), x0 + K @ (z - H @ x0), rtol=1e-10)
        np.testing.assert_allclose(kf.get_covariance(), (np.eye(6) - K @ H) @ P0, rtol=1e-9, atol=1e-9)
        np.testing.assert_allclose(kf.last_innovation, z)
        np.testing.assert_allclose(kf.last_innovation_covariance, S)
        np.testing.assert_allclose(kf.last_kalman_gain, K, rtol=1e-10)

    def test_predict_clears_step_cache(self, params):
        kf = KalmanFilter2D(params)
        kf.initialize(np.zeros(6), _p0())
        kf.update(np.ones(2))
        assert kf.last_innovation is not None
        kf.predict()
        assert kf.last_innovation is None
        assert kf.last_kalman_gain is None

    def test_singular_innovation_covariance_is_silent(self):
        """Zero R and zero position variance give inf/nan, never an exception."""
        kf = KalmanFilter2D(MotionModelParams(0.05, 0.0, 0.0))
        kf.initialize(np.zeros(6), np.zeros((6, 6)))
        assert kf.update(np.array([1.0, 1.0])) is StepOutcome.APPLIED
        assert not np.all(np.isfinite(kf.get_state()))


class TestConvergence:

    def test_stationary_noiseless_target(self):
        """q = 0, r > 0: position error toward zero on a noiseless stationary truth."""
        kf = KalmanFilter2D(MotionModelParams(dt=0.05, process_noise=0.0, measurement_noise=1.0))
        kf.initialize(np.array([5.0, -5.0, 0.0, 0.0, 0.0, 0.0]), _p0(1e4))
        errors = []
        for _ in range(500):
            kf.predict()
            kf.update(np.zeros(2))
            errors.append(np.linalg.norm(kf.get_position()))
        assert errors[-1] < 1e-2
        assert errors[-1] < errors[49]
        assert np.all(np.isfinite(kf.get_covariance()))


class TestSymmetry:

    def test_simple_form_drift_stays_small(self, params, rng, random_psd):
        """The (I-KH)P update is not exactly symmetric; drift is reported, not fixed."""
        kf = KalmanFilter2D(params)
        for _ in range(10):
            kf.initialize(rng.normal(size=6), random_psd())
            for _ in range(50):
                kf.predict()
                kf.update(rng.normal(scale=5.0, size=2))
                P = kf.get_covariance()
                rel = np.linalg.norm(P - P.T) / np.linalg.norm(P)
                assert rel < 1e-8

    def test_symmetrize_flag(self, params, rng, random_psd):
        kf = KalmanFilter2D(params, symmetrize=True)
        kf.initialize(np.zeros(6), random_psd())
        for _ in range(50):
            kf.predict()
            kf.update(rng.normal(size=2))
            P = kf.get_covariance()
            np.testing.assert_array_equal(P, P.T)


class TestNoise:

    def test_update_noise_keeps_state(self, params):
        kf = KalmanFilter2D(params)
        kf.initialize(np.arange(6, dtype=float), _p0())
        kf.update_noise(measurement_noise=2.0, process_noise=4.0)
        np.testing.assert_allclose(kf.R, 4.0 * np.eye(2))
        assert kf.Q[4, 4] == pytest.approx(4.0)
        np.testing.assert_array_equal(kf.get_state(), np.arange(6, dtype=float))
        assert kf.params.dt == params.dt

    def test_system_matrices(self, params):
        mats = KalmanFilter2D(params).get_system_matrices()
        assert set(mats) == {"F", "H", "Q", "R"}
        assert mats["H"].shape == (2, 6)

    def test_name(self, params):
        assert KalmanFilter2D(params).name == "Kalman Filter 2D"
