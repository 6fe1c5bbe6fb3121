"""Smoke tests for the diagnostic plots (headless backend)."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from filterlab import SimulationConfig, run_simulation
from filterlab.simulation.statistics import chi2_threshold
from filterlab.viz import filter_plots
from filterlab.viz import (
    plot_coverage, plot_error, plot_model_probabilities, plot_monte_carlo_comparison,
    plot_trajectory,
)


@pytest.fixture(scope="module")
def results():
    cfg = SimulationConfig(max_time=3.0, trajectory="stopandgo")
    return [
        run_simulation(cfg),
        run_simulation(cfg.with_overrides(filter_type="imm")),
    ]


class TestPlots:

    def test_trajectory(self, results, tmp_path):
        path = tmp_path / "traj.png"
        plot_trajectory(results[1], save_path=str(path), show=False)
        assert path.exists()

    def test_error(self, results, tmp_path):
        path = tmp_path / "error.png"
        plot_error(results, save_path=str(path), show=False)
        assert path.exists()

    def test_coverage(self, results, tmp_path):
        path = tmp_path / "coverage.png"
        plot_coverage(results, save_path=str(path), show=False)
        assert path.exists()

    @pytest.mark.parametrize("confidence", [0.95, 0.99])
    def test_coverage_threshold_line(self, results, confidence, monkeypatch):
        monkeypatch.setattr(filter_plots.plt, "close", lambda fig: None)
        plot_coverage(results, confidence=confidence, show=False)
        ax2 = plt.gcf().axes[1]
        ys = [line.get_ydata()[0] for line in ax2.get_lines() if line.get_linestyle() == "--"]
        assert ys[0] == pytest.approx(chi2_threshold(confidence, 2))
        monkeypatch.undo()
        plt.close("all")

    def test_model_probabilities(self, results, tmp_path):
        path = tmp_path / "mu.png"
        plot_model_probabilities(results[1], save_path=str(path), show=False)
        assert path.exists()

    def test_monte_carlo(self, results, tmp_path):
        mc = {
            (r.filter_name, "stopandgo"): {
                "pos_rmse": np.array([1.0, 2.0, 3.0]),
                "coverage": np.array([0.9, 0.95, np.nan]),
            }
            for r in results
        }
        names = [r.filter_name for r in results]
        path = tmp_path / "mc.png"
        plot_monte_carlo_comparison(mc, names, ["stopandgo"], save_path=str(path), show=False)
        assert path.exists()
