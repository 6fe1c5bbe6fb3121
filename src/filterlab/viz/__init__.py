"""Plotting for single runs and Monte Carlo comparisons."""

from .filter_plots import (
    plot_trajectory,
    plot_error,
    plot_model_probabilities,
    plot_coverage,
    plot_monte_carlo_comparison,
)

__all__ = [
    "plot_trajectory", "plot_error", "plot_model_probabilities",
    "plot_coverage", "plot_monte_carlo_comparison",
]
