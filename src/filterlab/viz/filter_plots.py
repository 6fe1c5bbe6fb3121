"""Diagnostic visualization for filter runs.

All plots accept one or more SimulationResults for side-by-side comparison.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Ellipse

from ..simulation.statistics import chi2_threshold, ellipse_axes


FILTER_COLORS = {
    "Kalman Filter 2D": "#2196F3",
    "IMM Filter (2-Model)": "#E91E63",
}
FILTER_STYLES = {
    "Kalman Filter 2D": "-",
    "IMM Filter (2-Model)": (0, (5, 1)),
}

TRUTH_COLOR = "#00AA00"
MEASUREMENT_COLOR = "#CC00CC"
CONFIDENCE_COLOR = "#FFAA44"
MODEL_COLORS = ("#00CC66", "#CC6600")  # smooth, maneuver
MODEL_LABELS = ("Model 0 (smooth)", "Model 1 (maneuver)")


def _get_color(name):
    return FILTER_COLORS.get(name, "#999999")


def _get_style(name):
    return FILTER_STYLES.get(name, "-")


def _save_or_show(fig, save_path, show=True):
    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
        print(f"  Saved: {save_path}")
    if show:
        plt.show()
    else:
        plt.close(fig)


def plot_trajectory(
    result,
    ellipse_every: int = 20,
    save_path: str | None = None,
    show: bool = True,
):
    """Top-down view: truth, measurements, estimate and 95% ellipses."""
    fig, ax = plt.subplots(figsize=(10, 8))
    truths = result.truths
    est = result.estimates
    meas = np.array([m.position for m in result.measurements]) if result.measurements else None

    ax.plot(truths[:, 0], truths[:, 1], color=TRUTH_COLOR, linewidth=1.5, label="Truth")
    if meas is not None:
        ax.scatter(meas[:, 0], meas[:, 1], s=6, color=MEASUREMENT_COLOR,
                   alpha=0.5, label="Measurements")
    color = _get_color(result.filter_name)
    ax.plot(est[:, 0], est[:, 1], color=color, linestyle=_get_style(result.filter_name),
            linewidth=1.2, label=result.filter_name)

    # 95% confidence ellipses on a subsample of ticks
    for s in result.snapshots[::max(1, ellipse_every)]:
        if s.covariance is None:
            continue
        width, height, angle = ellipse_axes(s.covariance)
        ax.add_patch(Ellipse(s.state[:2], width, height, angle=angle,
                             fill=False, color=color, alpha=0.35, linewidth=0.8))

    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    ax.set_aspect("equal", adjustable="datalim")
    ax.set_title(f"{result.filter_name} on {result.config.trajectory}")
    ax.legend(loc="upper right", fontsize=8)
    ax.grid(True, alpha=0.3)
    _save_or_show(fig, save_path, show)


def plot_error(
    results: list,
    save_path: str | None = None,
    show: bool = True,
):
    """Position error vs the 95% confidence bound, with IMM per-model errors."""
    fig, ax = plt.subplots(figsize=(12, 5))

    for result in results:
        name = result.filter_name
        color = _get_color(name)
        time = result.times
        ax.plot(time, result.errors, color=color, linestyle=_get_style(name),
                linewidth=1.2, label=f"{name} error")
        ax.plot(time, result.confidence_bounds, color=CONFIDENCE_COLOR, linestyle="--",
                linewidth=1.0, alpha=0.8, label=f"{name} 95% bound")

        model_errors = np.array([
            s.filter_data.get("model_errors", [np.nan, np.nan]) for s in result.snapshots
        ])
        if np.any(np.isfinite(model_errors)):
            for j in range(model_errors.shape[1]):
                ax.plot(time, model_errors[:, j], color=MODEL_COLORS[j], linewidth=0.8,
                        alpha=0.7, label=MODEL_LABELS[j])

    ax.set_ylabel("Position Error")
    ax.set_xlabel("Time (s)")
    ax.set_title("Estimation Error Over Time")
    ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)
    _save_or_show(fig, save_path, show)


def plot_model_probabilities(
    result,
    save_path: str | None = None,
    show: bool = True,
):
    """IMM model probabilities over time."""
    fig, ax = plt.subplots(figsize=(12, 4))
    time = result.times
    mu = np.array([
        s.model_probabilities if s.model_probabilities is not None else [np.nan, np.nan]
        for s in result.snapshots
    ])
    for j in range(mu.shape[1]):
        ax.plot(time, mu[:, j], color=MODEL_COLORS[j], linewidth=1.2, label=MODEL_LABELS[j])

    ax.set_ylim(-0.02, 1.02)
    ax.set_ylabel("Model probability")
    ax.set_xlabel("Time (s)")
    ax.set_title("IMM Model Probabilities")
    ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)
    _save_or_show(fig, save_path, show)


def plot_coverage(
    results: list,
    confidence: float = 0.95,
    save_path: str | None = None,
    show: bool = True,
):
    """Running coverage of the 95% ellipse, plus the per-tick distance d^2."""
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 7), sharex=True)

    upper = chi2_threshold(confidence, 2)
    ax1.axhline(confidence, color="gray", linestyle=":", linewidth=1,
                label=f"Nominal ({confidence:.0%})")
    ax2.axhline(upper, color="gray", linestyle="--", linewidth=0.8,
                label=f"chi2(2) {confidence:.0%} = {upper:.3f}")

    for result in results:
        name = result.filter_name
        color = _get_color(name)
        style = _get_style(name)
        time = result.times
        pct = np.array([np.nan if s.coverage_pct is None else s.coverage_pct
                        for s in result.snapshots])
        d2 = np.array([np.nan if s.mahalanobis_sq is None else s.mahalanobis_sq
                       for s in result.snapshots])
        ax1.plot(time, pct, color=color, linestyle=style, linewidth=1.2, label=name)
        # Clip for display (d2 can be huge before convergence)
        ax2.plot(time, np.clip(d2, 0, upper * 10), color=color, linestyle=style,
                 linewidth=0.8, alpha=0.7, label=name)

    ax1.set_ylabel("Coverage")
    ax1.set_ylim(0, 1.02)
    ax1.set_title("95% Ellipse Coverage")
    ax1.legend(fontsize=8)
    ax1.grid(True, alpha=0.3)

    ax2.set_ylabel("Squared Mahalanobis distance")
    ax2.set_xlabel("Time (s)")
    ax2.legend(fontsize=8)
    ax2.grid(True, alpha=0.3)
    _save_or_show(fig, save_path, show)


def _grouped_boxes(ax, results, metric, filter_names, traj_types):
    """One box per (trajectory, filter), filters side by side within a trajectory group.

    Returns False when there was nothing finite to draw.
    """
    stride = len(filter_names) + 1
    drawn = False
    for gi, traj in enumerate(traj_types):
        for fi, name in enumerate(filter_names):
            vals = np.asarray(results.get((name, traj), {}).get(metric, []), dtype=float)
            vals = vals[np.isfinite(vals)]
            if vals.size == 0:
                continue
            box = ax.boxplot([vals], positions=[gi * stride + fi], widths=0.7, patch_artist=True)
            box["boxes"][0].set_facecolor(_get_color(name))
            box["boxes"][0].set_alpha(0.6)
            drawn = True

    centers = [gi * stride + (len(filter_names) - 1) / 2 for gi in range(len(traj_types))]
    ax.set_xticks(centers)
    ax.set_xticklabels(traj_types, fontsize=8)
    ax.set_xlim(-1, len(traj_types) * stride - 1)
    return drawn


def plot_monte_carlo_comparison(
    results: dict,
    filter_names: list[str],
    traj_types: list[str],
    save_path: str | None = None,
    show: bool = True,
):
    """Seed-sweep distributions of RMSE and coverage.

    Args:
        results: (filter_name, traj_type) -> {"pos_rmse": array, "coverage": array, ...}
    """
    fig, (ax_rmse, ax_cov) = plt.subplots(1, 2, figsize=(14, 5))

    for ax, metric, ylabel in ((ax_rmse, "pos_rmse", "Position RMSE"),
                               (ax_cov, "coverage", "95% ellipse coverage")):
        if not _grouped_boxes(ax, results, metric, filter_names, traj_types):
            ax.text(0.5, 0.5, "no finite values", ha="center", va="center",
                    transform=ax.transAxes)
        ax.set_ylabel(ylabel)
        ax.grid(True, alpha=0.3, axis="y")

    ax_cov.axhline(0.95, color="gray", linestyle=":", linewidth=1)

    # Shared legend: one swatch per filter
    handles = [plt.Rectangle((0, 0), 1, 1, color=_get_color(n), alpha=0.6) for n in filter_names]
    fig.legend(handles, filter_names, loc="upper right", fontsize=8)
    fig.suptitle("Seed Sweep: Kalman vs IMM", fontsize=13)
    _save_or_show(fig, save_path, show)
