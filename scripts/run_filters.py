"""Single-run filter comparison: Kalman 2D and IMM on one trajectory.

Both estimators see the same truth and the same noise stream (same seed),
so differences in the table and plots come from the filters alone.

Usage:
    python scripts/run_filters.py                          # default config
    python scripts/run_filters.py --traj stopandgo --max-time 60
    python scripts/run_filters.py --filter imm --measurement-noise 5
    python scripts/run_filters.py --no-plots
    python scripts/run_filters.py --save
"""

import argparse
import os
import time

import numpy as np

from filterlab import EstimationPipeline, FilterType, load_config
from filterlab.dynamics import TRAJECTORY_TYPES
from filterlab.simulation.statistics import CHI2_95_2DOF
from filterlab.viz import (
    plot_trajectory, plot_error, plot_model_probabilities, plot_coverage,
)


def print_metrics(results):
    """Summary table, one row per filter."""
    print("\n" + "=" * 86)
    print(f"  {'Filter':<22} | {'Pos RMSE':>9} | {'Final Err':>9} | "
          f"{'Mean 95%':>9} | {'Coverage':>8} | {'Init tick':>9}")
    print("-" * 86)

    for result in results:
        s = result.summary()
        cov = s["coverage"]
        cov_str = f"{cov * 100:>7.1f}%" if cov is not None else f"{'n/a':>8}"
        init = s["bootstrap_index"]
        init_str = f"{init:>9d}" if init is not None else f"{'never':>9}"
        print(f"  {s['filter']:<22} | {s['pos_rmse']:>9.2f} | {s['final_error']:>9.2f} | "
              f"{s['mean_conf95']:>9.2f} | {cov_str} | {init_str}")

    print("=" * 86)
    print(f"  Coverage target: 95.0%  |  ellipse threshold chi2(2) = {CHI2_95_2DOF}")


def main():
    parser = argparse.ArgumentParser(description="Filter Comparison Experiment")
    parser.add_argument("--config", default=None, help="YAML config (default: config/default.yaml)")
    parser.add_argument("--filter", default=None,
                        help=f"Single filter: {', '.join(t.value for t in FilterType)}")
    parser.add_argument("--traj", default=None, choices=TRAJECTORY_TYPES)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--max-time", type=float, default=None)
    parser.add_argument("--measurement-noise", type=float, default=None)
    parser.add_argument("--process-noise", type=float, default=None)
    parser.add_argument("--measurement-ratio", type=float, default=None)
    parser.add_argument("--save", action="store_true", help="Save plots to results/")
    parser.add_argument("--no-plots", action="store_true")
    args = parser.parse_args()

    # Flags left unset keep the config value
    cli = dict(
        trajectory=args.traj,
        seed=args.seed,
        max_time=args.max_time,
        measurement_noise=args.measurement_noise,
        process_noise=args.process_noise,
        measurement_ratio=args.measurement_ratio,
    )
    cfg = load_config(args.config).with_overrides(
        **{k: v for k, v in cli.items() if v is not None})
    filter_types = [FilterType.parse(args.filter)] if args.filter else list(FilterType)

    print(f"Running: traj={cfg.trajectory}, max_time={cfg.max_time}s, dt={cfg.dt}, "
          f"r={cfg.measurement_noise}, q={cfg.process_noise}, seed={cfg.seed}")

    results = []
    t0 = time.time()
    for ftype in filter_types:
        pipeline = EstimationPipeline(cfg.with_overrides(filter_type=ftype.value))
        results.append(pipeline.run())
    print(f"Done in {time.time() - t0:.2f}s ({cfg.num_ticks} ticks per filter)")

    print_metrics(results)

    if args.no_plots:
        return

    results_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "results")
    os.makedirs(results_dir, exist_ok=True)
    prefix = os.path.join(results_dir, f"filters_{cfg.trajectory}") if args.save else None

    def path(suffix):
        return f"{prefix}_{suffix}.png" if prefix else None

    for result in results:
        tag = "imm" if result.filter_name.startswith("IMM") else "kf"
        plot_trajectory(result, save_path=path(f"trajectory_{tag}"))
    plot_error(results, save_path=path("error"))
    plot_coverage(results, save_path=path("coverage"))
    for result in results:
        if any(s.model_probabilities is not None for s in result.snapshots):
            plot_model_probabilities(result, save_path=path("model_probs"))

    if args.save:
        np.savez_compressed(
            os.path.join(results_dir, f"filters_{cfg.trajectory}.npz"),
            times=results[0].times,
            truths=results[0].truths,
            **{f"estimates_{i}": r.estimates for i, r in enumerate(results)},
            **{f"errors_{i}": r.errors for i, r in enumerate(results)},
            filter_names=[r.filter_name for r in results],
        )
        print(f"  Data saved to {results_dir}/")


if __name__ == "__main__":
    main()
