"""Seed sweep: RMSE and ellipse coverage per (filter, trajectory).

Each combination is run over N consecutive seeds starting at the config
seed. Seeds are shared across filters, so run k of the Kalman filter and
run k of the IMM see the same truth and the same noise stream.

A calibrated filter on a trajectory its motion model can follow covers
close to 95%; sharp maneuvers show up as lower coverage.

Usage:
    python scripts/monte_carlo.py                      # num_runs from config
    python scripts/monte_carlo.py --runs 10            # quick check
    python scripts/monte_carlo.py --filter imm         # one filter
    python scripts/monte_carlo.py --traj stopandgo     # one trajectory
"""

import argparse
import os
import time
from multiprocessing import Pool, cpu_count

import numpy as np
import yaml

from filterlab import EstimationPipeline, FilterType
from filterlab.config import DEFAULT_CONFIG_PATH, config_from_dict
from filterlab.dynamics import TRAJECTORY_TYPES
from filterlab.viz import plot_monte_carlo_comparison


DEFAULT_TRAJECTORIES = ["circle", "constantvelocity", "stopandgo", "clothoid"]
METRICS = ("pos_rmse", "final_error", "mean_conf95", "coverage")


def run_trial(task):
    """One seeded run; top-level so Pool can pickle it."""
    config, seed = task
    summary = EstimationPipeline(config.with_overrides(seed=seed)).run().summary()
    summary["seed"] = seed
    return summary


def build_tasks(base, filter_types, traj_types, num_runs):
    first_seed = base.seed if base.seed is not None else 0
    return [
        (base.with_overrides(filter_type=ftype.value, trajectory=traj), first_seed + k)
        for ftype in filter_types
        for traj in traj_types
        for k in range(num_runs)
    ]


def aggregate(summaries):
    """(filter name, trajectory) -> {metric: array over seeds}."""
    grouped = {}
    for s in summaries:
        bucket = grouped.setdefault((s["filter"], s["trajectory"]), {m: [] for m in METRICS})
        for m in METRICS:
            bucket[m].append(np.nan if s[m] is None else s[m])
    return {
        key: {m: np.asarray(vals, dtype=float) for m, vals in bucket.items()}
        for key, bucket in grouped.items()
    }


def print_table(results, filter_names, traj_types):
    width = 96
    print("\n" + "=" * width)
    print(f"  {'Filter':<22} | {'Trajectory':<18} | {'Pos RMSE':>9} | {'Final Err':>9} | "
          f"{'Mean 95%':>9} | {'Coverage':>8} | {'Std':>6}")
    print("-" * width)
    for traj in traj_types:
        rows = [(name, results[(name, traj)]) for name in filter_names if (name, traj) in results]
        for name, m in rows:
            cov = 100 * m["coverage"]
            print(f"  {name:<22} | {traj:<18} | {np.nanmean(m['pos_rmse']):>9.2f} | "
                  f"{np.nanmean(m['final_error']):>9.2f} | {np.nanmean(m['mean_conf95']):>9.2f} | "
                  f"{np.nanmean(cov):>7.1f}% | {np.nanstd(cov):>5.1f}%")
        print("-" * width)
    print("=" * width)
    print("  Coverage: share of ticks with the truth inside the 95% ellipse (nominal 95.0%)")


def save_results(results, results_dir, filter_names, traj_types, num_runs):
    arrays = {}
    for (name, traj), metrics in results.items():
        tag = FilterType.IMM.value if name.startswith("IMM") else FilterType.KALMAN_2D.value
        for metric, values in metrics.items():
            arrays[f"{tag}_{traj}_{metric}"] = values
    out = os.path.join(results_dir, "mc_results.npz")
    np.savez_compressed(out, filter_names=filter_names, traj_types=traj_types,
                        num_runs=num_runs, **arrays)
    print(f"\n  Results saved to {out}")


def main():
    parser = argparse.ArgumentParser(description="Monte Carlo seed sweep")
    parser.add_argument("--config", default=None, help="YAML config (default: config/default.yaml)")
    parser.add_argument("--runs", type=int, default=None, help="Seeds per combination")
    parser.add_argument("--filter", default=None,
                        help=f"One filter: {', '.join(t.value for t in FilterType)}")
    parser.add_argument("--traj", default=None, choices=TRAJECTORY_TYPES, help="One trajectory")
    parser.add_argument("--max-time", type=float, default=None)
    parser.add_argument("--workers", type=int, default=None, help="Worker processes")
    parser.add_argument("--save", action="store_true", help="Save plot and arrays to results/")
    parser.add_argument("--no-plots", action="store_true")
    args = parser.parse_args()

    with open(args.config or DEFAULT_CONFIG_PATH) as f:
        raw = yaml.safe_load(f) or {}
    sweep = raw.get("monte_carlo") or {}
    base = config_from_dict(raw)
    max_time = args.max_time or sweep.get("max_time")
    if max_time is not None:
        base = base.with_overrides(max_time=max_time)
    num_runs = args.runs or sweep.get("num_runs", 50)

    filter_types = [FilterType.parse(args.filter)] if args.filter else list(FilterType)
    traj_types = [args.traj] if args.traj else DEFAULT_TRAJECTORIES
    tasks = build_tasks(base, filter_types, traj_types, num_runs)
    workers = args.workers or max(1, cpu_count() - 1)

    print(f"Sweep: filters={[ft.value for ft in filter_types]}, trajectories={traj_types}")
    print(f"       {num_runs} seeds each, {len(tasks)} runs, {workers} workers, "
          f"max_time={base.max_time}s")

    start = time.time()
    if workers > 1:
        with Pool(workers) as pool:
            summaries = pool.map(run_trial, tasks)
    else:
        summaries = list(map(run_trial, tasks))
    elapsed = time.time() - start
    print(f"Finished {len(summaries)} runs in {elapsed:.1f}s")

    results = aggregate(summaries)
    filter_names = list(dict.fromkeys(s["filter"] for s in summaries))
    print_table(results, filter_names, traj_types)

    results_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "results")
    if args.save:
        os.makedirs(results_dir, exist_ok=True)

    if not args.no_plots:
        plot_monte_carlo_comparison(
            results, filter_names, traj_types,
            save_path=os.path.join(results_dir, "mc_comparison.png") if args.save else None,
        )

    if args.save:
        save_results(results, results_dir, filter_names, traj_types, num_runs)


if __name__ == "__main__":
    main()
