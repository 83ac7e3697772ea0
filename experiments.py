"""
experiments.py
--------------
Measures how remediation flags move sampled metrics and health scores.

For every trial, one generator seed is replayed under each flag set, so the
traffic and node draws are identical across flag sets and any difference in
the score comes from the latency / error-rate multipliers alone.

Entry point: run_trials() -> returns pd.DataFrame of all samples.
"""

import numpy as np
import pandas as pd

from health_score import compute_health_score
from optimization_state import OptimizationFlags
from simulator import sample


# ---------------------------------------------------------------------------
# Experiment grid
# ---------------------------------------------------------------------------

FLAG_SETS = {
    "baseline": OptimizationFlags(),
    "acceleration": OptimizationFlags(hardware_acceleration=True),
    "qos": OptimizationFlags(qos_optimization=True),
    "both": OptimizationFlags(hardware_acceleration=True, qos_optimization=True),
}

N_TRIALS = 1000


def _single_trial(trial: int, seed: int, flag_sets: dict) -> list[dict]:
    """Replay one seed under every flag set. Returns one row per flag set."""
    rows = []
    for name, flags in flag_sets.items():
        raw = sample(flags, np.random.default_rng(seed))
        rows.append({
            "trial": trial,
            "flag_set": name,
            **raw.as_dict(),
            "score": compute_health_score(raw),
        })
    return rows


def run_trials(
    n_trials: int = N_TRIALS,
    flag_sets: dict | None = None,
    random_seed: int = 42,
    verbose: bool = False,
) -> pd.DataFrame:
    """
    Sample one cell `n_trials` times under each flag set.

    Parameters
    ----------
    n_trials    : number of paired trials
    flag_sets   : {name: OptimizationFlags}; FLAG_SETS when None
    random_seed : seeds the per-trial seed stream
    verbose     : print progress every 10% of trials
    """
    flag_sets = flag_sets or FLAG_SETS
    seeds = np.random.default_rng(random_seed).integers(0, 2**32, size=n_trials)

    all_rows = []
    step = max(1, n_trials // 10)
    for trial, seed in enumerate(seeds):
        all_rows.extend(_single_trial(trial, int(seed), flag_sets))
        if verbose and (trial + 1) % step == 0:
            pct = 100 * (trial + 1) / n_trials
            print(f"  [{pct:5.1f}%] {trial + 1}/{n_trials} trials")

    return pd.DataFrame(all_rows)


def summarise_by_flags(df_results: pd.DataFrame) -> pd.DataFrame:
    """
    Mean and standard deviation of each metric per flag set, plus the mean
    score gain over the baseline (when a "baseline" set is present).
    """
    metric_cols = ["traffic", "latency", "error_rate", "active_nodes", "score"]
    summary = df_results.groupby("flag_set", sort=False)[metric_cols].agg(["mean", "std"])

    if "baseline" in summary.index:
        base = summary.loc["baseline", ("score", "mean")]
        summary[("score", "gain")] = summary[("score", "mean")] - base
    return summary.round(4)
