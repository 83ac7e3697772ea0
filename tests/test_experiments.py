import pytest

from experiments import FLAG_SETS, run_trials, summarise_by_flags


def test_run_trials_pairs_every_flag_set():
    df = run_trials(n_trials=50, random_seed=1)
    assert len(df) == 50 * len(FLAG_SETS)
    per_trial = df.groupby("trial")
    assert (per_trial["traffic"].nunique() == 1).all()
    assert (per_trial["active_nodes"].nunique() == 1).all()


def test_summary_shows_flag_effects():
    summary = summarise_by_flags(run_trials(n_trials=400, random_seed=3))

    base_latency = summary.loc["baseline", ("latency", "mean")]
    accel_latency = summary.loc["acceleration", ("latency", "mean")]
    assert accel_latency / base_latency == pytest.approx(0.8, rel=1e-3)

    assert summary.loc["baseline", ("score", "gain")] == 0
    assert summary.loc["both", ("score", "gain")] > summary.loc["acceleration", ("score", "gain")] > 0
    assert summary.loc["qos", ("score", "gain")] > 0
