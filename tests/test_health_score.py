import numpy as np
import pytest

from health_score import (
    SCORE_WEIGHTS,
    compute_health_score,
    compute_health_scores,
    health_status,
    score_components,
)
from simulator import RawSample, samples_to_frame


def test_on_target_sample_uses_verbatim_weights():
    s = RawSample(traffic=1500.0, latency=70.0, error_rate=2.0, active_nodes=175)
    expected = (0.85861477 + 0.0 + 0.0 + 0.10017172) * 100
    assert compute_health_score(s) == pytest.approx(expected)


def test_weights_sum_close_to_one():
    assert sum(SCORE_WEIGHTS.values()) == pytest.approx(1.0, abs=1e-6)


def test_known_sample_components():
    s = RawSample(traffic=750.0, latency=35.0, error_rate=1.0, active_nodes=140)
    c = score_components(s)
    assert c["traffic"] == pytest.approx(0.5 * 0.85861477)
    assert c["latency"] == pytest.approx(0.5 * 0.04006869)
    assert c["error_rate"] == pytest.approx(0.5 * 0.00114482)
    assert c["active_nodes"] == pytest.approx(0.8 * 0.10017172)
    assert compute_health_score(s) == pytest.approx(sum(c.values()) * 100)


def test_upper_bound_is_capped_at_100():
    s = RawSample(traffic=1e7, latency=0.0, error_rate=0.0, active_nodes=10**6)
    assert score_components(s)["traffic"] == 100.0
    assert compute_health_score(s) == 100.0


def test_no_lower_bound_for_bad_latency_and_errors():
    s = RawSample(traffic=0.0, latency=1000.0, error_rate=50.0, active_nodes=0)
    c = score_components(s)
    assert c["latency"] < 0
    assert c["error_rate"] < 0
    assert compute_health_score(s) < 0


def test_score_is_deterministic():
    s = RawSample(traffic=1234.5, latency=61.2, error_rate=1.7, active_nodes=99)
    assert compute_health_score(s) == compute_health_score(s)


def test_vectorised_scores_match_scalar():
    samples = {
        ("A", "r1"): RawSample(1500.0, 70.0, 2.0, 175),
        ("A", "r2"): RawSample(612.3, 55.1, 1.2, 80),
        ("B", "r1"): RawSample(0.0, 1000.0, 50.0, 0),
        ("B", "r2"): RawSample(1e7, 0.0, 0.0, 10**6),
    }
    df = samples_to_frame(samples)
    scalar = np.array([compute_health_score(s) for s in samples.values()])
    np.testing.assert_allclose(compute_health_scores(df), scalar)


@pytest.mark.parametrize(
    "score,label",
    [(100.0, "success"), (95.0, "success"), (94.9, "info"), (90.0, "info"),
     (89.99, "warning"), (85.0, "warning"), (84.9, "danger"), (-12.0, "danger")],
)
def test_health_status_bands(score, label):
    assert health_status(score) == label
