"""
health_score.py
---------------
Reduces one RawSample to a composite network health score.

Each metric is turned into a ratio against its target, weighted by a fixed
calibration constant, and capped at 100:

    traffic_score = min(100, (traffic / 1500)              * 0.85861477)
    latency_score = min(100, ((70 - latency) / 70)         * 0.04006869)
    error_score   = min(100, ((2 - error_rate) / 2)        * 0.00114482)
    node_score    = min(100, (active_nodes / 175)          * 0.10017172)

    health = min(100, (traffic_score + latency_score + error_score + node_score) * 100)

The weights sum to ~1.0 when every ratio sits exactly on target. Traffic
dominates and error rate barely registers; the constants are calibrated
against reference output and must not be rebalanced.

Only the upper bound is enforced. Latency above 70 ms or an error rate
above 2% yields a negative sub-score, and the composite can drop below 0.
"""

import numpy as np
import pandas as pd


# Calibration constants (sum ~= 1.0)
SCORE_WEIGHTS = {
    "traffic": 0.85861477,
    "latency": 0.04006869,
    "error_rate": 0.00114482,
    "active_nodes": 0.10017172,
}

TRAFFIC_TARGET = 1500.0     # Gbps
LATENCY_CEILING = 70.0      # ms
ERROR_CEILING = 2.0         # %
NODE_TARGET = 175           # nodes per cell

SCORE_CAP = 100.0

# Dashboard badge bands: (lower bound, label), checked top-down
STATUS_BANDS = [
    (95.0, "success"),
    (90.0, "info"),
    (85.0, "warning"),
]
FALLBACK_STATUS = "danger"


def score_components(sample) -> dict:
    """Per-metric sub-scores, each capped at 100 but never floored."""
    w = SCORE_WEIGHTS
    return {
        "traffic": min(SCORE_CAP, (sample.traffic / TRAFFIC_TARGET) * w["traffic"]),
        "latency": min(SCORE_CAP, ((LATENCY_CEILING - sample.latency) / LATENCY_CEILING) * w["latency"]),
        "error_rate": min(SCORE_CAP, ((ERROR_CEILING - sample.error_rate) / ERROR_CEILING) * w["error_rate"]),
        "active_nodes": min(SCORE_CAP, (sample.active_nodes / NODE_TARGET) * w["active_nodes"]),
    }


def compute_health_score(sample) -> float:
    """Composite health score of one sample, in (-inf, 100]."""
    c = score_components(sample)
    total = c["traffic"] + c["latency"] + c["error_rate"] + c["active_nodes"]
    return min(SCORE_CAP, total * 100)


def compute_health_scores(df: pd.DataFrame) -> np.ndarray:
    """
    Vectorised compute_health_score over a samples DataFrame.

    Parameters
    ----------
    df : DataFrame with columns traffic, latency, error_rate, active_nodes
         (as produced by simulator.samples_to_frame)

    Returns
    -------
    scores : np.ndarray of shape (len(df),), values <= 100
    """
    w = SCORE_WEIGHTS
    traffic = np.minimum(SCORE_CAP, (df["traffic"].to_numpy(float) / TRAFFIC_TARGET) * w["traffic"])
    latency = np.minimum(
        SCORE_CAP,
        ((LATENCY_CEILING - df["latency"].to_numpy(float)) / LATENCY_CEILING) * w["latency"],
    )
    errors = np.minimum(
        SCORE_CAP,
        ((ERROR_CEILING - df["error_rate"].to_numpy(float)) / ERROR_CEILING) * w["error_rate"],
    )
    nodes = np.minimum(SCORE_CAP, (df["active_nodes"].to_numpy(float) / NODE_TARGET) * w["active_nodes"])

    return np.minimum(SCORE_CAP, (traffic + latency + errors + nodes) * 100)


def health_status(score: float) -> str:
    """
    Map a health score to the dashboard badge colour.

      >= 95 : success
      >= 90 : info
      >= 85 : warning
       < 85 : danger
    """
    for lower, label in STATUS_BANDS:
        if score >= lower:
            return label
    return FALLBACK_STATUS
