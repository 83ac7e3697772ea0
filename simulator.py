"""
simulator.py
------------
Generates synthetic network telemetry for one monitored cell per tick.

Emulates the metrics an edge monitoring agent would report:
  - traffic      : network traffic in Gbps
  - latency      : round-trip latency in milliseconds
  - error_rate   : failed requests in percent
  - active_nodes : CDN nodes currently serving traffic

Every cell draws from the same uniform distributions. Remediation flags
only scale latency and error rate down; traffic volume and node count are
never affected by them.
"""

import math
from dataclasses import asdict, dataclass

import numpy as np
import pandas as pd

from optimization_state import DEFAULT_FLAGS, OptimizationFlags


# ---------------------------------------------------------------------------
# Sampling distributions (healthy edge profile)
# ---------------------------------------------------------------------------
DEFAULT_DISTRIBUTIONS = {
    "traffic": (500.0, 1500.0),     # Gbps
    "latency": (50.0, 70.0),        # ms
    "error_rate": (1.0, 2.0),       # %
    "active_nodes": (75.0, 175.0),  # count, floored
}

ACCELERATION_FACTOR = 0.8
QOS_FACTOR = 0.9

# 24-hour performance chart; wider bands than the per-cell sampler
DEFAULT_SERIES_DISTRIBUTIONS = {
    "traffic_gbps": (500.0, 1500.0),
    "latency_ms": (20.0, 70.0),
    "error_rate": (0.0, 2.0),
}

SAMPLE_COLUMNS = ["traffic", "latency", "error_rate", "active_nodes"]


@dataclass(frozen=True)
class RawSample:
    traffic: float
    latency: float
    error_rate: float
    active_nodes: int

    def as_dict(self) -> dict:
        return asdict(self)


def flag_factors(flags: OptimizationFlags) -> tuple[float, float]:
    """Return (acceleration_factor, qos_factor) for the given flags."""
    acceleration = ACCELERATION_FACTOR if flags.hardware_acceleration else 1.0
    qos = QOS_FACTOR if flags.qos_optimization else 1.0
    return acceleration, qos


def sample(
    flags: OptimizationFlags = DEFAULT_FLAGS,
    rng: np.random.Generator | None = None,
) -> RawSample:
    """
    Draw one RawSample biased by `flags`.

    Values are drawn in a fixed order (traffic, latency, error rate,
    nodes), so two generators seeded alike yield samples that differ only
    by the flag multipliers.
    """
    rng = rng if rng is not None else np.random.default_rng()
    acceleration, qos = flag_factors(flags)
    d = DEFAULT_DISTRIBUTIONS

    traffic = rng.uniform(*d["traffic"])
    latency = rng.uniform(*d["latency"]) * acceleration * qos
    error_rate = rng.uniform(*d["error_rate"]) * qos
    active_nodes = math.floor(rng.uniform(*d["active_nodes"]))

    return RawSample(
        traffic=float(traffic),
        latency=float(latency),
        error_rate=float(error_rate),
        active_nodes=int(active_nodes),
    )


class Sampler:
    """Sampler bound to one random generator, shared by every cell of an engine."""

    def __init__(self, rng: np.random.Generator | None = None, random_seed: int | None = None):
        self.rng = rng if rng is not None else np.random.default_rng(random_seed)

    def sample(self, key, flags: OptimizationFlags) -> RawSample:
        # key identity does not enter the formula
        return sample(flags, self.rng)


def generate_traffic_series(
    hours: int = 24,
    rng: np.random.Generator | None = None,
    distributions: dict | None = None,
) -> pd.DataFrame:
    """
    Generate the hourly network performance series shown on the dashboard.

    Parameters
    ----------
    hours : int
        Number of hourly points, labelled "0:00" .. "{hours-1}:00".
    rng : np.random.Generator, optional
        Source of randomness; a fresh unseeded generator if omitted.
    distributions : dict, optional
        Override DEFAULT_SERIES_DISTRIBUTIONS (low, high) bounds.

    Returns
    -------
    pd.DataFrame
        Index: hour label. Columns: traffic_gbps, latency_ms, error_rate
    """
    rng = rng if rng is not None else np.random.default_rng()
    params = {**DEFAULT_SERIES_DISTRIBUTIONS, **(distributions or {})}

    labels = [f"{i}:00" for i in range(hours)]
    df = pd.DataFrame(
        {col: rng.uniform(low, high, hours) for col, (low, high) in params.items()},
        index=pd.Index(labels, name="hour"),
    )
    return df


def samples_to_frame(samples: dict) -> pd.DataFrame:
    """
    Flatten {CellKey: RawSample} into a DataFrame with one row per cell.

    Columns: service, region, traffic, latency, error_rate, active_nodes
    """
    rows = [
        {"service": key[0], "region": key[1], **raw.as_dict()}
        for key, raw in samples.items()
    ]
    return pd.DataFrame(rows, columns=["service", "region"] + SAMPLE_COLUMNS)
