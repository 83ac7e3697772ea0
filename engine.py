"""
engine.py
---------
Network health engine: the in-process surface a dashboard polls.

One engine instance owns:
  - the catalog of (service, region) cells
  - an OptimizationStateStore with the operator's toggles
  - a Sampler bound to its own random generator
  - ActionHandlers for toggles and node resets
  - a Scheduler driving the periodic tick and delayed reset outcomes

tick() samples and scores every cell using the flags as they stand at
that moment; toggles made afterwards only show up on the next tick.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from actions import ActionHandlers, ResetHandle
from catalog import Catalog
from config import load_config
from health_score import NODE_TARGET, TRAFFIC_TARGET, compute_health_score, health_status
from optimization_state import OptimizationFlags, OptimizationStateStore
from scheduler import ManualScheduler, Scheduler
from simulator import RawSample, Sampler, generate_traffic_series, samples_to_frame


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellReading:
    sample: RawSample
    score: float

    @property
    def status(self) -> str:
        return health_status(self.score)


class NetworkHealthEngine:
    def __init__(
        self,
        config: dict | None = None,
        scheduler: Scheduler | None = None,
        rng: np.random.Generator | None = None,
        catalog: Catalog | None = None,
    ):
        self.config = load_config(config)
        self.catalog = catalog or Catalog()
        self.scheduler = scheduler or ManualScheduler()
        self.store = OptimizationStateStore()

        sampler_seq, series_seq = np.random.SeedSequence(self.config["random_seed"]).spawn(2)
        self.sampler = Sampler(rng if rng is not None else np.random.default_rng(sampler_seq))
        self._series_rng = np.random.default_rng(series_seq)

        self.actions = ActionHandlers(self.store, self.scheduler, self.config["reset_delay_ms"])
        self.last_table: dict | None = None
        self.tick_count = 0
        self._tick_task = None

    # ------------------------------------------------------------------
    # View-facing contract
    # ------------------------------------------------------------------

    def get_catalog(self) -> tuple[tuple, tuple]:
        return self.catalog.services, self.catalog.regions

    def tick(self) -> dict:
        """Sample and score every cell. Returns {CellKey: CellReading}."""
        table = {}
        for key in self.catalog.keys():
            raw = self.sampler.sample(key, self.store.get(key))
            table[key] = CellReading(raw, compute_health_score(raw))

        self.last_table = table
        self.tick_count += 1
        logger.debug("Tick %d: %d cells scored", self.tick_count, len(table))
        return table

    def toggle(self, key, flag: str) -> tuple[OptimizationFlags, str]:
        return self.actions.toggle(self.catalog.require(key), flag)

    def toggle_hardware_acceleration(self, key) -> tuple[OptimizationFlags, str]:
        return self.actions.toggle_hardware_acceleration(self.catalog.require(key))

    def toggle_qos_optimization(self, key) -> tuple[OptimizationFlags, str]:
        return self.actions.toggle_qos_optimization(self.catalog.require(key))

    def reset_node(self, key, on_status=None) -> ResetHandle:
        return self.actions.reset_node(self.catalog.require(key), on_status)

    def get_flags(self, key) -> OptimizationFlags:
        return self.store.get(self.catalog.require(key))

    # ------------------------------------------------------------------
    # Periodic refresh
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._tick_task is not None

    def start(self, on_tick=None) -> dict:
        """
        Tick once now, then every `tick_interval_ms`.

        `on_tick` receives each new table, the initial one included.
        Returns the initial table.
        """
        if self.running:
            raise RuntimeError("Engine already started")

        def refresh() -> None:
            table = self.tick()
            if on_tick is not None:
                on_tick(table)

        table = self.tick()
        if on_tick is not None:
            on_tick(table)
        self._tick_task = self.scheduler.call_every(self.config["tick_interval_ms"], refresh)
        logger.info(
            "Engine started: %d cells, tick every %s ms",
            len(self.catalog), self.config["tick_interval_ms"],
        )
        return table

    def stop(self) -> None:
        if self._tick_task is None:
            return
        self._tick_task.cancel()
        self._tick_task = None
        logger.info("Engine stopped after %d ticks", self.tick_count)

    def __enter__(self) -> "NetworkHealthEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Dashboard aggregates
    # ------------------------------------------------------------------

    def _table(self, table: dict | None) -> dict:
        table = table if table is not None else self.last_table
        if table is None:
            raise RuntimeError("No readings yet: call tick() first")
        return table

    def readings_frame(self, table: dict | None = None) -> pd.DataFrame:
        """One row per cell: service, region, raw metrics, score, status."""
        table = self._table(table)
        df = samples_to_frame({key: r.sample for key, r in table.items()})
        df["score"] = [r.score for r in table.values()]
        df["status"] = [r.status for r in table.values()]
        return df

    def health_grid(self, table: dict | None = None) -> pd.DataFrame:
        """Scores pivoted to services (rows) x regions (columns), catalog order."""
        df = self.readings_frame(table)
        grid = df.pivot(index="service", columns="region", values="score")
        return grid.reindex(index=list(self.catalog.services), columns=list(self.catalog.regions))

    def network_summary(self, table: dict | None = None) -> dict:
        df = self.readings_frame(table)
        n_cells = len(df)
        total_traffic = float(df["traffic"].sum())
        return {
            "traffic_gbps": total_traffic,
            "average_latency_ms": float(df["latency"].mean()),
            "error_rate": float(df["error_rate"].mean()),
            "active_nodes": int(df["active_nodes"].sum()),
            "total_edge_locations": NODE_TARGET * n_cells,
            "global_health_score": float(df["score"].mean()),
            "network_utilization": 100.0 * total_traffic / (TRAFFIC_TARGET * n_cells),
            "status_counts": df["status"].value_counts().to_dict(),
        }

    def traffic_series(self, hours: int | None = None) -> pd.DataFrame:
        return generate_traffic_series(hours or self.config["history_hours"], self._series_rng)
