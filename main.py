"""
main.py
-------
Console driver for the Network Health Monitor engine.

Stands in for the dashboard: starts the engine on a virtual clock, applies
the requested operator actions, advances through the requested number of
ticks and prints the service x region health grid after each one.

Usage:
    python main.py                                   # 3 ticks, no actions
    python main.py --ticks 5 --seed 7
    python main.py --accelerate WhatsApp:APAC --qos WhatsApp:APAC
    python main.py --reset Instagram:EU-West --plot
    python main.py --experiments                     # flag impact trials

Charts are saved to ./outputs/ when --plot is given.
"""

import argparse
import os

import matplotlib
matplotlib.use("Agg")          # headless backend for file saving
import matplotlib.pyplot as plt
import pandas as pd

from catalog import Catalog, parse_cell_key
from config import configure_logging, load_config
from engine import NetworkHealthEngine
from experiments import run_trials, summarise_by_flags
from scheduler import ManualScheduler


OUTPUT_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "outputs")


# ===========================================================================
# Visualization helpers
# ===========================================================================

def plot_traffic_series(df: pd.DataFrame, save_path: str) -> None:
    """Hourly traffic / latency / error rate, one panel each."""
    panels = [
        ("traffic_gbps", "Network Traffic (Gbps)", "teal"),
        ("latency_ms", "Latency (ms)", "crimson"),
        ("error_rate", "Error Rate (%)", "goldenrod"),
    ]
    fig, axes = plt.subplots(len(panels), 1, figsize=(12, 8), sharex=True)
    fig.suptitle("24-Hour Network Performance", fontsize=13)

    for ax, (col, label, color) in zip(axes, panels):
        ax.plot(df.index, df[col].values, color=color, linewidth=1.2)
        ax.set_ylabel(label, fontsize=8)
        ax.set_ylim(bottom=0)
        ax.grid(alpha=0.25)

    axes[-1].set_xlabel("Hour", fontsize=9)
    axes[-1].tick_params(axis="x", labelrotation=45, labelsize=7)
    fig.tight_layout()
    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"  Saved: {save_path}")


def plot_health_grid(grid: pd.DataFrame, save_path: str) -> None:
    """Heatmap of the latest health scores, annotated per cell."""
    fig, ax = plt.subplots(figsize=(10, 5))
    im = ax.imshow(grid.values, cmap="RdYlGn", vmin=0, vmax=100, aspect="auto")
    ax.set_xticks(range(len(grid.columns)), labels=grid.columns, fontsize=8)
    ax.set_yticks(range(len(grid.index)), labels=grid.index, fontsize=8)
    for i in range(grid.shape[0]):
        for j in range(grid.shape[1]):
            ax.text(j, i, f"{grid.values[i, j]:.1f}", ha="center", va="center", fontsize=7)
    ax.set_title("Services Health Status", fontsize=12)
    fig.colorbar(im, ax=ax, label="Health score")
    fig.tight_layout()
    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"  Saved: {save_path}")


def print_summary(summary: dict) -> None:
    print(f"  Current traffic     : {summary['traffic_gbps']:.1f} Gbps")
    print(f"  Average latency     : {summary['average_latency_ms']:.1f} ms")
    print(f"  Error rate          : {summary['error_rate']:.2f} %")
    print(f"  Active nodes        : {summary['active_nodes']}/{summary['total_edge_locations']}")
    print(f"  Global health score : {summary['global_health_score']:.1f} %")
    print(f"  Network utilization : {summary['network_utilization']:.1f} %")
    print(f"  Status counts       : {summary['status_counts']}")


# ===========================================================================
# Demo pipeline
# ===========================================================================

def run_demo(
    ticks: int = 3,
    accelerate: list | None = None,
    qos: list | None = None,
    reset: list | None = None,
    plot: bool = False,
    config: dict | None = None,
) -> NetworkHealthEngine:
    scheduler = ManualScheduler()
    engine = NetworkHealthEngine(config=config, scheduler=scheduler)
    interval = engine.config["tick_interval_ms"]

    print(f"\n{'='*60}")
    print("  NETWORK HEALTH MONITOR")
    print(f"  Cells={len(engine.catalog)}, Ticks={ticks}, Interval={interval:.0f} ms")
    print(f"{'='*60}\n")

    def show(table: dict) -> None:
        print(f"[tick {engine.tick_count}] t={scheduler.now():.0f} ms")
        print(engine.health_grid(table).round(1).to_string())
        print()

    with engine:
        engine.start(on_tick=show)

        for key in accelerate or []:
            _, text = engine.toggle_hardware_acceleration(key)
            print(f"  {text}")
        for key in qos or []:
            _, text = engine.toggle_qos_optimization(key)
            print(f"  {text}")
        for key in reset or []:
            engine.reset_node(key, on_status=lambda ev: print(f"  [{ev.phase.value}] {ev.text}"))

        scheduler.advance(interval * max(0, ticks - 1))

    # ticking has stopped; let outstanding resets complete
    scheduler.advance(engine.config["reset_delay_ms"])

    print("-" * 60)
    print("  NETWORK STATISTICS")
    print("-" * 60)
    print_summary(engine.network_summary())

    if plot:
        os.makedirs(OUTPUT_DIR, exist_ok=True)
        plot_traffic_series(engine.traffic_series(), os.path.join(OUTPUT_DIR, "traffic_series.png"))
        plot_health_grid(engine.health_grid(), os.path.join(OUTPUT_DIR, "health_grid.png"))

    return engine


def run_flag_experiments(n_trials: int, random_seed: int) -> None:
    print("\n" + "=" * 60)
    print("  FLAG IMPACT TRIALS")
    print("=" * 60 + "\n")

    df_results = run_trials(n_trials=n_trials, random_seed=random_seed, verbose=True)
    summary = summarise_by_flags(df_results)
    pd.set_option("display.width", 140)
    print(summary.to_string())


# ===========================================================================
# CLI
# ===========================================================================

def catalog_cell(text: str):
    """argparse type: SERVICE:REGION that must exist in the default catalog."""
    try:
        key = parse_cell_key(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    catalog = Catalog()
    if not catalog.contains(key):
        raise argparse.ArgumentTypeError(
            f"Unknown cell '{text}'. Services: {', '.join(catalog.services)}; "
            f"regions: {', '.join(catalog.regions)}"
        )
    return key


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Network Health Monitor console",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--ticks", type=int, default=3,
                        help="Number of ticks to run, including the initial one (default: 3)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed (default: fresh entropy)")
    parser.add_argument("--accelerate", type=catalog_cell, action="append", metavar="SERVICE:REGION",
                        help="Enable hardware acceleration for a cell (repeatable)")
    parser.add_argument("--qos", type=catalog_cell, action="append", metavar="SERVICE:REGION",
                        help="Enable QoS optimization for a cell (repeatable)")
    parser.add_argument("--reset", type=catalog_cell, action="append", metavar="SERVICE:REGION",
                        help="Reset nodes for a cell (repeatable)")
    parser.add_argument("--plot", action="store_true",
                        help="Save traffic and health charts to ./outputs/")
    parser.add_argument("--experiments", action="store_true",
                        help="Run flag impact trials instead of the console demo")
    parser.add_argument("--trials", type=int, default=1000,
                        help="Trials for --experiments (default: 1000)")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (default: from config, INFO)")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    overrides = {"random_seed": args.seed} if args.seed is not None else {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    cfg = load_config(overrides)
    configure_logging(cfg["log_level"])

    if args.experiments:
        run_flag_experiments(args.trials, args.seed if args.seed is not None else 42)
    else:
        run_demo(
            ticks=args.ticks,
            accelerate=args.accelerate,
            qos=args.qos,
            reset=args.reset,
            plot=args.plot,
            config=overrides,
        )
