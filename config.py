"""
config.py
---------
Engine configuration: defaults, environment overrides, logging setup.

Resolution order (later wins):
  1. DEFAULT_ENGINE_CONFIG
  2. NHM_* environment variables (a local .env file is loaded first)
  3. explicit overrides passed to load_config()
"""

import logging
import os

from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Defaults (reference cadence of the dashboard)
# ---------------------------------------------------------------------------
DEFAULT_ENGINE_CONFIG = {
    "tick_interval_ms": 30000,   # full re-sample of every cell
    "reset_delay_ms": 3000,      # pending -> done for a node reset
    "random_seed": None,         # None = fresh entropy
    "history_hours": 24,         # points in the traffic series
    "log_level": "INFO",
}

ENV_PREFIX = "NHM_"

_PARSERS = {
    "tick_interval_ms": float,
    "reset_delay_ms": float,
    "random_seed": int,
    "history_hours": int,
    "log_level": str,
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _from_env(env) -> dict:
    out = {}
    for key, parse in _PARSERS.items():
        var = ENV_PREFIX + key.upper()
        raw = env.get(var)
        if raw is None or str(raw).strip() == "":
            continue
        try:
            out[key] = parse(str(raw).strip())
        except ValueError as exc:
            raise ValueError(f"Invalid value for {var}: {raw!r}") from exc
    return out


def _validate(cfg: dict) -> dict:
    if cfg["tick_interval_ms"] <= 0:
        raise ValueError(f"tick_interval_ms must be > 0, got {cfg['tick_interval_ms']}")
    if cfg["reset_delay_ms"] < 0:
        raise ValueError(f"reset_delay_ms must be >= 0, got {cfg['reset_delay_ms']}")
    if cfg["history_hours"] <= 0:
        raise ValueError(f"history_hours must be > 0, got {cfg['history_hours']}")
    if cfg["random_seed"] is not None and cfg["random_seed"] < 0:
        raise ValueError(f"random_seed (NHM_RANDOM_SEED) must be >= 0, got {cfg['random_seed']}")
    return cfg


def load_config(overrides: dict | None = None, env=None, dotenv_path: str | None = None) -> dict:
    """
    Build an engine config dict.

    Parameters
    ----------
    overrides   : values that take precedence over everything else
    env         : mapping to read NHM_* variables from; os.environ (after
                  loading .env) when omitted
    dotenv_path : explicit .env file, ignored when `env` is given
    """
    if env is None:
        load_dotenv(dotenv_path=dotenv_path)
        env = os.environ

    unknown = set(overrides or {}) - set(DEFAULT_ENGINE_CONFIG)
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")

    cfg = {**DEFAULT_ENGINE_CONFIG, **_from_env(env), **(overrides or {})}
    return _validate(cfg)


def configure_logging(level: str = "INFO") -> None:
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(console_handler)
