"""
optimization_state.py
---------------------
Per-cell remediation toggles that bias future samples.

Two independent flags are tracked for every CellKey:
  - hardware_acceleration : latency multiplier 0.8 when on
  - qos_optimization      : latency and error-rate multiplier 0.9 when on

A cell only gets an entry once it has been toggled; absence means both
flags are off. Entries live for the lifetime of the store (no expiry, no
persistence).
"""

import logging
import threading
from dataclasses import dataclass, replace

from errors import UnknownFlagError


logger = logging.getLogger(__name__)

HARDWARE_ACCELERATION = "hardware_acceleration"
QOS_OPTIMIZATION = "qos_optimization"
FLAG_NAMES = (HARDWARE_ACCELERATION, QOS_OPTIMIZATION)

# camelCase names used by the view-facing contract
_FLAG_ALIASES = {
    "hardwareAcceleration": HARDWARE_ACCELERATION,
    "qosOptimization": QOS_OPTIMIZATION,
}


def normalise_flag(flag: str) -> str:
    name = _FLAG_ALIASES.get(flag, flag)
    if name not in FLAG_NAMES:
        raise UnknownFlagError(
            f"Unknown optimization flag '{flag}'. Choose from: {list(FLAG_NAMES)}"
        )
    return name


@dataclass(frozen=True)
class OptimizationFlags:
    hardware_acceleration: bool = False
    qos_optimization: bool = False

    def flipped(self, flag: str) -> "OptimizationFlags":
        name = normalise_flag(flag)
        return replace(self, **{name: not getattr(self, name)})

    def as_dict(self) -> dict:
        return {
            "hardwareAcceleration": self.hardware_acceleration,
            "qosOptimization": self.qos_optimization,
        }


DEFAULT_FLAGS = OptimizationFlags()


class OptimizationStateStore:
    """
    Mapping CellKey -> OptimizationFlags.

    `get` never fails and `toggle` creates unseen keys on the fly. The
    store is owned by one engine instance and handed to the sampler on
    each tick. A lock serialises access because the repeating tick may
    run on a timer thread while toggles arrive from the caller's thread.
    """

    def __init__(self):
        self._flags: dict = {}
        self._lock = threading.Lock()

    def get(self, key) -> OptimizationFlags:
        with self._lock:
            return self._flags.get(key, DEFAULT_FLAGS)

    def toggle(self, key, flag: str) -> OptimizationFlags:
        """Flip exactly one flag for `key` and return the new pair."""
        with self._lock:
            new_flags = self._flags.get(key, DEFAULT_FLAGS).flipped(flag)
            self._flags[key] = new_flags
        logger.debug("Toggled %s for %s -> %s", flag, key, new_flags)
        return new_flags

    def is_set(self, key) -> bool:
        with self._lock:
            return key in self._flags

    def snapshot(self) -> dict:
        with self._lock:
            return dict(self._flags)

    def __len__(self) -> int:
        with self._lock:
            return len(self._flags)
