"""
actions.py
----------
Operator remediation actions.

  - toggle_hardware_acceleration / toggle_qos_optimization
      flip one optimization flag; the change is seen by the sampler on the
      next tick, never by scores that were already computed.
  - reset_node
      cosmetic pseudo-operation: Idle -> Pending immediately, back to Idle
      ("done") after a fixed delay. It does not pause sampling or alter any
      sample or score, and it has no failure branch.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from optimization_state import (
    HARDWARE_ACCELERATION,
    QOS_OPTIMIZATION,
    OptimizationFlags,
    OptimizationStateStore,
    normalise_flag,
)
from scheduler import Scheduler


logger = logging.getLogger(__name__)

DEFAULT_RESET_DELAY_MS = 3000

FLAG_LABELS = {
    HARDWARE_ACCELERATION: "Hardware acceleration",
    QOS_OPTIMIZATION: "QoS optimization",
}


class ResetPhase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    DONE = "done"


@dataclass(frozen=True)
class StatusEvent:
    key: tuple
    phase: ResetPhase
    text: str
    at_ms: float

    def as_dict(self) -> dict:
        return {"phase": self.phase.value, "text": self.text}


def describe_toggle(key, flag: str, flags: OptimizationFlags) -> str:
    name = normalise_flag(flag)
    state = "enabled" if getattr(flags, name) else "disabled"
    return f"{FLAG_LABELS[name]} {state} for {key[0]} in {key[1]}"


class ResetHandle:
    """
    Tracks one reset of one cell.

    The reference behaviour never cancels a reset; cancel() exists so that a
    stricter caller can abort while the reset is still pending.
    """

    def __init__(self, key, started_at: float, delay_ms: float):
        self.key = key
        self.started_at = started_at
        self.delay_ms = delay_ms
        self.state = ResetPhase.IDLE
        self.events: list[StatusEvent] = []
        self.cancelled = False
        self._task = None

    @property
    def done(self) -> bool:
        return self.state is ResetPhase.DONE

    @property
    def pending(self) -> bool:
        return self.state is ResetPhase.PENDING

    @property
    def elapsed_ms(self) -> float | None:
        """Time between the pending and done events, None until done."""
        if not self.done:
            return None
        return self.events[-1].at_ms - self.events[0].at_ms

    def cancel(self) -> bool:
        if not self.pending or self.cancelled:
            return False
        self.cancelled = True
        if self._task is not None:
            self._task.cancel()
        self.state = ResetPhase.IDLE
        logger.info("Reset of %s cancelled", self.key)
        return True

    def __repr__(self) -> str:
        return f"ResetHandle(key={self.key!r}, state={self.state.value})"


class ActionHandlers:
    """Binds the toggle and reset actions to one state store and scheduler."""

    def __init__(
        self,
        store: OptimizationStateStore,
        scheduler: Scheduler,
        reset_delay_ms: float = DEFAULT_RESET_DELAY_MS,
    ):
        self.store = store
        self.scheduler = scheduler
        self.reset_delay_ms = reset_delay_ms

    def toggle(self, key, flag: str) -> tuple[OptimizationFlags, str]:
        flags = self.store.toggle(key, flag)
        text = describe_toggle(key, flag, flags)
        logger.info(text)
        return flags, text

    def toggle_hardware_acceleration(self, key) -> tuple[OptimizationFlags, str]:
        return self.toggle(key, HARDWARE_ACCELERATION)

    def toggle_qos_optimization(self, key) -> tuple[OptimizationFlags, str]:
        return self.toggle(key, QOS_OPTIMIZATION)

    def reset_node(self, key, on_status=None) -> ResetHandle:
        """
        Start a reset for `key`.

        `on_status` (optional) receives a StatusEvent for the pending phase
        before this method returns, and another for the done phase once the
        delay has elapsed. Concurrent resets of one cell are independent.
        """
        handle = ResetHandle(key, self.scheduler.now(), self.reset_delay_ms)

        def emit(phase: ResetPhase, text: str) -> None:
            handle.state = phase
            event = StatusEvent(key, phase, text, self.scheduler.now())
            handle.events.append(event)
            logger.info(text)
            if on_status is not None:
                on_status(event)

        def finish() -> None:
            if not handle.cancelled:
                emit(ResetPhase.DONE, f"Nodes for {key[0]} in {key[1]} reset successfully")

        emit(ResetPhase.PENDING, f"Resetting nodes for {key[0]} in {key[1]}...")
        handle._task = self.scheduler.call_later(self.reset_delay_ms, finish)
        return handle
