"""
scheduler.py
------------
Timer abstraction used to drive periodic ticks and delayed reset outcomes.

Two implementations share one interface:
  - ManualScheduler    : virtual clock advanced explicitly; runs due
                         callbacks synchronously inside advance(). Used by
                         tests and the demo driver.
  - ThreadingScheduler : wall-clock timers on threading.Timer.

All delays and periods are in milliseconds. Every task returns a handle
that can be cancelled; shutdown() cancels all outstanding tasks.
"""

import heapq
import itertools
import logging
import threading
import time


logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a one-shot or repeating callback."""

    def __init__(self, callback, due_at: float, period: float | None = None):
        self.callback = callback
        self.due_at = due_at
        self.period = period
        self.cancelled = False
        self.done = False
        self.runs = 0
        self._timer = None
        self._on_cancel = None

    @property
    def repeating(self) -> bool:
        return self.period is not None

    def cancel(self) -> bool:
        """Cancel the task. Returns False if it already finished or was cancelled."""
        if self.cancelled or self.done:
            return False
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()
        if self._on_cancel is not None:
            self._on_cancel(self)
        return True

    def _run(self) -> None:
        self.runs += 1
        try:
            self.callback()
        except Exception:
            logger.exception("Scheduled callback %r failed", self.callback)
        if not self.repeating:
            self.done = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "done" if self.done else "pending"
        return f"ScheduledTask(due_at={self.due_at:.0f}, period={self.period}, {state})"


class Scheduler:
    """Interface shared by the scheduler implementations."""

    def now(self) -> float:
        raise NotImplementedError

    def call_later(self, delay_ms: float, callback) -> ScheduledTask:
        raise NotImplementedError

    def call_every(self, period_ms: float, callback) -> ScheduledTask:
        raise NotImplementedError

    def shutdown(self) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Virtual clock
# ---------------------------------------------------------------------------

class ManualScheduler(Scheduler):
    """
    Deterministic scheduler over a virtual millisecond clock.

    Callbacks only run inside advance(), in due-time order; tasks due at the
    same instant run in the order they were scheduled.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._queue: list = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def _push(self, task: ScheduledTask) -> ScheduledTask:
        heapq.heappush(self._queue, (task.due_at, next(self._seq), task))
        return task

    def call_later(self, delay_ms: float, callback) -> ScheduledTask:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        return self._push(ScheduledTask(callback, self._now + delay_ms))

    def call_every(self, period_ms: float, callback) -> ScheduledTask:
        if period_ms <= 0:
            raise ValueError(f"period_ms must be > 0, got {period_ms}")
        return self._push(ScheduledTask(callback, self._now + period_ms, period=period_ms))

    def advance(self, ms: float) -> int:
        """Move the clock forward by `ms`, running every task that falls due. Returns runs."""
        if ms < 0:
            raise ValueError(f"Cannot move the clock backwards ({ms} ms)")
        target = self._now + ms
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due_at, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self._now = due_at
            task._run()
            ran += 1
            if task.repeating and not task.cancelled:
                task.due_at = due_at + task.period
                self._push(task)
        self._now = target
        return ran

    def pending(self) -> list[ScheduledTask]:
        return [t for _, _, t in sorted(self._queue) if not t.cancelled]

    def shutdown(self) -> None:
        for _, _, task in self._queue:
            task.cancel()
        self._queue.clear()


# ---------------------------------------------------------------------------
# Wall clock
# ---------------------------------------------------------------------------

class ThreadingScheduler(Scheduler):
    """Wall-clock scheduler; callbacks run on threading.Timer threads."""

    def __init__(self):
        self._tasks: set = set()
        self._lock = threading.Lock()

    def now(self) -> float:
        return time.monotonic() * 1000.0

    def _arm(self, task: ScheduledTask, delay_ms: float) -> None:
        timer = threading.Timer(delay_ms / 1000.0, self._fire, args=(task,))
        timer.daemon = True
        task._timer = timer
        timer.start()

    def _forget(self, task: ScheduledTask) -> None:
        with self._lock:
            self._tasks.discard(task)

    def _fire(self, task: ScheduledTask) -> None:
        if task.cancelled:
            self._forget(task)
            return
        task._run()
        if task.repeating and not task.cancelled:
            task.due_at += task.period
            self._arm(task, max(0.0, task.due_at - self.now()))
        else:
            self._forget(task)

    def _track(self, task: ScheduledTask) -> None:
        task._on_cancel = self._forget
        with self._lock:
            self._tasks.add(task)

    def call_later(self, delay_ms: float, callback) -> ScheduledTask:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        task = ScheduledTask(callback, self.now() + delay_ms)
        self._track(task)
        self._arm(task, delay_ms)
        return task

    def call_every(self, period_ms: float, callback) -> ScheduledTask:
        if period_ms <= 0:
            raise ValueError(f"period_ms must be > 0, got {period_ms}")
        task = ScheduledTask(callback, self.now() + period_ms, period=period_ms)
        self._track(task)
        self._arm(task, period_ms)
        return task

    def pending(self) -> list[ScheduledTask]:
        with self._lock:
            return [t for t in self._tasks if not t.cancelled]

    def shutdown(self) -> None:
        with self._lock:
            tasks, self._tasks = self._tasks, set()
        for task in tasks:
            task.cancel()
        logger.debug("ThreadingScheduler shut down, %d task(s) cancelled", len(tasks))
