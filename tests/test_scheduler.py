import logging
import threading
import time

import pytest

from scheduler import ManualScheduler, ThreadingScheduler


def test_call_later_runs_only_when_due():
    sched = ManualScheduler()
    fired = []
    task = sched.call_later(3000, lambda: fired.append(sched.now()))

    sched.advance(2999)
    assert fired == []
    sched.advance(1)
    assert fired == [3000]
    assert task.done
    assert not task.cancel()


def test_tasks_run_in_due_order_fifo_on_ties():
    sched = ManualScheduler()
    order = []
    sched.call_later(20, lambda: order.append("late"))
    sched.call_later(10, lambda: order.append("first"))
    sched.call_later(10, lambda: order.append("second"))
    assert sched.advance(30) == 3
    assert order == ["first", "second", "late"]


def test_call_every_repeats_until_cancelled():
    sched = ManualScheduler()
    times = []
    task = sched.call_every(30000, lambda: times.append(sched.now()))

    sched.advance(95000)
    assert times == [30000, 60000, 90000]
    assert task.cancel()
    sched.advance(60000)
    assert len(times) == 3
    assert sched.pending() == []


def test_cancelled_one_shot_never_fires():
    sched = ManualScheduler()
    fired = []
    task = sched.call_later(10, lambda: fired.append(1))
    assert task.cancel()
    sched.advance(100)
    assert fired == []
    assert task.cancelled and not task.done


def test_failing_callback_is_logged_and_repeat_continues(caplog):
    sched = ManualScheduler()
    calls = []

    def boom():
        calls.append(1)
        raise RuntimeError("tick failed")

    sched.call_every(10, boom)
    with caplog.at_level(logging.ERROR, logger="scheduler"):
        sched.advance(30)
    assert len(calls) == 3
    assert "Scheduled callback" in caplog.text


def test_invalid_delays_rejected():
    sched = ManualScheduler()
    with pytest.raises(ValueError):
        sched.call_later(-1, lambda: None)
    with pytest.raises(ValueError):
        sched.call_every(0, lambda: None)
    with pytest.raises(ValueError):
        sched.advance(-5)


def test_shutdown_cancels_everything():
    sched = ManualScheduler()
    fired = []
    sched.call_later(5, lambda: fired.append(1))
    sched.call_every(5, lambda: fired.append(2))
    sched.shutdown()
    sched.advance(100)
    assert fired == []


def test_threading_scheduler_fires_and_shuts_down():
    sched = ThreadingScheduler()
    event = threading.Event()
    sched.call_later(10, event.set)
    assert event.wait(5.0)

    never = threading.Event()
    task = sched.call_later(60000, never.set)
    sched.shutdown()
    assert task.cancelled
    assert not never.is_set()


def test_threading_call_every_rearms_until_cancelled():
    sched = ThreadingScheduler()
    runs = []
    third_run = threading.Event()

    def record():
        runs.append(sched.now())
        if len(runs) >= 3:
            third_run.set()

    task = sched.call_every(10, record)
    assert third_run.wait(5.0)
    assert task.cancel()
    assert sched.pending() == []

    settled = len(runs)
    time.sleep(0.1)
    assert len(runs) <= settled + 1
    assert all(later >= earlier for earlier, later in zip(runs, runs[1:]))


def test_threading_scheduler_forgets_cancelled_tasks():
    sched = ThreadingScheduler()
    for _ in range(50):
        sched.call_later(60000, lambda: None).cancel()
    for _ in range(50):
        sched.call_every(60000, lambda: None).cancel()
    assert len(sched._tasks) == 0
    assert sched.pending() == []


def test_threading_scheduler_forgets_fired_tasks():
    sched = ThreadingScheduler()
    fired = threading.Event()
    task = sched.call_later(5, fired.set)
    assert fired.wait(5.0)
    deadline = time.monotonic() + 5.0
    while task in sched._tasks and time.monotonic() < deadline:
        time.sleep(0.01)
    assert len(sched._tasks) == 0
