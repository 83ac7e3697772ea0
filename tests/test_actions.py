import pytest

from actions import ActionHandlers, ResetPhase
from optimization_state import OptimizationFlags, OptimizationStateStore
from scheduler import ManualScheduler

KEY = ("Instagram", "EU-West")


@pytest.fixture
def handlers():
    return ActionHandlers(OptimizationStateStore(), ManualScheduler(), reset_delay_ms=3000)


def test_toggle_hardware_acceleration_describes_new_state(handlers):
    flags, text = handlers.toggle_hardware_acceleration(KEY)
    assert flags == OptimizationFlags(hardware_acceleration=True)
    assert text == "Hardware acceleration enabled for Instagram in EU-West"

    flags, text = handlers.toggle_hardware_acceleration(KEY)
    assert flags == OptimizationFlags()
    assert text == "Hardware acceleration disabled for Instagram in EU-West"


def test_toggle_qos_is_independent(handlers):
    handlers.toggle_hardware_acceleration(KEY)
    flags, text = handlers.toggle_qos_optimization(KEY)
    assert flags == OptimizationFlags(True, True)
    assert text.startswith("QoS optimization enabled")
    assert handlers.store.get(KEY) == flags


def test_reset_emits_pending_then_done_after_delay(handlers):
    events = []
    handle = handlers.reset_node(KEY, on_status=events.append)

    assert [e.phase for e in events] == [ResetPhase.PENDING]
    assert events[0].as_dict() == {"phase": "pending", "text": "Resetting nodes for Instagram in EU-West..."}
    assert handle.pending

    handlers.scheduler.advance(2999)
    assert len(events) == 1

    handlers.scheduler.advance(1)
    assert [e.phase for e in events] == [ResetPhase.PENDING, ResetPhase.DONE]
    assert events[1].text == "Nodes for Instagram in EU-West reset successfully"
    assert handle.done
    assert handle.elapsed_ms == 3000
    assert handle.events == events


def test_reset_does_not_touch_flags(handlers):
    handlers.reset_node(KEY)
    handlers.scheduler.advance(3000)
    assert handlers.store.get(KEY) == OptimizationFlags()
    assert not handlers.store.is_set(KEY)


def test_concurrent_resets_are_independent(handlers):
    first = handlers.reset_node(KEY)
    handlers.scheduler.advance(1000)
    second = handlers.reset_node(KEY)

    handlers.scheduler.advance(2000)
    assert first.done and second.pending
    handlers.scheduler.advance(1000)
    assert second.done
    assert first.elapsed_ms == second.elapsed_ms == 3000


def test_reset_cancel_while_pending(handlers):
    events = []
    handle = handlers.reset_node(KEY, on_status=events.append)
    assert handle.cancel()
    handlers.scheduler.advance(5000)

    assert handle.cancelled
    assert handle.state is ResetPhase.IDLE
    assert handle.elapsed_ms is None
    assert len(events) == 1
    assert not handle.cancel()


def test_cancel_after_done_is_refused(handlers):
    handle = handlers.reset_node(KEY)
    handlers.scheduler.advance(3000)
    assert not handle.cancel()
    assert handle.done
