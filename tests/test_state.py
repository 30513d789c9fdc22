import threading

import pytest

from gracely.lifecycle.state import LifecycleEvent, LifecycleState, LifecycleStateMachine


@pytest.fixture
def machine():
    return LifecycleStateMachine()


def record(machine, event):
    calls = []
    machine.on(event, lambda *args: calls.append(args))
    return calls


def test_starts_in_starting(machine):
    assert machine.current_state is LifecycleState.STARTING
    assert machine.is_ready() is False


def test_mark_ready_fires_once(machine):
    calls = record(machine, LifecycleEvent.READY)

    assert machine.mark_ready() is True
    assert machine.mark_ready() is False

    assert calls == [()]
    assert machine.is_ready() is True


def test_mark_ready_after_shutdown_began_is_ignored(machine):
    calls = record(machine, LifecycleEvent.READY)
    machine.begin_shutdown()

    assert machine.mark_ready() is False
    assert calls == []
    assert machine.current_state is LifecycleState.SHUTTING_DOWN


def test_begin_shutdown_is_idempotent(machine):
    calls = record(machine, LifecycleEvent.SHUTTING_DOWN)
    machine.mark_ready()

    assert machine.begin_shutdown() is True
    assert machine.begin_shutdown() is False

    assert calls == [()]
    assert machine.is_ready() is False


def test_shutting_down_fires_before_begin_shutdown_returns(machine):
    seen = []
    machine.on(LifecycleEvent.SHUTTING_DOWN, lambda: seen.append(machine.current_state))
    machine.mark_ready()
    machine.begin_shutdown()

    assert seen == [LifecycleState.SHUTTING_DOWN]


def test_ready_can_be_skipped(machine):
    machine.begin_shutdown()
    machine.mark_shutdown()

    assert machine.current_state is LifecycleState.SHUTDOWN
    assert LifecycleState.READY not in machine.transitioned_at


def test_mark_shutdown_passes_error_and_is_terminal(machine):
    calls = record(machine, LifecycleEvent.SHUTDOWN)
    err = RuntimeError("boom")
    machine.begin_shutdown()

    assert machine.mark_shutdown(err) is True
    assert machine.mark_shutdown(None) is False
    assert machine.begin_shutdown() is False
    assert machine.mark_ready() is False

    assert calls == [(err,)]
    assert machine.current_state is LifecycleState.SHUTDOWN
    assert machine.error is err


def test_clean_shutdown_event_receives_none(machine):
    calls = record(machine, LifecycleEvent.SHUTDOWN)
    machine.begin_shutdown()
    machine.mark_shutdown()

    assert calls == [(None,)]


def test_mark_shutdown_requires_shutting_down(machine):
    calls = record(machine, LifecycleEvent.SHUTDOWN)

    assert machine.mark_shutdown() is False
    assert calls == []
    assert machine.current_state is LifecycleState.STARTING


def test_one_handler_per_event(machine):
    machine.on(LifecycleEvent.READY, lambda: None)
    with pytest.raises(ValueError):
        machine.on(LifecycleEvent.READY, lambda: None)


def test_failing_handler_does_not_block_transition(machine):
    def explode():
        raise RuntimeError("handler failed")

    machine.on(LifecycleEvent.READY, explode)

    assert machine.mark_ready() is True
    assert machine.is_ready() is True


def test_concurrent_mark_ready_fires_once(machine):
    calls = record(machine, LifecycleEvent.READY)
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        machine.mark_ready()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1


def test_to_dict(machine):
    machine.mark_ready()
    data = machine.to_dict()

    assert data["state"] == "ready"
    assert set(data["transitioned_at"]) == {"starting", "ready"}
    assert data["error"] is None
