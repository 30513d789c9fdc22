import asyncio

import pytest

from gracely.health import GracelyStatus, HealthSurface, StaticHealthSurface
from gracely.lifecycle.connections import ConnectionTracker
from gracely.lifecycle.state import LifecycleStateMachine
from gracely.runtime.detection import RuntimeEnvironment


def test_surface_follows_state():
    machine = LifecycleStateMachine()
    surface = HealthSurface(machine)

    assert (surface.is_alive(), surface.is_ready()) == (True, False)

    machine.mark_ready()
    assert (surface.is_alive(), surface.is_ready()) == (True, True)

    machine.begin_shutdown()
    assert (surface.is_alive(), surface.is_ready()) == (True, False)

    machine.mark_shutdown()
    assert (surface.is_alive(), surface.is_ready()) == (False, False)


def test_static_surface_is_fixed():
    surface = StaticHealthSurface()

    assert surface.is_alive() is True
    assert surface.is_ready() is True
    assert surface.to_dict() == {"alive": True, "ready": True, "state": None}


def test_status_reads_through_to_surface():
    machine = LifecycleStateMachine()
    status = GracelyStatus(RuntimeEnvironment.KUBERNETES, HealthSurface(machine))

    assert status.runtime == "kubernetes"
    assert status.ready() is False
    machine.mark_ready()
    assert status.ready() is True
    assert "kubernetes" in repr(status)


def test_status_cannot_be_mutated():
    status = GracelyStatus(RuntimeEnvironment.LOCAL, StaticHealthSurface())

    with pytest.raises(AttributeError):
        status.extra = 1
    with pytest.raises(AttributeError):
        del status._runtime


@pytest.mark.asyncio
async def test_tracker_drains():
    tracker = ConnectionTracker()

    with tracker.track():
        assert tracker.active == 1
        waiter = asyncio.ensure_future(tracker.wait_drained())
        await asyncio.sleep(0)
        assert not waiter.done()

    await asyncio.wait_for(waiter, timeout=1)
    assert tracker.active == 0


@pytest.mark.asyncio
async def test_tracker_idle_returns_immediately():
    await asyncio.wait_for(ConnectionTracker().wait_drained(), timeout=1)


def test_tracker_release_without_acquire_is_ignored():
    tracker = ConnectionTracker()
    tracker.release()
    assert tracker.active == 0
