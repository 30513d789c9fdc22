"""Liveness/readiness answers derived from the lifecycle state."""
from typing import Any, Dict, Optional

from gracely.lifecycle.state import LifecycleState, LifecycleStateMachine
from gracely.runtime.detection import RuntimeEnvironment


class HealthSurface:
    """
    Probe answers backed by the state machine.

    - alive: any state before SHUTDOWN
    - ready: exactly READY, so it turns False the moment shutdown begins
    """

    def __init__(self, state: LifecycleStateMachine):
        self._state = state

    @property
    def state(self) -> Optional[LifecycleState]:
        return self._state.current_state

    def is_alive(self) -> bool:
        return self._state.current_state is not LifecycleState.SHUTDOWN

    def is_ready(self) -> bool:
        return self._state.is_ready()

    def to_dict(self) -> Dict[str, Any]:
        return {"alive": self.is_alive(), "ready": self.is_ready(), **self._state.to_dict()}


class StaticHealthSurface:
    """Fixed answers used when the runtime is ``none`` (no bookkeeping)."""

    state = None

    def is_alive(self) -> bool:
        return True

    def is_ready(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"alive": True, "ready": True, "state": None}


class GracelyStatus:
    """
    Read-only view shared by the app and every request.

    Usage:
        @app.get("/status")
        async def status(request: Request):
            gracely = request.state.gracely
            return {"runtime": gracely.runtime, "ready": gracely.ready()}
    """

    __slots__ = ("_runtime", "_surface")

    def __init__(self, runtime: RuntimeEnvironment, surface):
        object.__setattr__(self, "_runtime", runtime)
        object.__setattr__(self, "_surface", surface)

    def __setattr__(self, name, value):
        raise AttributeError("GracelyStatus is read-only")

    def __delattr__(self, name):
        raise AttributeError("GracelyStatus is read-only")

    @property
    def runtime(self) -> str:
        return self._runtime.value

    def ready(self) -> bool:
        return self._surface.is_ready()

    def __repr__(self) -> str:
        return f"GracelyStatus(runtime={self.runtime!r}, ready={self.ready()})"
