"""
Lifecycle core: state machine, in-flight tracking and the shutdown sequence.
"""

from gracely.lifecycle.connections import ConnectionTracker
from gracely.lifecycle.shutdown import ShutdownOrchestrator, ShutdownResult
from gracely.lifecycle.state import LifecycleEvent, LifecycleState, LifecycleStateMachine


__all__ = [
    "ConnectionTracker",
    "ShutdownOrchestrator",
    "ShutdownResult",
    "LifecycleEvent",
    "LifecycleState",
    "LifecycleStateMachine",
]
