"""Lifecycle states and the state machine that owns them."""
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, Optional, Tuple

from gracely.core.logging import get_logger

logger = get_logger("lifecycle")


class LifecycleState(Enum):
    """Lifecycle states for a service instance, in transition order."""
    STARTING = "starting"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"
    SHUTDOWN = "shutdown"


class LifecycleEvent(Enum):
    """Events fired on entering a state."""
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"
    SHUTDOWN = "shutdown"


class LifecycleStateMachine:
    """
    STARTING -> READY -> SHUTTING_DOWN -> SHUTDOWN.

    Transitions only move forward. READY may be skipped when shutdown starts
    before the server was ever ready. Each transition is a compare-and-set
    under a lock, so concurrent callers can never fire an event twice;
    handlers run after the lock is released.

    Each event has at most one handler. A handler that raises is logged and
    the transition stands.
    """

    def __init__(self):
        self._state = LifecycleState.STARTING
        self._lock = Lock()
        self._handlers: Dict[LifecycleEvent, Callable[..., Any]] = {}
        self.transitioned_at: Dict[LifecycleState, datetime] = {
            LifecycleState.STARTING: datetime.now(timezone.utc)
        }
        self.error: Optional[BaseException] = None

    @property
    def current_state(self) -> LifecycleState:
        return self._state

    def is_ready(self) -> bool:
        return self._state is LifecycleState.READY

    def on(self, event: LifecycleEvent, handler: Callable[..., Any]) -> None:
        """
        Attach the handler for an event.

        Raises:
            ValueError: If the event already has a handler
        """
        if event in self._handlers:
            raise ValueError(f"Lifecycle event '{event.value}' already has a handler")
        self._handlers[event] = handler

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def mark_ready(self) -> bool:
        """STARTING -> READY. Returns False (and fires nothing) otherwise."""
        if not self._transition((LifecycleState.STARTING,), LifecycleState.READY):
            return False
        self._fire(LifecycleEvent.READY)
        return True

    def begin_shutdown(self) -> bool:
        """STARTING|READY -> SHUTTING_DOWN. Fires before returning."""
        if not self._transition(
            (LifecycleState.STARTING, LifecycleState.READY),
            LifecycleState.SHUTTING_DOWN,
        ):
            return False
        self._fire(LifecycleEvent.SHUTTING_DOWN)
        return True

    def mark_shutdown(self, error: Optional[BaseException] = None) -> bool:
        """SHUTTING_DOWN -> SHUTDOWN (terminal). The event receives ``error``."""
        if not self._transition((LifecycleState.SHUTTING_DOWN,), LifecycleState.SHUTDOWN):
            return False
        self.error = error
        self._fire(LifecycleEvent.SHUTDOWN, error)
        return True

    def _transition(self, allowed: Tuple[LifecycleState, ...], target: LifecycleState) -> bool:
        with self._lock:
            previous = self._state
            if previous not in allowed:
                logger.debug(
                    "lifecycle_transition_ignored",
                    state=previous.value,
                    target=target.value,
                )
                return False
            self._state = target
            self.transitioned_at[target] = datetime.now(timezone.utc)

        logger.info("lifecycle_transition", previous=previous.value, state=target.value)
        return True

    def _fire(self, event: LifecycleEvent, *args) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            return
        try:
            handler(*args)
        except Exception as e:
            logger.error(
                "lifecycle_handler_failed",
                lifecycle_event=event.value,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for status responses."""
        return {
            "state": self._state.value,
            "transitioned_at": {
                state.value: ts.isoformat() for state, ts in self.transitioned_at.items()
            },
            "error": str(self.error) if self.error else None,
        }
