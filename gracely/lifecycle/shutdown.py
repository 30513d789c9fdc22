"""
Shutdown orchestrator that drives the SHUTTING_DOWN -> SHUTDOWN sequence.

Owns signal handling, the shutdown timeout, draining of in-flight requests
and the user's closing hook.
"""

import asyncio
import inspect
import signal
from dataclasses import dataclass
from typing import Any, Callable, Optional

from gracely.core.exceptions import CleanupFailedError, ShutdownTimeoutError
from gracely.core.logging import get_logger
from gracely.lifecycle.connections import ConnectionTracker
from gracely.lifecycle.state import LifecycleState, LifecycleStateMachine

logger = get_logger("shutdown")

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass(frozen=True)
class ShutdownResult:
    """Outcome of the one shutdown sequence a process runs."""
    reason: str
    error: Optional[BaseException]
    duration_seconds: float

    @property
    def forced(self) -> bool:
        return isinstance(self.error, ShutdownTimeoutError)

    @property
    def outcome(self) -> str:
        if self.error is None:
            return "clean"
        if self.forced:
            return "timeout"
        return "cleanup_failed"


class ShutdownOrchestrator:
    """
    Runs the shutdown sequence exactly once.

    Sequence:
    1. begin_shutdown() on the state machine (readiness flips immediately)
    2. stop accepting new connections
    3. wait for drain and the closing hook concurrently, bounded by timeout
    4. mark_shutdown(error)

    The timeout is a hard ceiling: whatever is still pending when it fires
    is cancelled and the error is a ShutdownTimeoutError. Further triggers
    while a sequence exists are ignored and do not re-arm the timeout.

    Example:
        orchestrator = ShutdownOrchestrator(state, tracker, timeout_ms=10_000)
        orchestrator.install_signal_handlers()
        result = await orchestrator.wait_closed()
    """

    def __init__(
        self,
        state: LifecycleStateMachine,
        tracker: ConnectionTracker,
        timeout_ms: int,
        closing: Optional[Callable[[], Any]] = None,
        stop_accepting: Optional[Callable[[], Any]] = None,
    ):
        self._state = state
        self._tracker = tracker
        self.timeout_ms = timeout_ms
        self._closing = closing
        self.stop_accepting = stop_accepting
        self._task: Optional[asyncio.Task] = None
        self._triggered = asyncio.Event()
        self.result: Optional[ShutdownResult] = None

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def in_progress(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------ #
    # Triggers
    # ------------------------------------------------------------------ #

    def trigger(self, reason: str = "manual") -> asyncio.Task:
        """
        Start the shutdown sequence in the background.

        Must be called from the running event loop. SHUTTING_DOWN is entered
        before this returns, so readiness is already False for the caller.
        Returns the task running the rest of the sequence; later calls return
        the same task.
        """
        if self._task is not None:
            logger.info("shutdown_already_triggered", reason=reason)
            return self._task

        loop = asyncio.get_running_loop()
        started = loop.time()
        logger.info("shutdown_started", reason=reason, timeout_ms=self.timeout_ms)
        self._state.begin_shutdown()

        self._task = loop.create_task(self._run(reason, started), name="gracely-shutdown")
        self._triggered.set()
        return self._task

    async def shutdown(self, reason: str = "manual") -> ShutdownResult:
        """Trigger (if needed) and wait for the shutdown sequence."""
        return await asyncio.shield(self.trigger(reason))

    async def wait_closed(self) -> ShutdownResult:
        """Wait until some trigger has started and finished the sequence."""
        await self._triggered.wait()
        return await asyncio.shield(self._task)

    # ------------------------------------------------------------------ #
    # Signals
    # ------------------------------------------------------------------ #

    def install_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Route SIGINT/SIGTERM into the shutdown sequence."""
        loop = loop or asyncio.get_running_loop()
        for sig in HANDLED_SIGNALS:
            loop.add_signal_handler(sig, self._handle_signal, sig)
        logger.info("signal_handlers_installed", signals=[s.name for s in HANDLED_SIGNALS])

    def remove_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        loop = loop or asyncio.get_running_loop()
        for sig in HANDLED_SIGNALS:
            loop.remove_signal_handler(sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        if self._task is not None:
            logger.warning("termination_signal_ignored", signal=sig.name, reason="shutdown_in_progress")
            return
        logger.info("termination_signal_received", signal=sig.name)
        self.trigger(reason=sig.name)

    # ------------------------------------------------------------------ #
    # Sequence
    # ------------------------------------------------------------------ #

    async def _run(self, reason: str, started: float) -> ShutdownResult:
        loop = asyncio.get_running_loop()

        if self._state.current_state is LifecycleState.SHUTDOWN:
            # Already terminal, nothing left to drive
            self.result = ShutdownResult(reason, self._state.error, 0.0)
            return self.result

        self._stop_accepting()
        error = await self._drain_and_cleanup()

        self.result = ShutdownResult(reason, error, loop.time() - started)
        self._state.mark_shutdown(error)

        if error is None:
            logger.info(
                "shutdown_completed",
                reason=reason,
                duration_seconds=round(self.result.duration_seconds, 3),
            )
        else:
            logger.error(
                "shutdown_completed_with_error",
                reason=reason,
                duration_seconds=round(self.result.duration_seconds, 3),
                **error.to_dict(),
            )
        return self.result

    def _stop_accepting(self) -> None:
        if self.stop_accepting is None:
            return
        try:
            self.stop_accepting()
            logger.info("stopped_accepting_connections")
        except Exception as e:
            logger.error("stop_accepting_failed", error=str(e), exc_info=True)

    async def _run_closing(self) -> None:
        if self._closing is None:
            return
        if inspect.iscoroutinefunction(self._closing):
            result = self._closing()
        else:
            # off the loop, so a blocking hook cannot stall the timeout
            result = await asyncio.to_thread(self._closing)
        if inspect.isawaitable(result):
            await result

    async def _drain_and_cleanup(self):
        drain = asyncio.ensure_future(self._tracker.wait_drained())
        cleanup = asyncio.ensure_future(self._run_closing())
        names = {drain: "drain", cleanup: "closing"}

        _, pending = await asyncio.wait({drain, cleanup}, timeout=self.timeout_seconds)

        cleanup_error: Optional[BaseException] = None
        if cleanup.done() and not cleanup.cancelled():
            cleanup_error = cleanup.exception()

        if pending:
            # cancelled, not awaited: nothing may run past the timeout
            for task in pending:
                task.cancel()

            logger.warning(
                "shutdown_timeout",
                timeout_ms=self.timeout_ms,
                pending=sorted(names[t] for t in pending),
                inflight=self._tracker.active,
            )
            error = ShutdownTimeoutError(self.timeout_ms, pending=sorted(names[t] for t in pending))
            if cleanup_error is not None:
                error.details["cleanup_error"] = str(cleanup_error)
                error.__cause__ = cleanup_error
            return error

        if cleanup_error is not None:
            logger.error(
                "closing_hook_failed",
                error=str(cleanup_error),
                error_type=type(cleanup_error).__name__,
            )
            error = CleanupFailedError(str(cleanup_error) or type(cleanup_error).__name__)
            error.__cause__ = cleanup_error
            return error

        return None
