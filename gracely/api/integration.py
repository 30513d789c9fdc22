"""
gracely/api/integration.py
FastAPI binding for the lifecycle core.

Architecture:
- Gracely: per-app controller (runtime, state machine, surface, orchestrator)
- setup_gracely(): wires the controller into an app
- get_gracely(): dependency returning the shared read-only status
"""

from typing import Optional

from fastapi import FastAPI, Request

from gracely.core.config import GracelyOptions
from gracely.core.logging import get_logger
from gracely.health.surface import GracelyStatus, HealthSurface, StaticHealthSurface
from gracely.lifecycle.connections import ConnectionTracker
from gracely.lifecycle.shutdown import ShutdownOrchestrator, ShutdownResult
from gracely.lifecycle.state import LifecycleEvent, LifecycleState, LifecycleStateMachine
from gracely.runtime.detection import RuntimeEnvironment, resolve_runtime

from .lifespan import wrap_lifespan
from .metrics import registry as metrics
from .middleware import GracelyMiddleware
from .routes.health import build_health_router
from .routes.metrics import build_metrics_router

logger = get_logger()


class Gracely:
    """
    Lifecycle controller for one service instance.

    With runtime ``none`` nothing is detected or hooked: readiness is a fixed
    True and shutdown() is a no-op returning None.
    """

    def __init__(self, options: GracelyOptions):
        self.options = options
        self.runtime = resolve_runtime(options.runtime, options.container_endpoint)
        self.tracker = ConnectionTracker()
        self.state: Optional[LifecycleStateMachine] = None
        self.orchestrator: Optional[ShutdownOrchestrator] = None

        if self.enabled:
            self.state = LifecycleStateMachine()
            self.state.on(LifecycleEvent.READY, self._on_ready)
            self.state.on(LifecycleEvent.SHUTTING_DOWN, self._on_shutting_down)
            self.state.on(LifecycleEvent.SHUTDOWN, self._on_shutdown)
            self.surface = HealthSurface(self.state)
            self.orchestrator = ShutdownOrchestrator(
                self.state,
                self.tracker,
                timeout_ms=options.timeout,
                closing=options.closing,
            )
            metrics.mark_state(LifecycleState.STARTING)
        else:
            self.surface = StaticHealthSurface()

        self.status = GracelyStatus(self.runtime, self.surface)

        logger.info(
            "gracely_configured",
            runtime=self.runtime.value,
            timeout_ms=options.timeout,
            health_check=self.is_kubernetes,
        )

    @property
    def enabled(self) -> bool:
        return self.runtime is not RuntimeEnvironment.NONE

    @property
    def is_kubernetes(self) -> bool:
        return self.runtime is RuntimeEnvironment.KUBERNETES

    # ------------------------------------------------------------------ #
    # Host-facing operations
    # ------------------------------------------------------------------ #

    def mark_ready(self) -> bool:
        if self.state is None:
            return False
        return self.state.mark_ready()

    async def shutdown(self, reason: str = "manual") -> Optional[ShutdownResult]:
        if self.orchestrator is None:
            return None
        return await self.orchestrator.shutdown(reason)

    def bind_server(self, server) -> None:
        """Let shutdown close the server's listeners (``server.stop_accepting()``)."""
        if self.orchestrator is not None:
            self.orchestrator.stop_accepting = server.stop_accepting

    # ------------------------------------------------------------------ #
    # Lifecycle events
    # ------------------------------------------------------------------ #

    def _on_ready(self) -> None:
        metrics.mark_state(LifecycleState.READY)
        if self.options.ready is not None:
            self.options.ready()
        logger.info("server_ready", runtime=self.runtime.value)

    def _on_shutting_down(self) -> None:
        metrics.mark_state(LifecycleState.SHUTTING_DOWN)
        if self.options.close is not None:
            self.options.close()
        logger.info("server_closing", inflight=self.tracker.active)

    def _on_shutdown(self, error: Optional[BaseException]) -> None:
        metrics.mark_state(LifecycleState.SHUTDOWN)
        result = self.orchestrator.result
        if result is not None:
            metrics.track_shutdown(result.outcome, result.duration_seconds)
        if error is not None and self.options.error is not None:
            self.options.error(error)


def setup_gracely(
    app: FastAPI,
    options: Optional[GracelyOptions] = None,
    **kwargs,
) -> Gracely:
    """
    Attach gracely to a FastAPI app.

    Must run before the app starts serving. Keyword arguments are
    GracelyOptions fields and override ``options``.

    Raises:
        InvalidConfigurationError: Options failed validation
    """
    if options is None:
        options = GracelyOptions.build(**kwargs)
    elif kwargs:
        options = GracelyOptions.build(**{**dict(options), **kwargs})

    gracely = Gracely(options)

    app.state.gracely = gracely.status
    app.add_middleware(GracelyMiddleware, gracely=gracely)

    if gracely.is_kubernetes:
        app.include_router(
            build_health_router(
                gracely.surface,
                liveness_path=options.liveness_endpoint,
                readiness_path=options.readiness_endpoint,
            )
        )
        logger.info(
            "health_routes_registered",
            liveness=options.liveness_endpoint,
            readiness=options.readiness_endpoint,
        )

    if options.metrics_endpoint:
        app.include_router(build_metrics_router(options.metrics_endpoint))

    if gracely.enabled:
        app.router.lifespan_context = wrap_lifespan(app.router.lifespan_context, gracely)

    return gracely


def get_gracely(request: Request) -> GracelyStatus:
    """
    FastAPI dependency returning the shared status.

    Usage:
        @app.get("/status")
        async def status(gracely: GracelyStatus = Depends(get_gracely)):
            return {"runtime": gracely.runtime, "ready": gracely.ready()}
    """
    return request.state.gracely


# ============================================================================
# Exports
# ============================================================================

__all__ = ["Gracely", "setup_gracely", "get_gracely"]
