"""
gracely/api/lifespan.py
Lifespan wrapper binding the host app's startup/shutdown to the lifecycle.

Responsibilities:
1. Run the app's own lifespan startup
2. Mark the lifecycle READY once startup completed
3. On lifespan exit, run the shutdown sequence before the app's own teardown
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable

from gracely.core.logging import get_logger

if TYPE_CHECKING:
    from .integration import Gracely

logger = get_logger("lifespan")


def wrap_lifespan(
    lifespan_context: Callable[[Any], Any],
    gracely: Gracely,
) -> Callable[[Any], Any]:
    """
    Wrap a Starlette/FastAPI lifespan context.

    Args:
        lifespan_context: The router's current lifespan factory
        gracely: Lifecycle controller for the app

    Returns:
        A lifespan factory with the same yielded state
    """

    @asynccontextmanager
    async def lifespan(app) -> AsyncIterator[Any]:
        # ====================================================================
        # STARTUP
        # ====================================================================
        async with lifespan_context(app) as state:
            gracely.mark_ready()

            # ================================================================
            # APP RUNNING
            # ================================================================
            try:
                yield state
            finally:
                # ============================================================
                # SHUTDOWN
                # ============================================================
                logger.info("lifespan_shutdown", runtime=gracely.runtime.value)
                await gracely.shutdown(reason="lifespan")

    return lifespan


# ============================================================================
# Export
# ============================================================================

__all__ = ["wrap_lifespan"]
