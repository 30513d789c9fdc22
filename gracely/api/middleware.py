"""ASGI middleware attaching the gracely status to requests and counting in-flight work."""
from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.types import ASGIApp, Receive, Scope, Send

from .metrics.registry import INFLIGHT_REQUESTS

if TYPE_CHECKING:
    from .integration import Gracely


class GracelyMiddleware:
    """
    Pure ASGI middleware.

    - exposes the shared status as ``request.state.gracely``
    - tracks http/websocket requests so shutdown can wait for them to drain
    """

    def __init__(self, app: ASGIApp, gracely: Gracely):
        self.app = app
        self.gracely = gracely

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        scope.setdefault("state", {})["gracely"] = self.gracely.status

        if not self.gracely.enabled:
            await self.app(scope, receive, send)
            return

        INFLIGHT_REQUESTS.inc()
        try:
            with self.gracely.tracker.track():
                await self.app(scope, receive, send)
        finally:
            INFLIGHT_REQUESTS.dec()
