from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

import uvicorn
from fastapi import FastAPI

from gracely.core.config import get_settings
from gracely.core.logging import get_logger

from .integration import Gracely

logger = get_logger("server")


class GracefulServer:
    """
    Runs uvicorn with gracely owning the termination signals.

    Behaviour:
      - uvicorn's own signal handling is disabled; SIGINT/SIGTERM go to the
        shutdown orchestrator instead.
      - On shutdown the listening sockets are closed first (new connections
        are refused), in-flight requests drain, the closing hook runs, and
        only once the lifecycle reached SHUTDOWN is uvicorn told to exit.
      - A second signal during shutdown is ignored.
    """

    def __init__(
        self,
        app: FastAPI,
        gracely: Gracely,
        host: Optional[str] = None,
        port: Optional[int] = None,
        log_level: str = "info",
    ):
        settings = get_settings()
        self.app = app
        self.gracely = gracely
        self.host = host or settings.HOST
        self.port = port if port is not None else settings.PORT
        self.log_level = log_level
        self._server: Optional[uvicorn.Server] = None

        gracely.bind_server(self)

    # ----------------------------------------------------------------------
    # INTERNAL
    # ----------------------------------------------------------------------
    def _create_server(self) -> uvicorn.Server:
        """Create a uvicorn.Server with its signal handling disabled."""
        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            loop="asyncio",
            log_level=self.log_level,
            server_header=False,
        )
        server = uvicorn.Server(config)

        # older uvicorn installs handlers here, newer ones capture them around serve()
        server.install_signal_handlers = lambda: None  # type: ignore[method-assign]
        server.capture_signals = contextlib.nullcontext  # type: ignore[method-assign]
        return server

    async def _exit_after_shutdown(self) -> None:
        orchestrator = self.gracely.orchestrator
        await orchestrator.wait_closed()
        if self._server is not None:
            self._server.should_exit = True

    # ----------------------------------------------------------------------
    # PUBLIC API
    # ----------------------------------------------------------------------
    def stop_accepting(self) -> None:
        """Close listening sockets; established connections keep running."""
        if self._server is None:
            return
        for s in getattr(self._server, "servers", None) or []:
            s.close()
        logger.info("listeners_closed", host=self.host, port=self.port)

    async def serve(self) -> None:
        """Serve until the shutdown sequence completes."""
        if self._server is not None:
            raise RuntimeError("Server already started")

        self._server = self._create_server()
        loop = asyncio.get_running_loop()
        orchestrator = self.gracely.orchestrator

        logger.info("starting_server", host=self.host, port=self.port, runtime=self.gracely.runtime.value)

        if orchestrator is None:
            # runtime "none": plain uvicorn including its own signal handling
            self._server = uvicorn.Server(self._server.config)
            try:
                await self._server.serve()
            finally:
                self._server = None
            return

        orchestrator.install_signal_handlers(loop)
        watcher = loop.create_task(self._exit_after_shutdown(), name="gracely-exit-watcher")
        try:
            await self._server.serve()
        finally:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher
            orchestrator.remove_signal_handlers(loop)
            self._server = None

        logger.info("server_stopped", host=self.host, port=self.port)

    def run(self) -> None:
        """Blocking entry point."""
        asyncio.run(self.serve())

    @property
    def server(self) -> Optional[uvicorn.Server]:
        return self._server
