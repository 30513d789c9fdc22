"""In-flight request accounting used to decide when shutdown has drained."""
import asyncio
from contextlib import contextmanager
from typing import Iterator

from gracely.core.logging import get_logger

logger = get_logger("connections")


class ConnectionTracker:
    """
    Counts requests currently being served.

    All calls are expected from the event loop serving the app.
    """

    def __init__(self):
        self._active = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def active(self) -> int:
        return self._active

    def acquire(self) -> None:
        self._active += 1
        self._idle.clear()

    def release(self) -> None:
        if self._active == 0:
            logger.warning("connection_release_without_acquire")
            return
        self._active -= 1
        if self._active == 0:
            self._idle.set()

    @contextmanager
    def track(self) -> Iterator[None]:
        self.acquire()
        try:
            yield
        finally:
            self.release()

    async def wait_drained(self) -> None:
        """Suspend until no request is in flight."""
        if self._active:
            logger.info("waiting_for_inflight_requests", active=self._active)
        await self._idle.wait()
