"""Event loop on a daemon thread for hosts without one of their own.

Sync callers hand coroutines to the loop and get a
``concurrent.futures.Future`` back at once. The thread is started on first
use and, being a daemon, never keeps the process alive.
"""

import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundLoop:
    """A lazily started asyncio loop running on a daemon thread.

    Args:
        name: Thread name, shown in thread dumps.
    """

    def __init__(self, name: str = "vitalspy-background") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def submit(
        self, coro: Coroutine[Any, Any, Any]
    ) -> concurrent.futures.Future[Any]:
        """Schedule a coroutine on the loop and return without waiting."""
        return asyncio.run_coroutine_threadsafe(coro, self._ensure_started())

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None or not self.running:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=self._run, args=(loop,), name=self.name, daemon=True
                )
                thread.start()
                self._loop, self._thread = loop, thread
                logger.debug("Started background loop %s", self.name)
            return self._loop

    @staticmethod
    def _run(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the loop, cancelling unfinished work, and join the thread."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None
        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("Background loop %s did not stop in time", self.name)


_shared_loop: BackgroundLoop | None = None
_shared_lock = threading.Lock()


def shared_background_loop() -> BackgroundLoop:
    """Return the process-wide background loop, creating it on first use."""
    global _shared_loop
    with _shared_lock:
        if _shared_loop is None:
            _shared_loop = BackgroundLoop()
        return _shared_loop
