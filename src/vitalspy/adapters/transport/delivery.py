"""Best-effort delivery policy.

Payloads are sent at most once. A failed send is logged and dropped: no
retry, no backoff, no dead-letter queue. Telemetry must never block or
crash the host, so nothing here raises to the caller.
"""

import asyncio
import concurrent.futures
import logging
import random
import threading
from typing import Any

from vitalspy.adapters.transport.background import (
    BackgroundLoop,
    shared_background_loop,
)
from vitalspy.core.models import EventKind
from vitalspy.core.ports import TransportPort

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 1000


class BestEffortDelivery:
    """DeliveryPolicy that samples immediate events and drops on failure.

    Args:
        transport: Transport that performs the network send.
        sampling_rate: Probability (0.0-1.0) that an immediate event is sent.
        rng: Random source for sampling draws.
        background: Loop that runs sends dispatched outside an event loop.
                    Defaults to the process-wide background loop.
        max_pending: Cap on unsettled background sends; events beyond it
                     are dropped.
    """

    def __init__(
        self,
        transport: TransportPort,
        sampling_rate: float = 1.0,
        rng: random.Random | None = None,
        background: BackgroundLoop | None = None,
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        self.transport = transport
        self.sampling_rate = sampling_rate
        self.max_pending = max_pending
        self._rng = rng or random.Random()
        self._background = background
        self._tasks: set[asyncio.Task[bool]] = set()
        self._futures: set[concurrent.futures.Future[bool]] = set()
        self._futures_lock = threading.Lock()

    @property
    def background(self) -> BackgroundLoop:
        if self._background is None:
            self._background = shared_background_loop()
        return self._background

    def sampled(self) -> bool:
        """Draw once from [0, 1); the event is kept if the draw is below the rate."""
        return self._rng.random() < self.sampling_rate

    def dispatch(self, kind: EventKind, payload: dict[str, Any]) -> None:
        """Send without making the caller wait for the network.

        Inside a running event loop the send becomes a task on that loop.
        Outside of one it is handed to the background loop.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._submit(kind, payload)
            return
        task = loop.create_task(self.deliver(payload, kind))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _submit(self, kind: EventKind, payload: dict[str, Any]) -> None:
        with self._futures_lock:
            if len(self._futures) >= self.max_pending:
                logger.warning("Dropping %s metric: %d sends pending", kind, len(self._futures))
                return
            coro = self.deliver(payload, kind)
            try:
                future = self.background.submit(coro)
            except RuntimeError as exc:
                coro.close()
                logger.warning("Dropping %s metric: %s", kind, exc)
                return
            self._futures.add(future)
        future.add_done_callback(self._settled)

    def _settled(self, future: concurrent.futures.Future[bool]) -> None:
        with self._futures_lock:
            self._futures.discard(future)

    async def deliver(
        self, payload: dict[str, Any], kind: EventKind = EventKind.SNAPSHOT
    ) -> bool:
        """Send one payload, logging and dropping it on failure.

        Returns:
            True if the transport accepted the payload, False if it was dropped.
        """
        try:
            await self.transport.send(payload)
        except Exception as exc:
            logger.warning("Failed to send %s metric: %s", kind, exc)
            return False
        return True

    @property
    def in_flight(self) -> int:
        """Number of dispatched sends that have not settled yet."""
        with self._futures_lock:
            return len(self._tasks) + len(self._futures)

    def _pending_futures(self) -> list[concurrent.futures.Future[bool]]:
        with self._futures_lock:
            return list(self._futures)

    async def wait_idle(self) -> None:
        """Wait until every dispatched send has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        futures = self._pending_futures()
        if futures:
            await asyncio.gather(
                *(asyncio.wrap_future(f) for f in futures), return_exceptions=True
            )

    def drain(self, timeout: float | None = None) -> bool:
        """Block until background sends settle. For sync hosts shutting down.

        Sends dispatched inside an event loop are not waited for here; use
        ``wait_idle`` from that loop.

        Returns:
            True if every background send settled within the timeout.
        """
        futures = self._pending_futures()
        if not futures:
            return True
        _, not_done = concurrent.futures.wait(futures, timeout)
        return not not_done
