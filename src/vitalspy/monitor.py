"""PerformanceMonitor: wires collectors, store and delivery together.

A monitor is an explicitly constructed object owned by the host
application. For hosts that prefer a module-level API, a
default instance is created on first use by the functions at the bottom
of this module.
"""

import asyncio
import concurrent.futures
import contextlib
import logging
import random
from collections.abc import Mapping
from typing import Any

from vitalspy.adapters.platform.environment import ProcessEnvironment
from vitalspy.adapters.platform.hooks import GlobalErrorHooks
from vitalspy.adapters.platform.timeline import PerformanceTimeline
from vitalspy.adapters.storage.snapshot_store import SnapshotStore
from vitalspy.adapters.transport.background import (
    BackgroundLoop,
    shared_background_loop,
)
from vitalspy.adapters.transport.delivery import BestEffortDelivery
from vitalspy.adapters.transport.httpx_transport import HttpxTransport
from vitalspy.collectors.errors import ErrorCollector
from vitalspy.collectors.resources import ResourceCollector
from vitalspy.collectors.timing import TimingCollector
from vitalspy.collectors.vitals import VitalsCollector
from vitalspy.core import metrics
from vitalspy.core.budget import evaluate_budget
from vitalspy.core.config import MonitorConfig
from vitalspy.core.encoding.payload import encode_event, encode_snapshot
from vitalspy.core.exceptions import ConfigurationError
from vitalspy.core.models import (
    BudgetReport,
    DeviceInfo,
    EnrichedSnapshot,
    EventKind,
    MemoryUsage,
    NavigationRecord,
    PerformanceSnapshot,
)
from vitalspy.core.ports import (
    DeliveryPolicy,
    EnvironmentPort,
    ErrorHooksPort,
    TransportPort,
)
from vitalspy.core.session import new_session_id

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """Client-side performance telemetry pipeline.

    Args:
        config: Initial settings; ``initialize()`` options are merged over it.
        timeline: Performance entry source and mark/measure clock.
        environment: Device, memory and location provider.
        transport: Transport used when an endpoint is configured. Defaults to
                   an HttpxTransport for the endpoint.
        hooks: Global error hooks; installed once by ``initialize()``.
        rng: Random source for sampling draws.
        background: Loop used for sends and the flush timer when the caller
                    has no running event loop. Defaults to the process-wide
                    background loop.

    Example:
        ```python
        monitor = PerformanceMonitor()
        monitor.initialize(endpoint="https://collect.example.com/perf")
        monitor.mark_start("checkout")
        ...
        monitor.mark_end("checkout")
        ```
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        *,
        timeline: PerformanceTimeline | None = None,
        environment: EnvironmentPort | None = None,
        transport: TransportPort | None = None,
        hooks: ErrorHooksPort | None = None,
        rng: random.Random | None = None,
        background: BackgroundLoop | None = None,
    ) -> None:
        self._config = config or MonitorConfig()
        self._timeline = timeline if timeline is not None else PerformanceTimeline()
        self._environment = environment or ProcessEnvironment()
        self._transport = transport
        self._hooks = hooks or GlobalErrorHooks()
        self._rng = rng or random.Random()
        self._background = background or shared_background_loop()
        self._session_id = new_session_id()
        self._store = SnapshotStore(self._config.max_errors, self._config.max_resources)
        self._delivery: DeliveryPolicy | None = self._build_delivery()
        self._initialized = False
        self._flush_task: asyncio.Task[None] | None = None
        self._flush_future: concurrent.futures.Future[None] | None = None

        self._errors = ErrorCollector(self._store, self._environment, self._emit)
        self._vitals = VitalsCollector(self._timeline, self._store, self._emit)
        self._resources = ResourceCollector(
            self._timeline, self._store, self.track_custom_metric
        )
        self._timing = TimingCollector(self._timeline, self.track_custom_metric)

    # === Properties ===

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def timeline(self) -> PerformanceTimeline:
        return self._timeline

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def delivery(self) -> DeliveryPolicy | None:
        """Active delivery policy; None while no endpoint is configured."""
        return self._delivery

    # === Lifecycle ===

    def initialize(
        self, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> None:
        """Start collecting. Calls after the first one do nothing.

        Args:
            options: Settings merged over the current config. Both snake_case
                     and the browser API's camelCase names are accepted.
            **kwargs: Same as options.
        """
        if self._initialized:
            logger.debug("Monitoring already initialized")
            return
        self._initialized = True

        try:
            self._config = self._config.merged(options, **kwargs)
        except ConfigurationError as exc:
            logger.warning("Ignoring invalid monitoring options: %s", exc)

        config = self._config
        self._store.set_capacity(config.max_errors, config.max_resources)
        self._delivery = self._build_delivery()

        if config.enable_error_tracking:
            self._hooks.install(self._errors.capture_uncaught)
        if config.enable_vitals:
            self._vitals.start()
        if config.enable_resource_timing:
            self._resources.start()

        self._store.set_navigation(self.get_navigation_timing())
        self._start_flush_timer()

    def _build_delivery(self) -> DeliveryPolicy | None:
        config = self._config
        if not config.endpoint:
            return None
        transport = self._transport or HttpxTransport(
            config.endpoint, timeout=config.transport_timeout_s
        )
        return BestEffortDelivery(
            transport, config.sampling_rate, self._rng, background=self._background
        )

    def _start_flush_timer(self) -> None:
        config = self._config
        if not config.endpoint or config.flush_interval_ms <= 0:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._flush_future = self._background.submit(self._flush_periodically())
            logger.debug("Periodic flush running on background loop")
            return
        self._flush_task = loop.create_task(self._flush_periodically())

    async def _flush_periodically(self) -> None:
        interval = self._config.flush_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            await self.flush_metrics()

    async def aclose(self) -> None:
        """Stop the flush timer and wait for in-flight sends.

        Error hooks stay installed for the life of the process.
        """
        if self._flush_task is not None:
            self._flush_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._flush_task
            self._flush_task = None
        if self._flush_future is not None:
            self._flush_future.cancel()
            self._flush_future = None
        if self._delivery is not None:
            await self._delivery.wait_idle()

    def close(self, timeout: float | None = 5.0) -> None:
        """Sync counterpart of ``aclose`` for hosts without an event loop.

        Stops a background flush timer and waits up to ``timeout`` seconds
        for sends that were handed to the background loop.
        """
        if self._flush_future is not None:
            self._flush_future.cancel()
            self._flush_future = None
        if self._flush_task is not None:
            self._flush_task.cancel()
            self._flush_task = None
        if self._delivery is not None and not self._delivery.drain(timeout):
            logger.warning("Pending metric sends did not settle within %ss", timeout)

    # === Recording ===

    def track_custom_metric(
        self, name: str, value: float, context: dict[str, Any] | None = None
    ) -> None:
        """Append a custom metric sample. Never raises."""
        if not self._config.enable_custom_metrics:
            return
        try:
            self._store.record_custom(name, metrics.custom(name, value, context))
        except Exception:
            logger.warning("Failed to track custom metric %s", name, exc_info=True)

    def track_error(self, error: object, context: dict[str, Any] | None = None) -> None:
        """Record an application error and emit it. Never raises."""
        if not self._config.enable_error_tracking:
            return
        self._errors.capture(error, context)

    def mark_start(self, name: str) -> None:
        """Open a named timing span."""
        self._timing.mark_start(name)

    def mark_end(self, name: str) -> float:
        """Close a named timing span and record ``timing-<name>``.

        Returns:
            Elapsed milliseconds; 0.0 if the span was never started.
        """
        return self._timing.mark_end(name)

    def _emit(self, kind: EventKind, data: Any) -> None:
        """Immediate, sampled, fire-and-forget send of one event."""
        delivery = self._delivery
        if delivery is None or not delivery.sampled():
            return
        try:
            payload = encode_event(
                kind,
                data,
                session_id=self._session_id,
                device_info=self._environment.device_info(),
                timestamp=metrics.now_ms(),
            )
        except Exception:
            logger.warning("Failed to encode %s event", kind, exc_info=True)
            return
        delivery.dispatch(kind, payload)

    # === Reading ===

    def get_navigation_timing(self) -> NavigationRecord | None:
        timing = self._timeline.navigation_timing()
        if timing is None:
            return None
        return metrics.navigation(timing)

    def get_device_info(self) -> DeviceInfo:
        return self._environment.device_info()

    def get_memory_usage(self) -> MemoryUsage | None:
        return self._environment.memory_usage()

    def _enrich(self, snapshot: PerformanceSnapshot) -> EnrichedSnapshot:
        return EnrichedSnapshot(
            vitals=snapshot.vitals,
            resources=snapshot.resources,
            errors=snapshot.errors,
            navigation=snapshot.navigation,
            custom=snapshot.custom,
            device_info=self.get_device_info(),
            memory=self.get_memory_usage(),
            session_id=self._session_id,
            timestamp=metrics.now_ms(),
        )

    def get_performance_data(self) -> EnrichedSnapshot:
        """Independent copy of everything collected, with live device info."""
        return self._enrich(self._store.read_snapshot())

    def check_performance_budget(
        self, budgets: Mapping[str, float] | None = None
    ) -> BudgetReport:
        """Evaluate the current snapshot against budgets merged over defaults."""
        return evaluate_budget(self._store.read_snapshot(), budgets)

    # === Flushing ===

    async def flush_metrics(self) -> None:
        """Send the full snapshot and empty errors, resources and custom.

        Buffers are emptied whether or not the send succeeds. Vitals and
        navigation are kept. Does nothing when no endpoint is configured.
        """
        delivery = self._delivery
        if delivery is None:
            return
        try:
            payload = encode_snapshot(self._enrich(self._store.take_flushable()))
        except Exception:
            logger.warning("Failed to build flush payload", exc_info=True)
            return
        await delivery.deliver(payload, EventKind.SNAPSHOT)


_default_monitor: PerformanceMonitor | None = None


def get_monitor() -> PerformanceMonitor:
    """Return the process-wide default monitor, creating it on first use."""
    global _default_monitor
    if _default_monitor is None:
        _default_monitor = PerformanceMonitor()
    return _default_monitor


def initialize(options: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
    get_monitor().initialize(options, **kwargs)


def track_custom_metric(
    name: str, value: float, context: dict[str, Any] | None = None
) -> None:
    get_monitor().track_custom_metric(name, value, context)


def track_error(error: object, context: dict[str, Any] | None = None) -> None:
    get_monitor().track_error(error, context)


def mark_start(name: str) -> None:
    get_monitor().mark_start(name)


def mark_end(name: str) -> float:
    return get_monitor().mark_end(name)


def get_performance_data() -> EnrichedSnapshot:
    return get_monitor().get_performance_data()


async def flush_metrics() -> None:
    await get_monitor().flush_metrics()


def check_performance_budget(
    budgets: Mapping[str, float] | None = None,
) -> BudgetReport:
    return get_monitor().check_performance_budget(budgets)
