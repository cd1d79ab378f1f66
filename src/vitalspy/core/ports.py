"""Port interfaces for platform, storage and transport adapters.

These protocols define the contracts that adapters must implement.
The collectors and the monitor depend only on these interfaces, not
concrete implementations.
"""

from collections.abc import Callable, Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

from vitalspy.core.models import (
    DeviceInfo,
    EventKind,
    MemoryUsage,
    NavigationTiming,
    PerformanceEntry,
)

T = TypeVar("T")

ObserverCallback = Callable[[Sequence[PerformanceEntry]], None]
ErrorCallback = Callable[[BaseException, dict[str, Any]], None]


@runtime_checkable
class RecordLogPort(Protocol[T]):
    """Port for append-only record logs.

    Examples: InMemoryRecordLog, RingBufferRecordLog.
    """

    def append(self, item: T) -> None:
        """Append a record to the log."""
        ...

    def items(self) -> list[T]:
        """Return a copy of all records, oldest first."""
        ...

    def clear(self) -> None:
        """Remove all records."""
        ...

    def __len__(self) -> int: ...


@runtime_checkable
class PerformanceSourcePort(Protocol):
    """Port for the platform's performance observation API."""

    def observe(self, entry_type: str, callback: ObserverCallback) -> None:
        """Subscribe to entries of one type.

        Raises:
            UnsupportedEntryTypeError: If the platform cannot observe the type.
        """
        ...

    def mark(self, name: str) -> float:
        """Record a named mark and return its time in milliseconds."""
        ...

    def measure(self, name: str, start_mark: str, end_mark: str | None = None) -> float:
        """Return milliseconds elapsed between two marks.

        Raises:
            MissingMarkError: If a referenced mark does not exist.
        """
        ...

    def navigation_timing(self) -> NavigationTiming | None:
        """Return raw page-load timestamps, or None if unavailable."""
        ...


@runtime_checkable
class EnvironmentPort(Protocol):
    """Port for device, memory and location information."""

    def user_agent(self) -> str:
        """Identifier of the reporting client."""
        ...

    def location(self) -> str:
        """Location the host is currently serving."""
        ...

    def device_info(self) -> DeviceInfo:
        """Device and connection details."""
        ...

    def memory_usage(self) -> MemoryUsage | None:
        """Current memory usage, or None if unavailable."""
        ...


@runtime_checkable
class TransportPort(Protocol):
    """Port for sending a JSON payload to the collection endpoint."""

    async def send(self, payload: dict[str, Any]) -> None:
        """Send one payload. May raise on network failure."""
        ...


@runtime_checkable
class DeliveryPolicy(Protocol):
    """Port for the policy that decides how payloads reach the transport.

    BestEffortDelivery drops on failure; a durable, retrying policy can be
    swapped in without touching the collectors.
    """

    def sampled(self) -> bool:
        """Draw once and decide whether an immediate event is sent."""
        ...

    def dispatch(self, kind: EventKind, payload: dict[str, Any]) -> None:
        """Send a payload without making the caller wait."""
        ...

    async def deliver(
        self, payload: dict[str, Any], kind: EventKind = EventKind.SNAPSHOT
    ) -> bool:
        """Send a payload and report whether it was accepted by the transport."""
        ...

    async def wait_idle(self) -> None:
        """Wait for all dispatched payloads to settle."""
        ...

    def drain(self, timeout: float | None = None) -> bool:
        """Block until payloads dispatched outside an event loop settle."""
        ...


@runtime_checkable
class ErrorHooksPort(Protocol):
    """Port for process-wide uncaught error hooks."""

    @property
    def installed(self) -> bool: ...

    def install(self, callback: ErrorCallback) -> bool:
        """Install the hooks once. Returns False if already installed."""
        ...
