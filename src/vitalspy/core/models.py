"""Core domain models for performance telemetry data."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Rating(StrEnum):
    """Three-level quality rating for a measured metric."""

    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    POOR = "poor"
    UNKNOWN = "unknown"


class EventKind(StrEnum):
    """Kinds of telemetry events that leave the pipeline."""

    VITAL = "vital"
    ERROR = "error"
    CUSTOM = "custom"
    RESOURCE = "resource"
    SNAPSHOT = "snapshot"


class VitalName(StrEnum):
    """Web Vitals tracked by the pipeline."""

    FCP = "FCP"
    LCP = "LCP"
    FID = "FID"
    CLS = "CLS"
    TTFB = "TTFB"

    @classmethod
    def resolve(cls, name: str) -> "VitalName | None":
        """Resolve a short or long metric name to a VitalName.

        Args:
            name: Short name (e.g., "LCP") or long name
                  (e.g., "largest-contentful-paint").

        Returns:
            The matching VitalName, or None if the name is not a vital.
        """
        if name in _VITAL_ALIASES:
            return _VITAL_ALIASES[name]
        try:
            return cls(name)
        except ValueError:
            return None


_VITAL_ALIASES = {
    "first-contentful-paint": VitalName.FCP,
    "largest-contentful-paint": VitalName.LCP,
    "first-input-delay": VitalName.FID,
    "cumulative-layout-shift": VitalName.CLS,
    "time-to-first-byte": VitalName.TTFB,
}


@dataclass(frozen=True)
class MetricSample:
    """A single classified measurement.

    Attributes:
        name: Metric name (e.g., LCP, timing-checkout).
        value: The measured value (milliseconds for timings).
        rating: Quality rating for the value.
        timestamp: Unix timestamp in milliseconds.
        extra: Additional context fields.
    """

    name: str
    value: float
    rating: Rating
    timestamp: int
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ErrorRecord:
    """An application error captured by the pipeline.

    Attributes:
        message: Error message.
        stack: Formatted traceback, empty if unavailable.
        timestamp: Unix timestamp in milliseconds.
        url: Location the host was serving when the error occurred.
        user_agent: Identifier of the reporting client.
        context: Caller supplied context.
        kind: Exception class name.
    """

    message: str
    stack: str
    timestamp: int
    url: str
    user_agent: str
    context: dict[str, Any] = field(default_factory=dict)
    kind: str = "Error"


@dataclass(frozen=True)
class ResourceRecord:
    """Timing for one network resource fetch."""

    name: str
    type: str
    duration_ms: float
    size_bytes: int
    cached: bool
    timestamp: int


@dataclass(frozen=True)
class NavigationTiming:
    """Raw page-load timestamps as reported by the platform.

    All values are milliseconds on the same clock.
    """

    navigation_start: float = 0.0
    domain_lookup_start: float = 0.0
    domain_lookup_end: float = 0.0
    connect_start: float = 0.0
    connect_end: float = 0.0
    request_start: float = 0.0
    response_start: float = 0.0
    response_end: float = 0.0
    dom_loading: float = 0.0
    dom_complete: float = 0.0
    dom_content_loaded_event_end: float = 0.0
    load_event_end: float = 0.0
    type: int = 0
    redirect_count: int = 0


@dataclass(frozen=True)
class NavigationRecord:
    """Page-load phase durations derived from NavigationTiming."""

    domain_lookup: float
    connect: float
    request: float
    response: float
    dom_processing: float
    page_load: float
    dom_ready: float
    type: int
    redirect_count: int


@dataclass(frozen=True)
class PerformanceEntry:
    """A performance observation delivered by the platform timeline.

    Only the fields relevant to the entry's type are meaningful.
    """

    entry_type: str
    name: str = ""
    start_time: float = 0.0
    duration: float = 0.0
    value: float = 0.0
    had_recent_input: bool = False
    processing_start: float = 0.0
    initiator_type: str = ""
    transfer_size: int = 0
    decoded_body_size: int = 0
    element: str | None = None
    response_start: float = 0.0


@dataclass(frozen=True)
class DeviceInfo:
    """Device and connection details attached to outbound payloads."""

    user_agent: str
    platform: str
    python_version: str
    hostname: str
    hardware_concurrency: int
    connection_type: str = "unknown"
    downlink: float = 0.0
    rtt: float = 0.0
    save_data: bool = False


@dataclass(frozen=True)
class MemoryUsage:
    """Process memory usage in bytes."""

    used: int
    total: int
    limit: int
    usage: float


@dataclass(frozen=True)
class PerformanceSnapshot:
    """Point-in-time copy of everything the pipeline has collected."""

    vitals: dict[str, MetricSample] = field(default_factory=dict)
    resources: list[ResourceRecord] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)
    navigation: NavigationRecord | None = None
    custom: dict[str, list[MetricSample]] = field(default_factory=dict)


@dataclass(frozen=True)
class EnrichedSnapshot(PerformanceSnapshot):
    """Snapshot enriched with live device, memory and session info."""

    device_info: DeviceInfo | None = None
    memory: MemoryUsage | None = None
    session_id: str = ""
    timestamp: int = 0


@dataclass(frozen=True)
class BudgetViolation:
    """A single metric that exceeded its budget."""

    type: str
    metric: str
    actual: float
    budget: float
    violation: float


@dataclass(frozen=True)
class BudgetReport:
    """Outcome of a performance budget check."""

    passed: bool
    violations: list[BudgetViolation] = field(default_factory=list)
    summary: dict[str, Any] = field(default_factory=dict)
