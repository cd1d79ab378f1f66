"""vitalspy - client-side performance telemetry for Python hosts."""

__version__ = "0.1.0"

from vitalspy.adapters.frameworks.asgi import (
    ASGIPerformanceMiddleware,
    create_asgi_app,
)
from vitalspy.adapters.logging import TelemetryLogHandler
from vitalspy.adapters.platform.environment import ProcessEnvironment, location_context
from vitalspy.adapters.platform.hooks import GlobalErrorHooks
from vitalspy.adapters.platform.timeline import PerformanceTimeline
from vitalspy.adapters.transport.delivery import BestEffortDelivery
from vitalspy.adapters.transport.httpx_transport import HttpxTransport
from vitalspy.core.budget import DEFAULT_BUDGETS, evaluate_budget
from vitalspy.core.config import MonitorConfig
from vitalspy.core.exceptions import (
    ConfigurationError,
    MissingMarkError,
    UnsupportedEntryTypeError,
    VitalspyError,
)
from vitalspy.core.models import (
    BudgetReport,
    BudgetViolation,
    EnrichedSnapshot,
    ErrorRecord,
    EventKind,
    MetricSample,
    NavigationTiming,
    PerformanceEntry,
    PerformanceSnapshot,
    Rating,
    ResourceRecord,
    VitalName,
)
from vitalspy.core.rating import classify
from vitalspy.monitor import (
    PerformanceMonitor,
    check_performance_budget,
    flush_metrics,
    get_monitor,
    get_performance_data,
    initialize,
    mark_end,
    mark_start,
    track_custom_metric,
    track_error,
)

__all__ = [
    "DEFAULT_BUDGETS",
    "ASGIPerformanceMiddleware",
    "BestEffortDelivery",
    "BudgetReport",
    "BudgetViolation",
    "ConfigurationError",
    "EnrichedSnapshot",
    "ErrorRecord",
    "EventKind",
    "GlobalErrorHooks",
    "HttpxTransport",
    "MetricSample",
    "MissingMarkError",
    "MonitorConfig",
    "NavigationTiming",
    "PerformanceEntry",
    "PerformanceMonitor",
    "PerformanceSnapshot",
    "PerformanceTimeline",
    "ProcessEnvironment",
    "Rating",
    "ResourceRecord",
    "TelemetryLogHandler",
    "UnsupportedEntryTypeError",
    "VitalName",
    "VitalspyError",
    "check_performance_budget",
    "classify",
    "create_asgi_app",
    "evaluate_budget",
    "flush_metrics",
    "get_monitor",
    "get_performance_data",
    "initialize",
    "location_context",
    "mark_end",
    "mark_start",
    "track_custom_metric",
    "track_error",
]
