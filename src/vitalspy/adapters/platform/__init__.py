"""Platform adapters: entry timeline, environment and error hooks."""

from vitalspy.adapters.platform.environment import (
    ProcessEnvironment,
    location_context,
    reset_location,
    set_location,
)
from vitalspy.adapters.platform.hooks import GlobalErrorHooks
from vitalspy.adapters.platform.timeline import (
    SUPPORTED_ENTRY_TYPES,
    PerformanceTimeline,
)

__all__ = [
    "SUPPORTED_ENTRY_TYPES",
    "GlobalErrorHooks",
    "PerformanceTimeline",
    "ProcessEnvironment",
    "location_context",
    "reset_location",
    "set_location",
]
