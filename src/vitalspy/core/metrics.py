"""Helper functions for creating telemetry records."""

import time
import traceback
from typing import Any

from vitalspy.core.models import (
    ErrorRecord,
    MetricSample,
    NavigationRecord,
    NavigationTiming,
    PerformanceEntry,
    ResourceRecord,
)
from vitalspy.core.rating import classify


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


def vital(name: str, value: float, **extra: Any) -> MetricSample:
    """Create a classified Web Vitals sample.

    Args:
        name: Vital name (e.g., "LCP")
        value: Measured value
        **extra: Additional fields stored on the sample

    Returns:
        MetricSample with rating and current timestamp
    """
    return MetricSample(
        name=name,
        value=value,
        rating=classify(name, value),
        timestamp=now_ms(),
        extra=dict(extra),
    )


def custom(
    name: str,
    value: float,
    context: dict[str, Any] | None = None,
) -> MetricSample:
    """Create a custom metric sample.

    Args:
        name: Metric name (e.g., "timing-checkout")
        value: Numeric value
        context: Optional context stored as the sample's extra fields

    Returns:
        MetricSample with current timestamp
    """
    value = float(value)
    return MetricSample(
        name=name,
        value=value,
        rating=classify(name, value),
        timestamp=now_ms(),
        extra=dict(context or {}),
    )


def resource(entry: PerformanceEntry) -> ResourceRecord:
    """Create a resource record from a resource timing entry.

    A resource counts as cached when nothing crossed the network but a body
    was still decoded.
    """
    return ResourceRecord(
        name=entry.name,
        type=entry.initiator_type,
        duration_ms=entry.duration,
        size_bytes=entry.transfer_size or 0,
        cached=entry.transfer_size == 0 and entry.decoded_body_size > 0,
        timestamp=now_ms(),
    )


def error(
    err: object,
    context: dict[str, Any] | None = None,
    url: str = "",
    user_agent: str = "",
) -> ErrorRecord:
    """Create an error record from an exception or any other reported value.

    Args:
        err: An exception, a message string, or any object
        context: Caller supplied context
        url: Location the host was serving
        user_agent: Client identifier

    Returns:
        ErrorRecord with current timestamp
    """
    if isinstance(err, BaseException):
        message = str(err) or "Unknown error"
        stack = ""
        if err.__traceback__ is not None:
            stack = "".join(traceback.format_exception(err))
        kind = type(err).__name__
    else:
        message = str(err) if err is not None else "Unknown error"
        stack = ""
        kind = "Error"
    return ErrorRecord(
        message=message,
        stack=stack,
        timestamp=now_ms(),
        url=url,
        user_agent=user_agent,
        context=dict(context or {}),
        kind=kind,
    )


def navigation(timing: NavigationTiming) -> NavigationRecord:
    """Derive page-load phase durations from raw navigation timestamps."""
    return NavigationRecord(
        domain_lookup=timing.domain_lookup_end - timing.domain_lookup_start,
        connect=timing.connect_end - timing.connect_start,
        request=timing.response_start - timing.request_start,
        response=timing.response_end - timing.response_start,
        dom_processing=timing.dom_complete - timing.dom_loading,
        page_load=timing.load_event_end - timing.navigation_start,
        dom_ready=timing.dom_content_loaded_event_end - timing.navigation_start,
        type=timing.type,
        redirect_count=timing.redirect_count,
    )
