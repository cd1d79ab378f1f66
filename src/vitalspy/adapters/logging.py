"""Python logging handler adapter for vitalspy.

This adapter bridges Python's standard library logging module to the
error collector, so exceptions an application already logs are tracked
without extra calls.
"""

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vitalspy.monitor import PerformanceMonitor

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# Default attributes to copy from LogRecord into the error context
_DEFAULT_INCLUDE_ATTRS = ["logger", "funcName", "lineno", "pathname"]

# Records from the pipeline itself are never fed back into it
_OWN_LOGGER_PREFIX = "vitalspy"


class TelemetryLogHandler(logging.Handler):
    """Logging handler that reports logged exceptions as tracked errors.

    Example:
        ```python
        from vitalspy import PerformanceMonitor, TelemetryLogHandler

        monitor = PerformanceMonitor()
        logging.getLogger().addHandler(TelemetryLogHandler(monitor))
        ```
    """

    def __init__(
        self,
        monitor: "PerformanceMonitor",
        level: int = logging.ERROR,
        include_attrs: list[str] | None = None,
        require_exc_info: bool = True,
    ) -> None:
        """Initialize the handler with the monitor that receives errors.

        Args:
            monitor: Monitor whose track_error() receives the records.
            level: Minimum level to report (default ERROR).
            include_attrs: LogRecord attributes copied into the error context.
                Defaults to ["logger", "funcName", "lineno", "pathname"].
            require_exc_info: Only report records that carry an exception.
        """
        super().__init__(level)
        self._monitor = monitor
        self._include_attrs = include_attrs or _DEFAULT_INCLUDE_ATTRS
        self._require_exc_info = require_exc_info

    def emit(self, record: logging.LogRecord) -> None:
        """Forward a log record to the monitor as an error.

        Args:
            record: The log record to emit.
        """
        if record.name.split(".")[0] == _OWN_LOGGER_PREFIX:
            return
        exc = record.exc_info[1] if record.exc_info else None
        if exc is None and self._require_exc_info:
            return

        # Map of attribute names to their values from LogRecord
        attr_mapping: dict[str, Any] = {
            "logger": record.name,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
            "pathname": record.pathname,
        }
        context: dict[str, Any] = {
            key: attr_mapping[key] for key in self._include_attrs if key in attr_mapping
        }
        context["level"] = record.levelname

        # Add any extra attributes passed via logging call
        for key, value in record.__dict__.items():
            if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(
                value, (str, int, float, bool)
            ):
                context[key] = value

        message = record.getMessage()
        if exc is not None:
            context["log_message"] = message
            self._monitor.track_error(exc, context)
        else:
            self._monitor.track_error(message, context)
