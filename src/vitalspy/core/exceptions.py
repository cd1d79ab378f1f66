"""Exceptions raised inside the telemetry pipeline.

None of these escape the public PerformanceMonitor entry points; they are
raised by low-level building blocks and handled by the collectors.
"""


class VitalspyError(Exception):
    """Base class for all vitalspy errors."""


class ConfigurationError(VitalspyError, ValueError):
    """Raised when monitor options are invalid."""


class UnsupportedEntryTypeError(VitalspyError):
    """Raised when the platform cannot observe a performance entry type."""

    def __init__(self, entry_type: str) -> None:
        super().__init__(f"entry type not supported: {entry_type}")
        self.entry_type = entry_type


class MissingMarkError(VitalspyError):
    """Raised when a measure references a mark that was never recorded."""

    def __init__(self, mark: str) -> None:
        super().__init__(f"no mark named {mark!r}")
        self.mark = mark
