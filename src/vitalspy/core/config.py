"""Monitor configuration."""

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from vitalspy.core.exceptions import ConfigurationError

# camelCase option names, as used by browser monitoring snippets
_ALIASES = {
    "enableVitals": "enable_vitals",
    "enableResourceTiming": "enable_resource_timing",
    "enableErrorTracking": "enable_error_tracking",
    "enableCustomMetrics": "enable_custom_metrics",
    "samplingRate": "sampling_rate",
    "batchSize": "batch_size",
    "flushInterval": "flush_interval_ms",
    "flushIntervalMs": "flush_interval_ms",
    "maxErrors": "max_errors",
    "maxResources": "max_resources",
    "transportTimeout": "transport_timeout_s",
}

_ENV_PREFIX = "VITALSPY_"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class MonitorConfig:
    """Settings for a PerformanceMonitor.

    Attributes:
        enable_vitals: Observe Web Vitals entries.
        enable_resource_timing: Observe resource timing entries.
        enable_error_tracking: Install global error hooks and record errors.
        enable_custom_metrics: Record custom metrics and manual timings.
        sampling_rate: Probability (0.0-1.0) that an immediate event is sent.
        endpoint: Collection URL; None disables all network emission.
        batch_size: Reserved, not used by the flush path.
        flush_interval_ms: Period of the snapshot flush; <= 0 disables it.
        max_errors: Cap on retained errors; None keeps all of them.
        max_resources: Cap on retained resource records; None keeps all.
        transport_timeout_s: Per-request network timeout in seconds.
    """

    enable_vitals: bool = True
    enable_resource_timing: bool = True
    enable_error_tracking: bool = True
    enable_custom_metrics: bool = True
    sampling_rate: float = 1.0
    endpoint: str | None = None
    batch_size: int = 10
    flush_interval_ms: int = 30000
    max_errors: int | None = None
    max_resources: int | None = None
    transport_timeout_s: float = 5.0

    def __post_init__(self) -> None:
        for name in ("batch_size", "flush_interval_ms"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        for name in ("max_errors", "max_resources"):
            cap = getattr(self, name)
            if cap is not None and (not isinstance(cap, int) or isinstance(cap, bool)):
                raise ConfigurationError(f"{name} must be an integer, got {cap!r}")
        if not 0.0 <= self.sampling_rate <= 1.0:
            raise ConfigurationError(
                f"sampling_rate must be between 0 and 1, got {self.sampling_rate}"
            )
        for name in ("max_errors", "max_resources"):
            cap = getattr(self, name)
            if cap is not None and cap <= 0:
                raise ConfigurationError(f"{name} must be positive, got {cap}")
        if self.transport_timeout_s <= 0:
            raise ConfigurationError("transport_timeout_s must be positive")

    def merged(
        self, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> "MonitorConfig":
        """Return a copy with the given options applied.

        Accepts both snake_case field names and the camelCase names of the
        browser API.

        Raises:
            ConfigurationError: On unknown option names or invalid values.
        """
        changes: dict[str, Any] = {}
        for key, value in {**(options or {}), **kwargs}.items():
            field_name = _ALIASES.get(key, key)
            if field_name not in _FIELD_NAMES:
                raise ConfigurationError(f"unknown option: {key}")
            changes[field_name] = value
        try:
            return dataclasses.replace(self, **changes)
        except TypeError as exc:
            raise ConfigurationError(f"invalid option value: {exc}") from exc

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "MonitorConfig":
        """Build a config from ``VITALSPY_*`` environment variables.

        Example: VITALSPY_ENDPOINT, VITALSPY_SAMPLING_RATE,
        VITALSPY_FLUSH_INTERVAL_MS, VITALSPY_ENABLE_VITALS.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field in dataclasses.fields(cls):
            raw = environ.get(_ENV_PREFIX + field.name.upper())
            if raw is None:
                continue
            values[field.name] = _parse_env_value(field.name, raw)
        return cls(**values)


_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(MonitorConfig))


def _parse_env_value(name: str, raw: str) -> Any:
    """Convert an environment string to the type of the named field."""
    try:
        if name.startswith("enable_"):
            return raw.strip().lower() in _TRUTHY
        if name == "endpoint":
            return raw or None
        if name in ("sampling_rate", "transport_timeout_s"):
            return float(raw)
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"invalid value for {name}: {raw!r}") from exc
