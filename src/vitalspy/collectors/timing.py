"""Manual timing API: named start/end marks."""

import logging
from collections.abc import Callable
from typing import Any

from vitalspy.core.exceptions import VitalspyError
from vitalspy.core.ports import PerformanceSourcePort

logger = logging.getLogger(__name__)

TrackCustom = Callable[[str, float, dict[str, Any] | None], None]


class TimingCollector:
    """Measures ad-hoc spans and records them as ``timing-<name>`` metrics.

    Args:
        source: Mark/measure clock; None when the platform has none.
        track_custom: Custom metric entry point.
    """

    def __init__(
        self, source: PerformanceSourcePort | None, track_custom: TrackCustom
    ) -> None:
        self._source = source
        self._track_custom = track_custom

    def mark_start(self, name: str) -> None:
        if self._source is None:
            return
        try:
            self._source.mark(f"{name}-start")
        except VitalspyError as exc:
            logger.warning("Failed to mark %s: %s", name, exc)

    def mark_end(self, name: str) -> float:
        """Close the span opened by mark_start(name).

        Returns:
            Elapsed milliseconds, or 0.0 if there is no clock or no start mark.
        """
        if self._source is None:
            return 0.0
        end_mark = f"{name}-end"
        try:
            self._source.mark(end_mark)
            duration = self._source.measure(name, f"{name}-start", end_mark)
        except VitalspyError as exc:
            logger.warning("Failed to measure %s: %s", name, exc)
            return 0.0
        self._track_custom(f"timing-{name}", duration, None)
        return duration
