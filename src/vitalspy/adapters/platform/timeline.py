"""In-process performance timeline.

Plays the role of the browser's PerformanceObserver and User Timing APIs
for a Python host: the host records PerformanceEntry objects, and the
timeline dispatches them to observers subscribed to their entry type.
"""

import logging
import time
from collections.abc import Callable, Iterable, Sequence

from vitalspy.core.exceptions import MissingMarkError, UnsupportedEntryTypeError
from vitalspy.core.models import NavigationTiming, PerformanceEntry
from vitalspy.core.ports import ObserverCallback

logger = logging.getLogger(__name__)

SUPPORTED_ENTRY_TYPES = frozenset(
    {
        "navigation",
        "paint",
        "largest-contentful-paint",
        "first-input",
        "layout-shift",
        "resource",
        "mark",
        "measure",
    }
)


class PerformanceTimeline:
    """Entry source and monotonic mark/measure clock.

    Args:
        supported_entry_types: Entry types this platform can observe.
            Defaults to SUPPORTED_ENTRY_TYPES.
        navigation_timing: Raw page-load timestamps, if the host has them.
        clock: Monotonic clock returning seconds.
    """

    def __init__(
        self,
        supported_entry_types: Iterable[str] | None = None,
        navigation_timing: NavigationTiming | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._supported = frozenset(
            SUPPORTED_ENTRY_TYPES
            if supported_entry_types is None
            else supported_entry_types
        )
        self._navigation_timing = navigation_timing
        self._clock = clock
        self._origin = clock()
        self._observers: dict[str, list[ObserverCallback]] = {}
        self._marks: dict[str, float] = {}

    @property
    def supported_entry_types(self) -> frozenset[str]:
        return self._supported

    def now(self) -> float:
        """Milliseconds since the timeline was created."""
        return (self._clock() - self._origin) * 1000

    def observe(self, entry_type: str, callback: ObserverCallback) -> None:
        """Subscribe a callback to entries of one type.

        Raises:
            UnsupportedEntryTypeError: If the type is not supported.
        """
        if entry_type not in self._supported:
            raise UnsupportedEntryTypeError(entry_type)
        self._observers.setdefault(entry_type, []).append(callback)

    def record(self, *entries: PerformanceEntry) -> None:
        """Deliver entries to observers, one batch per entry type."""
        batches: dict[str, list[PerformanceEntry]] = {}
        for entry in entries:
            batches.setdefault(entry.entry_type, []).append(entry)
        for entry_type, batch in batches.items():
            # Copy so an observer subscribing during dispatch is not called now
            for callback in list(self._observers.get(entry_type, ())):
                self._dispatch(callback, batch)

    def _dispatch(
        self, callback: ObserverCallback, batch: Sequence[PerformanceEntry]
    ) -> None:
        try:
            callback(batch)
        except Exception:
            logger.warning("Performance observer failed", exc_info=True)

    def mark(self, name: str) -> float:
        """Record a named mark at the current time."""
        at = self.now()
        self._marks[name] = at
        return at

    def measure(self, name: str, start_mark: str, end_mark: str | None = None) -> float:
        """Return milliseconds between two marks.

        Args:
            name: Measure name, used for diagnostics.
            start_mark: Mark the measure starts at.
            end_mark: Mark the measure ends at; defaults to now.

        Raises:
            MissingMarkError: If either mark was never recorded.
        """
        if start_mark not in self._marks:
            raise MissingMarkError(start_mark)
        if end_mark is None:
            end = self.now()
        elif end_mark in self._marks:
            end = self._marks[end_mark]
        else:
            raise MissingMarkError(end_mark)
        duration = end - self._marks[start_mark]
        logger.debug("Measured %s: %.3fms", name, duration)
        return duration

    def navigation_timing(self) -> NavigationTiming | None:
        return self._navigation_timing
