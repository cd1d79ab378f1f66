"""Web Vitals collector."""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from vitalspy.adapters.storage.snapshot_store import SnapshotStore
from vitalspy.core import metrics
from vitalspy.core.exceptions import UnsupportedEntryTypeError
from vitalspy.core.models import EventKind, MetricSample, PerformanceEntry, VitalName
from vitalspy.core.ports import PerformanceSourcePort

logger = logging.getLogger(__name__)

PAINT = "paint"
LARGEST_CONTENTFUL_PAINT = "largest-contentful-paint"
FIRST_INPUT = "first-input"
LAYOUT_SHIFT = "layout-shift"
NAVIGATION = "navigation"

VITAL_ENTRY_TYPES = (PAINT, LARGEST_CONTENTFUL_PAINT, FIRST_INPUT, LAYOUT_SHIFT, NAVIGATION)

Emit = Callable[[EventKind, Any], None]


class VitalsCollector:
    """Turns paint, LCP, first-input, layout-shift and navigation entries into vitals.

    Every recorded vital is passed to ``emit`` for immediate, sampled sending.

    Args:
        source: Performance entry source to subscribe to.
        store: Store that receives the samples.
        emit: Immediate emit path.
    """

    def __init__(
        self, source: PerformanceSourcePort, store: SnapshotStore, emit: Emit
    ) -> None:
        self._source = source
        self._store = store
        self._emit = emit

    def start(self) -> list[str]:
        """Subscribe to each vital entry type separately.

        Returns:
            The entry types that were subscribed. Unsupported types are
            logged and skipped.
        """
        subscribed = []
        for entry_type in VITAL_ENTRY_TYPES:
            try:
                self._source.observe(entry_type, self.handle)
            except UnsupportedEntryTypeError as exc:
                logger.warning("%s tracking not supported: %s", entry_type, exc)
                continue
            subscribed.append(entry_type)
        return subscribed

    def handle(self, entries: Sequence[PerformanceEntry]) -> None:
        """Process one batch of observed entries.

        Only the last largest-contentful-paint entry of a batch counts.
        """
        latest_lcp: PerformanceEntry | None = None
        for entry in entries:
            if entry.entry_type == LARGEST_CONTENTFUL_PAINT:
                latest_lcp = entry
                continue
            self._observe(entry)
        if latest_lcp is not None:
            self._observe(latest_lcp)

    def _observe(self, entry: PerformanceEntry) -> None:
        try:
            sample = self._record(entry)
        except Exception:
            logger.warning("Failed to record %s entry", entry.entry_type, exc_info=True)
            return
        if sample is not None:
            self._announce(sample)

    def _announce(self, sample: MetricSample) -> None:
        logger.debug("%s: %s (%s)", sample.name, sample.value, sample.rating)
        try:
            self._emit(EventKind.VITAL, sample)
        except Exception:
            logger.warning("Failed to emit %s", sample.name, exc_info=True)

    def _record(self, entry: PerformanceEntry) -> MetricSample | None:
        """Store the vital an entry carries and return it.

        Layout shifts return None; their CLS sample is announced by the store
        once the shift is applied.
        """
        sample: MetricSample | None = None
        if entry.entry_type == PAINT:
            if entry.name == "first-contentful-paint":
                sample = metrics.vital(VitalName.FCP, entry.start_time)
        elif entry.entry_type == LARGEST_CONTENTFUL_PAINT:
            sample = metrics.vital(
                VitalName.LCP, entry.start_time, element=entry.element or "unknown"
            )
        elif entry.entry_type == FIRST_INPUT:
            sample = metrics.vital(
                VitalName.FID, entry.processing_start - entry.start_time
            )
        elif entry.entry_type == LAYOUT_SHIFT:
            self._store.record_layout_shift(
                entry.value, entry.had_recent_input, on_applied=self._announce
            )
            return None
        elif entry.entry_type == NAVIGATION:
            sample = metrics.vital(VitalName.TTFB, entry.response_start)
        if sample is not None:
            self._store.record_vital(sample)
        return sample
