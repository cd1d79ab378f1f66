"""Snapshot store: the single mutable aggregate of collected telemetry.

Every mutation is queued and applied by a drain loop. A write issued while
a drain is in progress on the same thread is appended to the queue and
applied by that same loop, so no collection is ever iterated while a
nested call mutates it. The drain runs under a re-entrant lock so writes
from thread-level error hooks are serialized with the event loop's writes.
"""

import copy
import logging
import threading
from collections import deque
from collections.abc import Callable
from typing import TypeVar

from vitalspy.adapters.storage.in_memory import InMemoryRecordLog
from vitalspy.adapters.storage.ring_buffer import RingBufferRecordLog
from vitalspy.core import metrics
from vitalspy.core.models import (
    ErrorRecord,
    MetricSample,
    NavigationRecord,
    PerformanceSnapshot,
    ResourceRecord,
    VitalName,
)
from vitalspy.core.ports import RecordLogPort

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _new_log(max_size: int | None) -> RecordLogPort[T]:
    """Create an unbounded log, or a ring buffer when a cap is given."""
    if max_size is None:
        return InMemoryRecordLog()
    return RingBufferRecordLog(max_size)


class LayoutShiftAccumulator:
    """Running sum of layout shifts that were not caused by user input."""

    def __init__(self) -> None:
        self._total = 0.0
        self._count = 0

    @property
    def value(self) -> float:
        return self._total

    @property
    def count(self) -> int:
        return self._count

    def add(self, value: float, had_recent_input: bool = False) -> bool:
        """Fold one shift into the sum.

        Returns:
            True if the shift counted, False if it followed recent input.
        """
        if had_recent_input:
            return False
        self._total += value
        self._count += 1
        return True


class SnapshotStore:
    """Holds vitals, resources, errors, custom metrics and navigation.

    Args:
        max_errors: Cap on retained errors; None keeps all of them.
        max_resources: Cap on retained resource records; None keeps all.
    """

    def __init__(
        self, max_errors: int | None = None, max_resources: int | None = None
    ) -> None:
        self._max_errors = max_errors
        self._max_resources = max_resources
        self._vitals: dict[str, MetricSample] = {}
        self._cls = LayoutShiftAccumulator()
        self._errors: RecordLogPort[ErrorRecord] = _new_log(max_errors)
        self._resources: RecordLogPort[ResourceRecord] = _new_log(max_resources)
        self._custom: dict[str, list[MetricSample]] = {}
        self._navigation: NavigationRecord | None = None
        self._navigation_set = False
        self._pending: deque[Callable[[], None]] = deque()
        self._draining = False
        self._lock = threading.RLock()

    # === Queue ===

    def _submit(self, op: Callable[[], None]) -> None:
        self._pending.append(op)
        self._drain()

    def _drain(self) -> None:
        with self._lock:
            if self._draining:
                return
            self._draining = True
            try:
                while self._pending:
                    self._pending.popleft()()
            finally:
                self._draining = False

    # === Writes ===

    def record_vital(self, sample: MetricSample) -> None:
        """Store a vital, replacing any earlier sample of the same name.

        CLS samples are treated as layout shifts and accumulated.
        """
        if sample.name == VitalName.CLS:
            self.record_layout_shift(sample.value)
            return
        self._submit(lambda: self._vitals.__setitem__(sample.name, sample))

    def record_layout_shift(
        self,
        value: float,
        had_recent_input: bool = False,
        on_applied: Callable[[MetricSample], None] | None = None,
    ) -> MetricSample | None:
        """Accumulate a layout shift into CLS.

        Args:
            value: Layout shift score.
            had_recent_input: Shifts that follow user input are ignored.
            on_applied: Called with the CLS sample this shift produced, once
                        the shift has been applied.

        Returns:
            The CLS sample this shift produced. None if the shift followed
            user input, or if it was queued behind a drain already running
            on this thread; ``on_applied`` still fires in that case.
        """
        if had_recent_input:
            return None
        applied: list[MetricSample] = []

        def op() -> None:
            sample = self._apply_layout_shift(value)
            applied.append(sample)
            if on_applied is not None:
                on_applied(sample)

        self._submit(op)
        return applied[0] if applied else None

    def _apply_layout_shift(self, value: float) -> MetricSample:
        self._cls.add(value)
        sample = metrics.vital(VitalName.CLS, self._cls.value)
        self._vitals[VitalName.CLS] = sample
        return sample

    def record_resource(self, record: ResourceRecord) -> None:
        """Append a resource timing record."""
        self._submit(lambda: self._resources.append(record))

    def record_error(self, record: ErrorRecord) -> None:
        """Append an error record. Errors are never deduplicated."""
        self._submit(lambda: self._errors.append(record))

    def record_custom(self, name: str, sample: MetricSample) -> None:
        """Append a sample to the named custom metric list."""
        self._submit(lambda: self._custom.setdefault(name, []).append(sample))

    def set_navigation(self, record: NavigationRecord | None) -> bool:
        """Store the navigation record. Only the first call has any effect.

        Returns:
            True if the record was stored, False if one was already set.
        """
        with self._lock:
            if self._navigation_set:
                logger.debug("Navigation record already captured, ignoring update")
                return False
            self._navigation = record
            self._navigation_set = True
            return True

    def set_capacity(
        self, max_errors: int | None, max_resources: int | None
    ) -> None:
        """Change the retention caps, keeping the newest existing records."""

        def apply() -> None:
            if max_errors != self._max_errors:
                self._errors = self._refill(_new_log(max_errors), self._errors)
                self._max_errors = max_errors
            if max_resources != self._max_resources:
                self._resources = self._refill(_new_log(max_resources), self._resources)
                self._max_resources = max_resources

        self._submit(apply)

    @staticmethod
    def _refill(target: RecordLogPort[T], source: RecordLogPort[T]) -> RecordLogPort[T]:
        for item in source.items():
            target.append(item)
        return target

    # === Reads ===

    def vital(self, name: str) -> MetricSample | None:
        """Return the current sample for a vital, if any."""
        self._drain()
        with self._lock:
            return self._vitals.get(name)

    def read_snapshot(self) -> PerformanceSnapshot:
        """Return an independent, point-in-time copy of the store."""
        self._drain()
        with self._lock:
            return copy.deepcopy(
                PerformanceSnapshot(
                    vitals=dict(self._vitals),
                    resources=self._resources.items(),
                    errors=self._errors.items(),
                    navigation=self._navigation,
                    custom={k: list(v) for k, v in self._custom.items()},
                )
            )

    # === Flush support ===

    def take_flushable(self) -> PerformanceSnapshot:
        """Copy the store and empty errors, resources and custom in one step.

        Vitals and navigation are copied and kept. Records written after this
        call land in fresh buffers and belong to the next flush.
        """
        self._drain()
        with self._lock:
            snapshot = PerformanceSnapshot(
                vitals=copy.deepcopy(self._vitals),
                resources=self._resources.items(),
                errors=self._errors.items(),
                navigation=self._navigation,
                custom=self._custom,
            )
            self._resources.clear()
            self._errors.clear()
            self._custom = {}
            return snapshot

    def reset_flushable(self) -> None:
        """Empty errors, resources and custom; keep vitals and navigation."""

        def apply() -> None:
            self._resources.clear()
            self._errors.clear()
            self._custom = {}

        self._submit(apply)
