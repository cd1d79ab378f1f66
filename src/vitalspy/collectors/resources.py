"""Resource timing collector."""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from vitalspy.adapters.storage.snapshot_store import SnapshotStore
from vitalspy.core import metrics
from vitalspy.core.exceptions import UnsupportedEntryTypeError
from vitalspy.core.models import PerformanceEntry
from vitalspy.core.ports import PerformanceSourcePort

logger = logging.getLogger(__name__)

RESOURCE = "resource"
SLOW_RESOURCE_MS = 1000
SLOW_RESOURCE_METRIC = "slow-resource"

TrackCustom = Callable[[str, float, dict[str, Any] | None], None]


class ResourceCollector:
    """Records a ResourceRecord per fetched resource.

    Resources slower than SLOW_RESOURCE_MS also produce a ``slow-resource``
    custom metric.
    """

    def __init__(
        self,
        source: PerformanceSourcePort,
        store: SnapshotStore,
        track_custom: TrackCustom,
    ) -> None:
        self._source = source
        self._store = store
        self._track_custom = track_custom

    def start(self) -> bool:
        """Subscribe to resource entries. Returns False if unsupported."""
        try:
            self._source.observe(RESOURCE, self.handle)
        except UnsupportedEntryTypeError as exc:
            logger.warning("Resource timing not supported: %s", exc)
            return False
        return True

    def handle(self, entries: Sequence[PerformanceEntry]) -> None:
        for entry in entries:
            try:
                self._store.record_resource(metrics.resource(entry))
            except Exception:
                logger.warning("Failed to record resource %s", entry.name, exc_info=True)
                continue
            if entry.duration > SLOW_RESOURCE_MS:
                self._track_custom(
                    SLOW_RESOURCE_METRIC,
                    entry.duration,
                    {
                        "url": entry.name,
                        "duration": entry.duration,
                        "type": entry.initiator_type,
                    },
                )
