"""Storage adapters implementing core ports."""

from vitalspy.adapters.storage.in_memory import InMemoryRecordLog
from vitalspy.adapters.storage.ring_buffer import RingBufferRecordLog
from vitalspy.adapters.storage.snapshot_store import (
    LayoutShiftAccumulator,
    SnapshotStore,
)

__all__ = [
    "InMemoryRecordLog",
    "LayoutShiftAccumulator",
    "RingBufferRecordLog",
    "SnapshotStore",
]
