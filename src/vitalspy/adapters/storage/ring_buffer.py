"""Ring buffer record log adapter.

Provides bounded in-memory storage that automatically evicts oldest
records when the buffer is full. Useful for long-running hosts that
need predictable memory usage between flushes.
"""

from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


class RingBufferRecordLog(Generic[T]):
    """Ring buffer implementation of RecordLogPort.

    Stores records in a fixed-size circular buffer. When the buffer is
    full, the oldest record is evicted to make room for the new one.

    Args:
        max_size: Maximum number of records to keep.
    """

    def __init__(self, max_size: int) -> None:
        self._buffer: deque[T] = deque(maxlen=max_size)
        self._evicted = 0

    @property
    def max_size(self) -> int:
        """Capacity of the buffer."""
        return self._buffer.maxlen or 0

    @property
    def evicted(self) -> int:
        """Number of records dropped to make room since creation."""
        return self._evicted

    def append(self, item: T) -> None:
        """Append a record, evicting the oldest one if full."""
        if len(self._buffer) == self._buffer.maxlen:
            self._evicted += 1
        self._buffer.append(item)

    def items(self) -> list[T]:
        """Return a copy of all records, oldest first."""
        return list(self._buffer)

    def clear(self) -> None:
        """Remove all records."""
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)
