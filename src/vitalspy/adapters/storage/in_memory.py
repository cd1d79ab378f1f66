"""In-memory record log adapter."""

from typing import Generic, TypeVar

T = TypeVar("T")


class InMemoryRecordLog(Generic[T]):
    """Unbounded in-memory implementation of RecordLogPort.

    Stores records in a list. Growth is limited only by process memory,
    which is acceptable for short-lived sessions that flush regularly.
    """

    def __init__(self) -> None:
        self._records: list[T] = []

    def append(self, item: T) -> None:
        """Append a record to the log."""
        self._records.append(item)

    def items(self) -> list[T]:
        """Return a copy of all records, oldest first."""
        return list(self._records)

    def clear(self) -> None:
        """Remove all records."""
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
