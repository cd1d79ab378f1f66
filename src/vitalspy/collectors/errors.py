"""Error collector."""

import logging
from collections.abc import Callable
from typing import Any

from vitalspy.adapters.storage.snapshot_store import SnapshotStore
from vitalspy.core import metrics
from vitalspy.core.models import ErrorRecord, EventKind
from vitalspy.core.ports import EnvironmentPort

logger = logging.getLogger(__name__)

Emit = Callable[[EventKind, Any], None]


class ErrorCollector:
    """Builds ErrorRecords, stores them and emits them immediately.

    Errors are data here: capturing one never raises.
    """

    def __init__(
        self, store: SnapshotStore, environment: EnvironmentPort, emit: Emit
    ) -> None:
        self._store = store
        self._environment = environment
        self._emit = emit

    def capture(
        self, error: object, context: dict[str, Any] | None = None
    ) -> ErrorRecord | None:
        """Record an exception, message or any other reported value.

        Args:
            error: What went wrong.
            context: Extra fields stored with the record.

        Returns:
            The stored record, or None if it could not be built.
        """
        try:
            record = metrics.error(
                error,
                context,
                url=self._environment.location(),
                user_agent=self._environment.user_agent(),
            )
            self._store.record_error(record)
        except Exception:
            logger.warning("Failed to record error", exc_info=True)
            return None
        logger.debug("Tracked error: %s: %s", record.kind, record.message)
        self._emit(EventKind.ERROR, record)
        return record

    def capture_uncaught(self, error: BaseException, context: dict[str, Any]) -> None:
        """Callback for the global error hooks."""
        self.capture(error, context)
