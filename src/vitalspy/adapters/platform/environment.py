"""Process environment: device, memory and location info."""

import logging
import os
import platform
import socket
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

import psutil

from vitalspy.core.models import DeviceInfo, MemoryUsage

logger = logging.getLogger(__name__)

_current_location: ContextVar[str | None] = ContextVar("current_location", default=None)


def set_location(url: str) -> Token[str | None]:
    """Set the location reported with errors in the current context."""
    return _current_location.set(url)


def reset_location(token: Token[str | None]) -> None:
    """Restore the location that was active before set_location()."""
    _current_location.reset(token)


@contextmanager
def location_context(url: str) -> Iterator[None]:
    """Report ``url`` as the location for the duration of the block."""
    token = set_location(url)
    try:
        yield
    finally:
        reset_location(token)


def _default_user_agent() -> str:
    from vitalspy import __version__

    return (
        f"vitalspy/{__version__} "
        f"({platform.python_implementation()} {platform.python_version()}; "
        f"{platform.system()})"
    )


class ProcessEnvironment:
    """EnvironmentPort implementation backed by the running process.

    Args:
        user_agent: Client identifier; defaults to a vitalspy/Python string.
        location: Fallback location when no request context is active.
        connection_type: Effective connection type reported by the host.
        downlink: Downlink estimate in Mbit/s.
        rtt: Round-trip estimate in milliseconds.
        save_data: Whether the client asked for reduced data usage.
    """

    def __init__(
        self,
        user_agent: str | None = None,
        location: str = "",
        connection_type: str = "unknown",
        downlink: float = 0.0,
        rtt: float = 0.0,
        save_data: bool = False,
    ) -> None:
        self._user_agent = user_agent or _default_user_agent()
        self._location = location
        self._connection_type = connection_type
        self._downlink = downlink
        self._rtt = rtt
        self._save_data = save_data

    def user_agent(self) -> str:
        return self._user_agent

    def location(self) -> str:
        return _current_location.get() or self._location

    def device_info(self) -> DeviceInfo:
        return DeviceInfo(
            user_agent=self._user_agent,
            platform=platform.platform(),
            python_version=platform.python_version(),
            hostname=socket.gethostname(),
            hardware_concurrency=os.cpu_count() or 1,
            connection_type=self._connection_type,
            downlink=self._downlink,
            rtt=self._rtt,
            save_data=self._save_data,
        )

    def memory_usage(self) -> MemoryUsage | None:
        """Resident and virtual size of this process against system memory."""
        try:
            info = psutil.Process().memory_info()
            limit = psutil.virtual_memory().total
        except psutil.Error as exc:
            logger.warning("Memory usage unavailable: %s", exc)
            return None
        return MemoryUsage(
            used=info.rss,
            total=info.vms,
            limit=limit,
            usage=(info.rss / limit) * 100 if limit else 0.0,
        )
