"""Process-wide hooks for uncaught exceptions.

Python counterparts of a browser's global ``error`` and
``unhandledrejection`` events:

- ``sys.excepthook`` and ``threading.excepthook`` for uncaught exceptions
- the asyncio loop exception handler for task exceptions nobody retrieved

Every hook chains to the handler it replaced, so installing them never
changes what the host prints or how it exits.
"""

import asyncio
import logging
import sys
import threading
import traceback
from types import TracebackType
from typing import Any

from vitalspy.core.ports import ErrorCallback

logger = logging.getLogger(__name__)


def _location_context(exc: BaseException) -> dict[str, Any]:
    """Filename and line number of the innermost frame of a traceback."""
    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    if not frames:
        return {}
    last = frames[-1]
    return {"filename": last.filename, "lineno": last.lineno}


class GlobalErrorHooks:
    """Installs uncaught exception hooks at most once."""

    def __init__(self) -> None:
        self._installed = False
        self._callback: ErrorCallback | None = None

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self, callback: ErrorCallback) -> bool:
        """Install all hooks, reporting uncaught errors to ``callback``.

        The asyncio handler is only installed when called from a running
        event loop.

        Returns:
            True on first installation, False if already installed.
        """
        if self._installed:
            return False
        self._callback = callback
        self._install_excepthook()
        self._install_threading_hook()
        self._install_asyncio_handler()
        self._installed = True
        return True

    def _report(self, exc: BaseException, context: dict[str, Any]) -> None:
        if self._callback is None:
            return
        try:
            self._callback(exc, context)
        except Exception:
            logger.warning("Failed to record uncaught error", exc_info=True)

    def _install_excepthook(self) -> None:
        previous = sys.excepthook

        def excepthook(
            exc_type: type[BaseException],
            exc: BaseException,
            tb: TracebackType | None,
        ) -> None:
            self._report(exc, _location_context(exc))
            previous(exc_type, exc, tb)

        sys.excepthook = excepthook

    def _install_threading_hook(self) -> None:
        previous = threading.excepthook

        def thread_excepthook(args: threading.ExceptHookArgs) -> None:
            if args.exc_value is not None:
                context = _location_context(args.exc_value)
                if args.thread is not None:
                    context["thread"] = args.thread.name
                self._report(args.exc_value, context)
            previous(args)

        threading.excepthook = thread_excepthook

    def _install_asyncio_handler(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, asyncio error hook not installed")
            return
        previous = loop.get_exception_handler()

        def exception_handler(
            loop: asyncio.AbstractEventLoop, context: dict[str, Any]
        ) -> None:
            exc = context.get("exception")
            if exc is None:
                exc = RuntimeError(context.get("message", "Unhandled rejection"))
            self._report(exc, {"type": "unhandledrejection"})
            if previous is not None:
                previous(loop, context)
            else:
                loop.default_exception_handler(context)

        loop.set_exception_handler(exception_handler)
