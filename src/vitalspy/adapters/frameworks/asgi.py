"""ASGI adapter for performance telemetry.

Provides a middleware that times every HTTP request and tracks unhandled
exceptions, and a framework-agnostic ASGI application that serves the
current snapshot and budget verdict. Works with any ASGI server (uvicorn,
hypercorn, daphne) without requiring a web framework.
"""

import fnmatch
import logging
import time
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs

from vitalspy.adapters.frameworks.query_params import _parse_budget_params
from vitalspy.adapters.platform.environment import reset_location, set_location
from vitalspy.core.encoding.payload import (
    encode_budget_report,
    encode_json,
    encode_snapshot,
)

if TYPE_CHECKING:
    from vitalspy.monitor import PerformanceMonitor

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

DEFAULT_REQUEST_METRIC = "http-request"


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Args:
        scope: ASGI scope dictionary containing request metadata.

    Returns:
        Dictionary mapping parameter names to lists of values.
        Returns empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


def _request_url(scope: Scope) -> str:
    """Rebuild the request URL from an ASGI scope."""
    scheme = scope.get("scheme", "http")
    server = scope.get("server")
    host = ""
    for name, value in scope.get("headers", []):
        if name.lower() == b"host":
            host = value.decode("latin-1")
            break
    if not host and server:
        host = f"{server[0]}:{server[1]}"
    query = scope.get("query_string", b"").decode(errors="replace")
    url = f"{scheme}://{host}{scope.get('path', '')}"
    return f"{url}?{query}" if query else url


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body as string (will be encoded to bytes).
    """
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _handle_endpoint(
    send: Send,
    endpoint_func: Callable[[], dict[str, Any]],
    log_message: str,
) -> None:
    """Build a JSON body with error handling and send the response.

    Args:
        send: ASGI send callable for writing response.
        endpoint_func: Function that returns the response payload.
        log_message: Message to log on error.
    """
    try:
        body = encode_json(endpoint_func())
        await _send_response(send, 200, "application/json", body)
    except Exception:
        logger.exception(log_message)
        error_body = encode_json({"error": "Internal Server Error"})
        await _send_response(send, 500, "application/json", error_body)


class ASGIPerformanceMiddleware:
    """ASGI middleware that reports request timings and unhandled errors.

    Each HTTP request is recorded as a custom metric (milliseconds) with
    method, path and status in its context. Exceptions raised by the wrapped
    app are tracked as errors and then re-raised. While a request is being
    handled its URL is the location reported with errors.
    """

    def __init__(
        self,
        app: ASGIApp,
        monitor: "PerformanceMonitor",
        exclude_paths: list[str] | None = None,
        metric_name: str = DEFAULT_REQUEST_METRIC,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application to wrap.
            monitor: Monitor that receives metrics and errors.
            exclude_paths: Paths to leave untracked. Supports exact matches
                          and wildcard patterns (e.g., "/internal/*").
            metric_name: Custom metric name for request timings.
        """
        self.app = app
        self.monitor = monitor
        self.exclude_paths = exclude_paths or []
        self.metric_name = metric_name

    def _path_excluded(self, path: str) -> bool:
        """Check if path matches any pattern in exclude_paths."""
        return any(fnmatch.fnmatch(path, pattern) for pattern in self.exclude_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI callable interface that processes requests through the wrapped app."""
        if scope["type"] != "http" or self._path_excluded(scope["path"]):
            await self.app(scope, receive, send)
            return

        captured: dict[str, Any] = {"status": None}

        async def wrapped_send(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                captured["status"] = message["status"]
            await send(message)

        token = set_location(_request_url(scope))
        start_time = time.perf_counter()
        try:
            await self.app(scope, receive, wrapped_send)
        except Exception as exc:
            captured["status"] = 500
            self.monitor.track_error(
                exc, {"method": scope["method"], "path": scope["path"]}
            )
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.monitor.track_custom_metric(
                self.metric_name,
                duration_ms,
                {
                    "method": scope["method"],
                    "path": scope["path"],
                    "status": captured["status"] or 0,
                },
            )
            reset_location(token)


def create_asgi_app(monitor: "PerformanceMonitor") -> ASGIApp:
    """Create an ASGI app with /performance and /performance/budget endpoints.

    Args:
        monitor: Monitor whose data is served.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        path = scope["path"]

        if path == "/performance":
            await _handle_endpoint(
                send,
                lambda: encode_snapshot(monitor.get_performance_data()),
                "Error encoding performance endpoint",
            )
        elif path == "/performance/budget":
            budgets = _parse_budget_params(_parse_query_params(scope))
            await _handle_endpoint(
                send,
                lambda: encode_budget_report(monitor.check_performance_budget(budgets)),
                "Error encoding budget endpoint",
            )
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
