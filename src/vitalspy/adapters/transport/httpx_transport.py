"""HTTP transport for the collection endpoint, built on httpx."""

from typing import Any

import httpx

from vitalspy.core.encoding.payload import encode_json

DEFAULT_TIMEOUT_S = 5.0


class HttpxTransport:
    """TransportPort implementation that POSTs JSON with httpx.

    The response body and status are ignored; only network-level failures
    raise.

    Args:
        endpoint: Collection URL.
        timeout: Per-request timeout in seconds.
        client: Optional shared AsyncClient. When omitted, a short-lived
                client is opened for each send so the transport is not tied
                to one event loop.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = client

    async def send(self, payload: dict[str, Any]) -> None:
        """POST one payload to the endpoint."""
        body = encode_json(payload)
        headers = {"content-type": "application/json"}
        if self._client is not None:
            await self._client.post(
                self.endpoint, content=body, headers=headers, timeout=self.timeout
            )
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            await client.post(self.endpoint, content=body, headers=headers)
