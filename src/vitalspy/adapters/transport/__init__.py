"""Transport adapters and delivery policies."""

from vitalspy.adapters.transport.background import BackgroundLoop
from vitalspy.adapters.transport.delivery import BestEffortDelivery
from vitalspy.adapters.transport.httpx_transport import HttpxTransport

__all__ = ["BackgroundLoop", "BestEffortDelivery", "HttpxTransport"]
