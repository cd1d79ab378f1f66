"""Framework adapters."""

from vitalspy.adapters.frameworks.asgi import (
    ASGIPerformanceMiddleware,
    create_asgi_app,
)

__all__ = ["ASGIPerformanceMiddleware", "create_asgi_app"]
