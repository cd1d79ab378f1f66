"""Session identifiers for outbound telemetry."""

import time
import uuid


def new_session_id() -> str:
    """Generate a session id of the form ``session-<ms>-<random>``."""
    return f"session-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"
