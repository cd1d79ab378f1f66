"""Shared test fixtures for all test modules."""

import random
import sys
import threading
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from tests.fakes import NAVIGATION_TIMING, RecordingTransport

from vitalspy.adapters.platform.environment import ProcessEnvironment
from vitalspy.adapters.platform.hooks import GlobalErrorHooks
from vitalspy.adapters.platform.timeline import PerformanceTimeline
from vitalspy.adapters.transport.background import BackgroundLoop
from vitalspy.core.config import MonitorConfig
from vitalspy.monitor import PerformanceMonitor


@pytest.fixture(autouse=True)
def isolate_global_hooks(monkeypatch: pytest.MonkeyPatch) -> None:
    """Restore process-wide exception hooks after every test."""
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)


@pytest.fixture
def transport() -> RecordingTransport:
    """Transport that records payloads instead of sending them."""
    return RecordingTransport()


@pytest.fixture
def background() -> Iterator[BackgroundLoop]:
    """Private background loop, stopped after the test."""
    loop = BackgroundLoop(name="vitalspy-test")
    yield loop
    loop.stop()


@pytest.fixture
def timeline() -> PerformanceTimeline:
    """Timeline with navigation timing available."""
    return PerformanceTimeline(navigation_timing=NAVIGATION_TIMING)


@pytest.fixture
def environment() -> ProcessEnvironment:
    """Environment with a fixed user agent and location."""
    return ProcessEnvironment(user_agent="test-agent/1.0", location="https://shop.test/")


@pytest.fixture
def make_monitor(
    timeline: PerformanceTimeline,
    environment: ProcessEnvironment,
    transport: RecordingTransport,
    background: BackgroundLoop,
) -> Callable[..., PerformanceMonitor]:
    """Factory for monitors wired to the shared test doubles.

    The periodic flush is off unless a test asks for it.
    """

    def factory(**options: Any) -> PerformanceMonitor:
        config = MonitorConfig(**{"flush_interval_ms": 0, **options})
        return PerformanceMonitor(
            config,
            timeline=timeline,
            environment=environment,
            transport=transport,
            hooks=GlobalErrorHooks(),
            rng=random.Random(1234),
            background=background,
        )

    return factory
