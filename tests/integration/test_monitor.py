"""End-to-end tests for PerformanceMonitor."""

import asyncio
import sys
import time
from collections.abc import Callable
from types import TracebackType

import pytest
from tests.fakes import ENDPOINT, RecordingTransport, SlowTransport

import vitalspy
from vitalspy import monitor as monitor_module
from vitalspy.adapters.platform.timeline import PerformanceTimeline
from vitalspy.core.models import EventKind, PerformanceEntry, Rating
from vitalspy.monitor import PerformanceMonitor

pytestmark = pytest.mark.integration

MakeMonitor = Callable[..., PerformanceMonitor]


class TestInitialize:
    def test_second_initialize_is_a_no_op(
        self, make_monitor: MakeMonitor, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Hooks are installed once, so one uncaught error gives one record."""
        monkeypatch.setattr(sys, "excepthook", lambda t, e, tb: None)
        monitor = make_monitor()

        monitor.initialize()
        monitor.initialize(sampling_rate=0.5)

        exc = ValueError("uncaught")
        sys.excepthook(ValueError, exc, None)

        assert monitor.initialized is True
        assert monitor.config.sampling_rate == 1.0
        assert len(monitor.get_performance_data().errors) == 1

    def test_options_are_merged(self, make_monitor: MakeMonitor) -> None:
        monitor = make_monitor()

        monitor.initialize({"endpoint": ENDPOINT, "samplingRate": 0.3, "maxErrors": 5})

        assert monitor.config.endpoint == ENDPOINT
        assert monitor.config.sampling_rate == 0.3
        assert monitor.delivery is not None

    def test_invalid_options_keep_previous_config(
        self, make_monitor: MakeMonitor, caplog: pytest.LogCaptureFixture
    ) -> None:
        monitor = make_monitor()

        monitor.initialize(samplingRate=5)

        assert monitor.initialized is True
        assert monitor.config.sampling_rate == 1.0
        assert "Ignoring invalid monitoring options" in caplog.text

    def test_navigation_is_captured(self, make_monitor: MakeMonitor) -> None:
        monitor = make_monitor()

        monitor.initialize()

        navigation = monitor.get_performance_data().navigation
        assert navigation is not None
        assert navigation.page_load == 950.0

    def test_disabled_collectors(
        self, make_monitor: MakeMonitor, timeline: PerformanceTimeline
    ) -> None:
        monitor = make_monitor(
            enable_vitals=False, enable_error_tracking=False, enable_custom_metrics=False
        )
        monitor.initialize()

        timeline.record(PerformanceEntry("largest-contentful-paint", start_time=900.0))
        monitor.track_error(ValueError("ignored"))
        monitor.track_custom_metric("ignored", 1)

        data = monitor.get_performance_data()
        assert data.vitals == {}
        assert data.errors == []
        assert data.custom == {}

    def test_no_endpoint_means_no_delivery(self, make_monitor: MakeMonitor) -> None:
        monitor = make_monitor()
        monitor.initialize()

        assert monitor.delivery is None

    def test_non_integer_flush_interval_keeps_previous_config(
        self, make_monitor: MakeMonitor, caplog: pytest.LogCaptureFixture
    ) -> None:
        monitor = make_monitor()

        monitor.initialize(endpoint=ENDPOINT, flushIntervalMs="30000")

        assert monitor.config.endpoint is None
        assert monitor.config.flush_interval_ms == 0
        assert monitor.get_performance_data().navigation is not None
        assert "flush_interval_ms must be an integer" in caplog.text

    async def test_non_integer_flush_interval_inside_event_loop(
        self, make_monitor: MakeMonitor
    ) -> None:
        monitor = make_monitor()

        monitor.initialize(endpoint=ENDPOINT, flushIntervalMs="30000")
        await monitor.aclose()

        assert monitor.initialized is True
        assert monitor.delivery is None


class TestImmediateEmit:
    def test_vitals_are_sent_as_they_arrive(
        self,
        make_monitor: MakeMonitor,
        timeline: PerformanceTimeline,
        transport: RecordingTransport,
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT)
        monitor.initialize()

        timeline.record(PerformanceEntry("largest-contentful-paint", start_time=1900.0))
        monitor.close()

        [event] = transport.of_type("vital")
        assert event["data"]["name"] == "LCP"
        assert event["data"]["rating"] == "good"
        assert event["sessionId"] == monitor.session_id
        assert event["deviceInfo"]["userAgent"] == "test-agent/1.0"

    def test_errors_are_sent_as_they_arrive(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT)
        monitor.initialize()

        monitor.track_error("payment declined", {"order": "A-1"})
        monitor.close()

        [event] = transport.of_type("error")
        assert event["data"]["message"] == "payment declined"
        assert event["data"]["url"] == "https://shop.test/"

    def test_custom_metrics_are_only_flushed(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT)
        monitor.initialize()

        monitor.track_custom_metric("cart-size", 3)

        assert transport.payloads == []

    def test_sampling_rate_zero_sends_nothing(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT, sampling_rate=0.0)
        monitor.initialize()

        for i in range(1000):
            monitor.track_error(f"error {i}")

        assert transport.attempts == 0
        assert len(monitor.get_performance_data().errors) == 1000

    def test_sampling_rate_one_sends_everything(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT, sampling_rate=1.0)
        monitor.initialize()

        for i in range(200):
            monitor.track_error(f"error {i}")
        monitor.close()

        assert len(transport.of_type("error")) == 200

    def test_unreachable_endpoint_never_raises(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        transport.fail = True
        monitor = make_monitor(endpoint=ENDPOINT)
        monitor.initialize()

        monitor.track_error("payment declined")
        monitor.close()

        assert transport.attempts == 1
        assert len(monitor.get_performance_data().errors) == 1


class TestSlowEndpoint:
    @pytest.fixture
    def transport(self) -> SlowTransport:
        return SlowTransport(delay=0.5)

    def test_sync_emits_do_not_wait_for_the_network(
        self, make_monitor: MakeMonitor, transport: SlowTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT)
        monitor.initialize()

        started = time.perf_counter()
        for i in range(4):
            monitor.track_error(f"error {i}")
        elapsed = time.perf_counter() - started

        assert elapsed < 0.2
        monitor.close()
        assert len(transport.of_type("error")) == 4


class TestSyncHost:
    def test_periodic_flush_without_event_loop(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT, flush_interval_ms=20)
        monitor.initialize()
        monitor.track_custom_metric("cart-size", 3)

        deadline = time.monotonic() + 5.0
        while time.monotonic() < deadline:
            if any("cart-size" in s["custom"] for s in transport.snapshots):
                break
            time.sleep(0.01)
        monitor.close()

        assert any("cart-size" in s["custom"] for s in transport.snapshots)
        assert monitor.get_performance_data().custom == {}

    def test_close_stops_the_flush_timer(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT, flush_interval_ms=20)
        monitor.initialize()

        monitor.close()
        time.sleep(0.05)
        sent = len(transport.snapshots)
        time.sleep(0.1)

        assert len(transport.snapshots) == sent


class TestTiming:
    def test_mark_start_and_end(self, make_monitor: MakeMonitor) -> None:
        monitor = make_monitor()
        monitor.initialize()

        monitor.mark_start("search")
        duration = monitor.mark_end("search")

        [sample] = monitor.get_performance_data().custom["timing-search"]
        assert sample.value == duration
        assert duration >= 0

    def test_mark_end_without_start(self, make_monitor: MakeMonitor) -> None:
        monitor = make_monitor()

        assert monitor.mark_end("never") == 0.0
        assert "timing-never" not in monitor.get_performance_data().custom


class TestReading:
    def test_performance_data_is_enriched(self, make_monitor: MakeMonitor) -> None:
        monitor = make_monitor()

        data = monitor.get_performance_data()

        assert data.session_id == monitor.session_id
        assert data.session_id.startswith("session-")
        assert data.device_info.user_agent == "test-agent/1.0"
        assert data.timestamp > 0

    def test_budget_check(
        self, make_monitor: MakeMonitor, timeline: PerformanceTimeline
    ) -> None:
        monitor = make_monitor()
        monitor.initialize()
        timeline.record(PerformanceEntry("largest-contentful-paint", start_time=3000.0))

        report = monitor.check_performance_budget()

        assert report.passed is False
        assert report.violations[0].violation == 500
        assert monitor.check_performance_budget({"LCP": 3500}).passed is True

    def test_vitals_rating(
        self, make_monitor: MakeMonitor, timeline: PerformanceTimeline
    ) -> None:
        monitor = make_monitor()
        monitor.initialize()

        timeline.record(PerformanceEntry("navigation", response_start=2000.0))

        assert monitor.get_performance_data().vitals["TTFB"].rating == Rating.POOR


class TestFlush:
    async def test_flush_sends_snapshot_and_clears_buffers(
        self,
        make_monitor: MakeMonitor,
        timeline: PerformanceTimeline,
        transport: RecordingTransport,
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT)
        monitor.initialize()
        timeline.record(
            PerformanceEntry("largest-contentful-paint", start_time=1800.0),
            PerformanceEntry("resource", name="app.js", duration=80.0, transfer_size=900),
        )
        monitor.track_custom_metric("cart-size", 3)
        monitor.track_error("payment declined")

        await monitor.flush_metrics()
        await monitor.aclose()

        [snapshot] = transport.snapshots
        assert snapshot["vitals"]["LCP"]["value"] == 1800.0
        assert [r["name"] for r in snapshot["resources"]] == ["app.js"]
        assert [e["message"] for e in snapshot["errors"]] == ["payment declined"]
        assert snapshot["custom"]["cart-size"][0]["value"] == 3.0
        assert snapshot["navigation"]["pageLoad"] == 950.0
        assert snapshot["sessionId"] == monitor.session_id

        data = monitor.get_performance_data()
        assert data.errors == []
        assert data.resources == []
        assert data.custom == {}
        assert data.vitals["LCP"].value == 1800.0
        assert data.navigation is not None

    async def test_failed_flush_still_clears_buffers(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT)
        monitor.initialize()
        monitor.track_custom_metric("cart-size", 3)
        transport.fail = True

        await monitor.flush_metrics()

        assert monitor.get_performance_data().custom == {}
        assert transport.attempts == 1

    async def test_flush_without_endpoint_does_nothing(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor()
        monitor.initialize()
        monitor.track_custom_metric("cart-size", 3)

        await monitor.flush_metrics()

        assert transport.attempts == 0
        assert len(monitor.get_performance_data().custom["cart-size"]) == 1

    async def test_flush_timer(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT, flush_interval_ms=10)
        monitor.initialize()
        monitor.track_custom_metric("cart-size", 3)

        await asyncio.sleep(0.1)
        await monitor.aclose()

        assert transport.snapshots
        assert transport.snapshots[0]["custom"]["cart-size"][0]["value"] == 3.0

    async def test_emits_inside_event_loop_do_not_block(
        self, make_monitor: MakeMonitor, transport: RecordingTransport
    ) -> None:
        monitor = make_monitor(endpoint=ENDPOINT)
        monitor.initialize()

        monitor.track_error("payment declined")

        assert transport.payloads == []
        await monitor.aclose()
        assert len(transport.of_type("error")) == 1


class TestUncaughtErrors:
    def test_uncaught_error_is_recorded_and_emitted(
        self,
        make_monitor: MakeMonitor,
        transport: RecordingTransport,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        chained: list[BaseException] = []

        def original(
            exc_type: type[BaseException], exc: BaseException, tb: TracebackType | None
        ) -> None:
            chained.append(exc)

        monkeypatch.setattr(sys, "excepthook", original)
        monitor = make_monitor(endpoint=ENDPOINT)
        monitor.initialize()

        exc = RuntimeError("crash")
        sys.excepthook(RuntimeError, exc, None)
        monitor.close()

        [record] = monitor.get_performance_data().errors
        assert record.kind == "RuntimeError"
        assert chained == [exc]
        assert len(transport.of_type(EventKind.ERROR)) == 1


class TestModuleFacade:
    @pytest.fixture(autouse=True)
    def fresh_default_monitor(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(monitor_module, "_default_monitor", None)

    def test_default_monitor_is_shared(self) -> None:
        assert vitalspy.get_monitor() is vitalspy.get_monitor()

    def test_functions_use_default_monitor(self) -> None:
        vitalspy.initialize(enableVitals=False, enableResourceTiming=False)
        vitalspy.track_custom_metric("cart-size", 2, {"user": "u1"})
        vitalspy.track_error("payment declined")
        vitalspy.mark_start("render")
        vitalspy.mark_end("render")

        data = vitalspy.get_performance_data()
        assert data.custom["cart-size"][0].extra == {"user": "u1"}
        assert "timing-render" in data.custom
        assert data.errors[0].message == "payment declined"
        assert vitalspy.check_performance_budget().passed is True

    async def test_flush_without_endpoint(self) -> None:
        await vitalspy.flush_metrics()
