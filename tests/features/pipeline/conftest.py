"""BDD step definitions for the telemetry pipeline features."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

import pytest
from pytest_bdd import given, parsers, then, when
from tests.fakes import ENDPOINT, RecordingTransport

from vitalspy.adapters.platform.timeline import PerformanceTimeline
from vitalspy.core.models import BudgetReport, PerformanceEntry
from vitalspy.monitor import PerformanceMonitor


@dataclass
class PipelineScenarioContext:
    """State shared between the steps of one scenario."""

    monitor: PerformanceMonitor | None = None
    report: BudgetReport | None = None


@pytest.fixture
def ctx() -> PipelineScenarioContext:
    """Fresh scenario context for each test."""
    return PipelineScenarioContext()


# === Background Steps ===
@given("a monitor reporting to the collection endpoint")
def step_monitor_with_endpoint(
    ctx: PipelineScenarioContext, make_monitor: Callable[..., PerformanceMonitor]
) -> None:
    ctx.monitor = make_monitor(endpoint=ENDPOINT)
    ctx.monitor.initialize()


@given("a monitor without an endpoint")
def step_monitor_without_endpoint(
    ctx: PipelineScenarioContext, make_monitor: Callable[..., PerformanceMonitor]
) -> None:
    ctx.monitor = make_monitor()
    ctx.monitor.initialize()


# === Recording Steps ===
@given("the endpoint is unreachable")
def step_endpoint_unreachable(transport: RecordingTransport) -> None:
    transport.fail = True


@given(parsers.parse('the custom metric "{name}" was tracked with value {value:d}'))
def step_custom_metric(ctx: PipelineScenarioContext, name: str, value: int) -> None:
    ctx.monitor.track_custom_metric(name, value)


@given(parsers.parse('an error "{message}" was tracked'))
def step_error(ctx: PipelineScenarioContext, message: str) -> None:
    ctx.monitor.track_error(message)


@given(parsers.parse("the page reported an LCP of {value:d} ms"))
def step_lcp(timeline: PerformanceTimeline, value: int) -> None:
    timeline.record(
        PerformanceEntry("largest-contentful-paint", start_time=float(value))
    )


# === Actions ===
@when("the metrics are flushed")
def step_flush(ctx: PipelineScenarioContext) -> None:
    asyncio.run(ctx.monitor.flush_metrics())
    ctx.monitor.close()


@when("the budget is checked")
def step_check_budget(ctx: PipelineScenarioContext) -> None:
    ctx.report = ctx.monitor.check_performance_budget()


@when(parsers.parse("the budget is checked with an LCP budget of {limit:d}"))
def step_check_custom_budget(ctx: PipelineScenarioContext, limit: int) -> None:
    ctx.report = ctx.monitor.check_performance_budget({"LCP": limit})


# === Flush Assertions ===
@then(parsers.parse("the last snapshot holds {count:d} error"))
def then_snapshot_errors(transport: RecordingTransport, count: int) -> None:
    assert len(transport.snapshots[-1]["errors"]) == count


@then(parsers.parse('the last snapshot holds the custom metric "{name}"'))
def then_snapshot_custom(transport: RecordingTransport, name: str) -> None:
    assert name in transport.snapshots[-1]["custom"]


@then(parsers.parse("the last snapshot holds an LCP of {value:d} ms"))
def then_snapshot_lcp(transport: RecordingTransport, value: int) -> None:
    assert transport.snapshots[-1]["vitals"]["LCP"]["value"] == value


@then("no snapshot was delivered")
def then_no_snapshot(transport: RecordingTransport) -> None:
    assert transport.snapshots == []


@then(parsers.parse("the monitor holds {count:d} errors"))
def then_monitor_errors(ctx: PipelineScenarioContext, count: int) -> None:
    assert len(ctx.monitor.get_performance_data().errors) == count


@then(parsers.parse("the monitor still reports an LCP of {value:d} ms"))
def then_monitor_lcp(ctx: PipelineScenarioContext, value: int) -> None:
    assert ctx.monitor.get_performance_data().vitals["LCP"].value == value


# === Budget Assertions ===
@then("the budget check fails")
def then_budget_fails(ctx: PipelineScenarioContext) -> None:
    assert ctx.report is not None
    assert ctx.report.passed is False


@then("the budget check passes")
def then_budget_passes(ctx: PipelineScenarioContext) -> None:
    assert ctx.report is not None
    assert ctx.report.passed is True


@then(parsers.parse("the LCP violation is {amount:d}"))
def then_lcp_violation(ctx: PipelineScenarioContext, amount: int) -> None:
    [violation] = [v for v in ctx.report.violations if v.metric == "LCP"]
    assert violation.violation == amount
