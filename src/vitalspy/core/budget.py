"""Performance budget evaluation."""

import logging
import math
from collections.abc import Mapping

from vitalspy.core.models import BudgetReport, BudgetViolation, PerformanceSnapshot

logger = logging.getLogger(__name__)

RESOURCE_COUNT = "resourceCount"
TOTAL_RESOURCE_SIZE = "totalResourceSize"

DEFAULT_BUDGETS: dict[str, float] = {
    "LCP": 2500,
    "FID": 100,
    "CLS": 0.1,
    RESOURCE_COUNT: 100,
    TOTAL_RESOURCE_SIZE: 2 * 1024 * 1024,
}


def _merge_budgets(budgets: Mapping[str, float] | None) -> dict[str, float]:
    """Merge caller budgets over the defaults, skipping non-numeric values."""
    active = dict(DEFAULT_BUDGETS)
    for metric, limit in (budgets or {}).items():
        if isinstance(limit, bool) or not isinstance(limit, int | float):
            logger.warning("Ignoring non-numeric budget for %s: %r", metric, limit)
            continue
        if math.isnan(limit):
            logger.warning("Ignoring NaN budget for %s", metric)
            continue
        active[metric] = limit
    return active


def evaluate_budget(
    snapshot: PerformanceSnapshot,
    budgets: Mapping[str, float] | None = None,
) -> BudgetReport:
    """Compare a snapshot against performance budgets.

    Vitals are checked only when a budget exists for their name. Resource
    count and total transferred bytes are always checked.

    Args:
        snapshot: Snapshot to evaluate. It is not modified.
        budgets: Per-metric ceilings merged over DEFAULT_BUDGETS.

    Returns:
        BudgetReport with one violation per exceeded budget.
    """
    active = _merge_budgets(budgets)
    violations: list[BudgetViolation] = []

    for metric, sample in snapshot.vitals.items():
        limit = active.get(metric)
        if limit is not None and sample.value > limit:
            violations.append(
                BudgetViolation(
                    type="vital",
                    metric=metric,
                    actual=sample.value,
                    budget=limit,
                    violation=sample.value - limit,
                )
            )

    resource_count = len(snapshot.resources)
    total_size = sum(r.size_bytes for r in snapshot.resources)

    for metric, actual in ((RESOURCE_COUNT, resource_count), (TOTAL_RESOURCE_SIZE, total_size)):
        limit = active[metric]
        if actual > limit:
            violations.append(
                BudgetViolation(
                    type="resource",
                    metric=metric,
                    actual=actual,
                    budget=limit,
                    violation=actual - limit,
                )
            )

    return BudgetReport(
        passed=not violations,
        violations=violations,
        summary={
            "vitals": dict(snapshot.vitals),
            RESOURCE_COUNT: resource_count,
            TOTAL_RESOURCE_SIZE: total_size,
        },
    )
