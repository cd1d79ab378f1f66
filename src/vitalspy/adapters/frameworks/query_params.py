"""Query parameter parsing for framework adapters."""

import math


def _parse_budget_params(params: dict[str, list[str]]) -> dict[str, float]:
    """Parse budget overrides from query parameters.

    Every parameter is read as ``<metric>=<ceiling>``, for example
    ``?LCP=2000&resourceCount=50``.

    Args:
        params: Parsed query string parameters (as returned by urllib.parse.parse_qs).

    Returns:
        Mapping of metric name to ceiling. Values that are not numbers, or
        are negative, NaN or infinite, are dropped.
    """
    budgets: dict[str, float] = {}
    for metric, values in params.items():
        if not values:
            continue
        try:
            value = float(values[0])
        except ValueError:
            continue
        if value < 0 or math.isnan(value) or math.isinf(value):
            continue
        budgets[metric] = value
    return budgets
