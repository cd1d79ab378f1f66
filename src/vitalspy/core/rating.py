"""Quality rating for Web Vitals measurements."""

from typing import NamedTuple

from vitalspy.core.models import Rating, VitalName


class Threshold(NamedTuple):
    """Rating boundaries: good if value <= good, poor if value > poor."""

    good: float
    poor: float


THRESHOLDS: dict[VitalName, Threshold] = {
    VitalName.FCP: Threshold(good=1800, poor=3000),
    VitalName.LCP: Threshold(good=2500, poor=4000),
    VitalName.FID: Threshold(good=100, poor=250),
    VitalName.CLS: Threshold(good=0.1, poor=0.25),
    VitalName.TTFB: Threshold(good=800, poor=1800),
}


def classify(name: str, value: float) -> Rating:
    """Rate a metric value against its fixed thresholds.

    Args:
        name: Metric name, short ("LCP") or long ("largest-contentful-paint").
        value: Measured value.

    Returns:
        Rating for the value; Rating.UNKNOWN if the metric has no thresholds
        or the value is not comparable.
    """
    vital = VitalName.resolve(name)
    if vital is None:
        return Rating.UNKNOWN
    threshold = THRESHOLDS[vital]
    try:
        if value <= threshold.good:
            return Rating.GOOD
        if value <= threshold.poor:
            return Rating.NEEDS_IMPROVEMENT
    except TypeError:
        return Rating.UNKNOWN
    return Rating.POOR
