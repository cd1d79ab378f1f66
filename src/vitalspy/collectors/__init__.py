"""Collectors that feed the snapshot store."""

from vitalspy.collectors.errors import ErrorCollector
from vitalspy.collectors.resources import ResourceCollector
from vitalspy.collectors.timing import TimingCollector
from vitalspy.collectors.vitals import VitalsCollector

__all__ = [
    "ErrorCollector",
    "ResourceCollector",
    "TimingCollector",
    "VitalsCollector",
]
