"""Payload encoders."""

from vitalspy.core.encoding.payload import (
    encode_budget_report,
    encode_event,
    encode_json,
    encode_snapshot,
)

__all__ = [
    "encode_budget_report",
    "encode_event",
    "encode_json",
    "encode_snapshot",
]
