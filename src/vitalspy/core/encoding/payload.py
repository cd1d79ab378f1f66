"""JSON payload encoders for outbound telemetry.

Keys use the camelCase wire names expected by collection endpoints.
"""

import dataclasses
import json
from typing import Any, assert_never

from vitalspy.core.models import (
    BudgetReport,
    DeviceInfo,
    EnrichedSnapshot,
    ErrorRecord,
    EventKind,
    MemoryUsage,
    MetricSample,
    NavigationRecord,
    ResourceRecord,
)


def encode_sample(sample: MetricSample) -> dict[str, Any]:
    """Encode a metric sample."""
    obj: dict[str, Any] = {
        "name": sample.name,
        "value": sample.value,
        "rating": str(sample.rating),
        "timestamp": sample.timestamp,
    }
    if sample.extra:
        obj["extra"] = sample.extra
    return obj


def encode_error(record: ErrorRecord) -> dict[str, Any]:
    """Encode an error record."""
    return {
        "message": record.message,
        "stack": record.stack,
        "timestamp": record.timestamp,
        "url": record.url,
        "userAgent": record.user_agent,
        "context": record.context,
        "type": record.kind,
    }


def encode_resource(record: ResourceRecord) -> dict[str, Any]:
    """Encode a resource timing record."""
    return {
        "name": record.name,
        "type": record.type,
        "durationMs": record.duration_ms,
        "sizeBytes": record.size_bytes,
        "cached": record.cached,
        "timestamp": record.timestamp,
    }


def encode_navigation(record: NavigationRecord | None) -> dict[str, Any] | None:
    """Encode a navigation record, passing None through."""
    if record is None:
        return None
    return {
        "domainLookup": record.domain_lookup,
        "connect": record.connect,
        "request": record.request,
        "response": record.response,
        "domProcessing": record.dom_processing,
        "pageLoad": record.page_load,
        "domReady": record.dom_ready,
        "type": record.type,
        "redirectCount": record.redirect_count,
    }


def encode_device_info(info: DeviceInfo | None) -> dict[str, Any] | None:
    """Encode device info, passing None through."""
    if info is None:
        return None
    return {
        "userAgent": info.user_agent,
        "platform": info.platform,
        "pythonVersion": info.python_version,
        "hostname": info.hostname,
        "hardwareConcurrency": info.hardware_concurrency,
        "connectionType": info.connection_type,
        "downlink": info.downlink,
        "rtt": info.rtt,
        "saveData": info.save_data,
    }


def encode_memory(memory: MemoryUsage | None) -> dict[str, Any] | None:
    """Encode memory usage, passing None through."""
    if memory is None:
        return None
    return dataclasses.asdict(memory)


def encode_snapshot(snapshot: EnrichedSnapshot) -> dict[str, Any]:
    """Encode a full enriched snapshot as sent by the periodic flush."""
    return {
        "vitals": {name: encode_sample(s) for name, s in snapshot.vitals.items()},
        "resources": [encode_resource(r) for r in snapshot.resources],
        "errors": [encode_error(e) for e in snapshot.errors],
        "navigation": encode_navigation(snapshot.navigation),
        "custom": {
            name: [encode_sample(s) for s in samples]
            for name, samples in snapshot.custom.items()
        },
        "deviceInfo": encode_device_info(snapshot.device_info),
        "memory": encode_memory(snapshot.memory),
        "sessionId": snapshot.session_id,
        "timestamp": snapshot.timestamp,
    }


def encode_record(kind: EventKind, data: Any) -> dict[str, Any]:
    """Encode the data of an event according to its kind."""
    match kind:
        case EventKind.VITAL | EventKind.CUSTOM:
            return encode_sample(data)
        case EventKind.ERROR:
            return encode_error(data)
        case EventKind.RESOURCE:
            return encode_resource(data)
        case EventKind.SNAPSHOT:
            return encode_snapshot(data)
        case _:
            assert_never(kind)


def encode_event(
    kind: EventKind,
    data: Any,
    session_id: str,
    device_info: DeviceInfo | None,
    timestamp: int,
) -> dict[str, Any]:
    """Build the envelope for an immediately emitted event."""
    return {
        "type": str(kind),
        "data": encode_record(kind, data),
        "timestamp": timestamp,
        "sessionId": session_id,
        "deviceInfo": encode_device_info(device_info),
    }


def encode_budget_report(report: BudgetReport) -> dict[str, Any]:
    """Encode a budget report."""
    summary = dict(report.summary)
    summary["vitals"] = {
        name: encode_sample(s) for name, s in report.summary.get("vitals", {}).items()
    }
    return {
        "passed": report.passed,
        "violations": [dataclasses.asdict(v) for v in report.violations],
        "summary": summary,
    }


def encode_json(payload: dict[str, Any]) -> str:
    """Serialize a payload to a JSON string."""
    return json.dumps(payload, default=str)
