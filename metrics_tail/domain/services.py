"""Domain services for turning raw trace data into metric events.

These are pure functions: they hold no state and perform no I/O.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .enums import MetricType, TriggerKind
from .exceptions import InvalidMetricError
from .models import MetricEvent, TagValue, TraceItem

_METRIC_TYPES = frozenset(t.value for t in MetricType)

# Checked in order; scheduled events also carry ``scheduledTime``.
_TRIGGER_MARKERS: tuple[tuple[str, TriggerKind], ...] = (
    ("request", TriggerKind.FETCH),
    ("cron", TriggerKind.SCHEDULED),
    ("queue", TriggerKind.QUEUE),
    ("mailFrom", TriggerKind.EMAIL),
    ("consumedEvents", TriggerKind.TAIL),
    ("rpcMethod", TriggerKind.RPC),
    ("webSocketEventType", TriggerKind.WEBSOCKET),
    ("scheduledTime", TriggerKind.ALARM),
)


def is_valid_metric(message: Any) -> bool:
    """Structural check of a metric message received on the metrics channel.

    A valid message is a mapping with a known ``type``, a string ``name``,
    a finite numeric ``value`` and a mapping of ``tags``.
    """
    if not isinstance(message, Mapping):
        return False
    if not all(field in message for field in ("type", "name", "value", "tags")):
        return False

    metric_type = message["type"]
    if not isinstance(metric_type, str) or metric_type not in _METRIC_TYPES:
        return False

    value = message["value"]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if not math.isfinite(value):
        return False

    return isinstance(message["name"], str) and isinstance(message["tags"], Mapping)


def build_metric_event(
    message: Mapping[str, Any],
    timestamp: int,
    global_tags: Mapping[str, TagValue] | None = None,
) -> MetricEvent:
    """Create a metric event from a channel message.

    Message tags override global tags of the same name.

    Raises:
        InvalidMetricError: If the message is structurally invalid.
    """
    if not is_valid_metric(message):
        raise InvalidMetricError("Received invalid metric payload", payload=message)

    try:
        return MetricEvent.model_validate(
            {
                **message,
                "tags": {**(global_tags or {}), **message["tags"]},
                "timestamp": timestamp,
            }
        )
    except ValidationError as e:
        raise InvalidMetricError(f"Received invalid metric payload: {e}", payload=message) from e


def get_event_trigger(trace_item: TraceItem) -> TriggerKind:
    """Derive what triggered a traced invocation from its event payload."""
    event = trace_item.event
    if not event:
        return TriggerKind.UNKNOWN
    for marker, trigger in _TRIGGER_MARKERS:
        if marker in event:
            return trigger
    return TriggerKind.UNKNOWN


def global_tags(trace_item: TraceItem) -> dict[str, TagValue]:
    """Tags applied to every metric produced by a trace."""
    return {
        "scriptName": trace_item.script_name,
        "executionModel": trace_item.execution_model,
        "outcome": trace_item.outcome,
        "versionId": trace_item.script_version.id if trace_item.script_version else None,
        "trigger": get_event_trigger(trace_item).value,
    }
