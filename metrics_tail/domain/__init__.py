"""Domain layer - Metric events, aggregation rules and error taxonomy."""

from .aggregation import (
    AggregatedMetric,
    CountMetric,
    GaugeMetric,
    HistogramMetric,
    aggregation_key,
    percentile,
)
from .enums import AggregateKind, FlushDecision, MetricType, TriggerKind
from .exceptions import InvalidMetricError, MetricsTailError, SinkError, SinkFanoutError
from .models import (
    METRICS_CHANNEL_NAME,
    DiagnosticsChannelEvent,
    ExportedMetricPayload,
    HistogramOptions,
    MetricEvent,
    ScriptVersion,
    TraceItem,
)

__all__ = [
    "METRICS_CHANNEL_NAME",
    "AggregateKind",
    "AggregatedMetric",
    "CountMetric",
    "DiagnosticsChannelEvent",
    "ExportedMetricPayload",
    "FlushDecision",
    "GaugeMetric",
    "HistogramMetric",
    "HistogramOptions",
    "InvalidMetricError",
    "MetricEvent",
    "MetricType",
    "MetricsTailError",
    "ScriptVersion",
    "SinkError",
    "SinkFanoutError",
    "TraceItem",
    "TriggerKind",
    "aggregation_key",
    "percentile",
]
