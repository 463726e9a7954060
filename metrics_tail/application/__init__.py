"""Application layer - Aggregation, flush scheduling and ingestion."""

from .aggregation_store import AggregationStore
from .flush_scheduler import FlushScheduler
from .metrics_tail import MetricsTail
from .recorder import MetricsRecorder
from .sink_fanout import DispatchReport, SinkFailure, SinkFanout

__all__ = [
    "AggregationStore",
    "DispatchReport",
    "FlushScheduler",
    "MetricsRecorder",
    "MetricsTail",
    "SinkFailure",
    "SinkFanout",
]
