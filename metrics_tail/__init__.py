"""metrics_tail - Buffered metric aggregation for trace tail consumers."""

from .application.metrics_tail import MetricsTail
from .application.recorder import MetricsRecorder
from .infrastructure.background_tasks import BackgroundTasks
from .infrastructure.config import MetricsTailConfig
from .infrastructure.sinks import (
    AnalyticsEngineSink,
    ConsoleMetricSink,
    DatadogMetricSink,
    InMemoryMetricSink,
    OtelMetricSink,
)

__all__ = [
    "AnalyticsEngineSink",
    "BackgroundTasks",
    "ConsoleMetricSink",
    "DatadogMetricSink",
    "InMemoryMetricSink",
    "MetricsRecorder",
    "MetricsTail",
    "MetricsTailConfig",
    "OtelMetricSink",
]
__version__ = "0.1.0"
