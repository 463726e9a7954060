"""Concrete metric sinks."""

from .analytics_engine import AnalyticsEngineSink
from .console import ConsoleMetricSink
from .datadog import DatadogMetricSink
from .in_memory import InMemoryMetricSink
from .otel import OtelMetricSink

__all__ = [
    "AnalyticsEngineSink",
    "ConsoleMetricSink",
    "DatadogMetricSink",
    "InMemoryMetricSink",
    "OtelMetricSink",
]
