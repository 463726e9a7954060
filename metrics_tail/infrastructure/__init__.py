"""Infrastructure layer - Concrete implementations of ports."""

from .asyncio_timer import AsyncioTimer
from .background_tasks import BackgroundTasks
from .config import DatadogSinkConfig, DefaultMetricsConfig, MetricsTailConfig, OtelSinkConfig
from .diagnostics_channel import InMemoryDiagnosticsChannel
from .simple_logger import SimpleLogger
from .system_clock import SystemClock

__all__ = [
    "AsyncioTimer",
    "BackgroundTasks",
    "DatadogSinkConfig",
    "DefaultMetricsConfig",
    "InMemoryDiagnosticsChannel",
    "MetricsTailConfig",
    "OtelSinkConfig",
    "SimpleLogger",
    "SystemClock",
]
