"""Ports layer - Interfaces for external communication."""

from .analytics_dataset import AnalyticsDatasetPort
from .clock import ClockPort
from .diagnostics_channel import DiagnosticsChannelPort
from .execution_context import ExecutionContextPort
from .logger import LoggerPort
from .sink import MetricSinkPort
from .timer import TimerPort

__all__ = [
    "AnalyticsDatasetPort",
    "ClockPort",
    "DiagnosticsChannelPort",
    "ExecutionContextPort",
    "LoggerPort",
    "MetricSinkPort",
    "TimerPort",
]
