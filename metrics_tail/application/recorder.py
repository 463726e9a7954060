"""Emitting side: instrumented code publishes metric messages through this."""

from __future__ import annotations

from typing import Any

from ..domain.enums import MetricType
from ..domain.models import HistogramOptions, TagValue
from ..ports.diagnostics_channel import DiagnosticsChannelPort


class MetricsRecorder:
    """Publishes count, gauge and histogram messages on a diagnostics channel.

    Messages are plain dicts in the shape the tail consumer validates;
    timestamps are attached by the channel.
    """

    def __init__(self, channel: DiagnosticsChannelPort) -> None:
        self._channel = channel

    def count(self, name: str, value: float = 1, tags: dict[str, TagValue] | None = None) -> None:
        self._publish(MetricType.COUNT, name, value, tags)

    def gauge(self, name: str, value: float, tags: dict[str, TagValue] | None = None) -> None:
        self._publish(MetricType.GAUGE, name, value, tags)

    def histogram(
        self,
        name: str,
        value: float,
        options: HistogramOptions | None = None,
        tags: dict[str, TagValue] | None = None,
    ) -> None:
        """Record one histogram sample.

        Args:
            name: Metric name
            value: Sample value
            options: Aggregates and percentiles to export, defaults apply when omitted
            tags: Metric tags
        """
        extra = {"options": options.model_dump(mode="json")} if options else {}
        self._publish(MetricType.HISTOGRAM, name, value, tags, **extra)

    def _publish(
        self,
        metric_type: MetricType,
        name: str,
        value: float,
        tags: dict[str, TagValue] | None,
        **extra: Any,
    ) -> None:
        self._channel.publish(
            {
                "type": metric_type.value,
                "name": name,
                "value": value,
                "tags": dict(tags or {}),
                **extra,
            }
        )
