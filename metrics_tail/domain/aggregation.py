"""Per-key accumulators that combine metric events within one buffering window.

Each distinct aggregation key maps to exactly one accumulator. Counts are
summed, gauges keep the most recent value, and histograms keep every raw
sample until export, when they are resolved into the requested aggregates
and percentiles.
"""

from __future__ import annotations

import json
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import ClassVar

from .enums import AggregateKind, MetricType
from .models import ExportedMetricPayload, HistogramOptions, MetricEvent, TagValue


def normalize_tags(tags: Mapping[str, TagValue]) -> dict[str, TagValue]:
    """Collapse integral floats to ints, so 200 and 200.0 are one tag value."""
    return {
        key: int(value) if isinstance(value, float) and value.is_integer() else value
        for key, value in tags.items()
    }


def canonical_tags(tags: Mapping[str, TagValue]) -> str:
    """Serialize tags so that insertion order never affects identity."""
    return json.dumps(normalize_tags(tags), sort_keys=True, separators=(",", ":"), default=str)


def aggregation_key(metric_type: MetricType | str, name: str, tags: Mapping[str, TagValue]) -> str:
    """Build the identity under which events are combined."""
    return f"{MetricType(metric_type).value}:{name}:{canonical_tags(tags)}"


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile over already sorted values.

    The rank is ``ceil(p * n) - 1`` clamped to ``[0, n - 1]``.
    """
    if not sorted_values:
        raise ValueError("Cannot compute a percentile of no samples")
    n = len(sorted_values)
    # round() keeps 0.7 * 10 from landing on 7.000000000000001
    rank = math.ceil(round(p * n, 9)) - 1
    return sorted_values[min(max(rank, 0), n - 1)]


def percentile_label(p: float) -> str:
    """Name suffix for a percentile, e.g. 0.95 -> "p95", 0.999 -> "p99.9"."""
    return f"p{round(p * 100, 4):g}"


def summarize(values: Sequence[float], aggregate: AggregateKind) -> float:
    if aggregate is AggregateKind.MAX:
        return max(values)
    if aggregate is AggregateKind.MIN:
        return min(values)
    if aggregate is AggregateKind.SUM:
        return math.fsum(values)
    return math.fsum(values) / len(values)


class AggregatedMetric(ABC):
    """Mutable accumulator for one aggregation key."""

    metric_type: ClassVar[MetricType]

    def __init__(self, key: str, event: MetricEvent):
        self.key = key
        self.name = event.name
        self.tags = normalize_tags(event.tags)
        self.first_seen = event.timestamp
        self.last_seen = event.timestamp
        self.sample_count = 1

    @classmethod
    def from_event(cls, key: str, event: MetricEvent) -> AggregatedMetric:
        """Create the accumulator matching the event's type."""
        accumulator = _ACCUMULATORS[event.type]
        return accumulator(key, event)

    def combine(self, event: MetricEvent) -> None:
        """Fold another event with the same key into this accumulator."""
        self.sample_count += 1
        self._combine(event)
        self.last_seen = max(self.last_seen, event.timestamp)

    @abstractmethod
    def _combine(self, event: MetricEvent) -> None: ...

    @abstractmethod
    def export(self) -> list[ExportedMetricPayload]:
        """Resolve the accumulator into exported payloads."""
        ...

    def _payload(self, metric_type: MetricType, name: str, value: float) -> ExportedMetricPayload:
        return ExportedMetricPayload(
            type=metric_type,
            name=name,
            value=value,
            tags=dict(self.tags),
            timestamp=self.last_seen,
        )


class CountMetric(AggregatedMetric):
    """Sum of all values seen for the key."""

    metric_type = MetricType.COUNT

    def __init__(self, key: str, event: MetricEvent):
        super().__init__(key, event)
        self.total = event.value

    def _combine(self, event: MetricEvent) -> None:
        self.total += event.value

    @property
    def value(self) -> float:
        return self.total

    def export(self) -> list[ExportedMetricPayload]:
        return [self._payload(MetricType.COUNT, self.name, self.total)]


class GaugeMetric(AggregatedMetric):
    """Most recently observed value for the key.

    A late event with an older timestamp does not overwrite a newer value;
    on equal timestamps the later ingestion wins.
    """

    metric_type = MetricType.GAUGE

    def __init__(self, key: str, event: MetricEvent):
        super().__init__(key, event)
        self.value = event.value
        self.observed_at = event.timestamp

    def _combine(self, event: MetricEvent) -> None:
        if event.timestamp >= self.observed_at:
            self.value = event.value
            self.observed_at = event.timestamp

    def export(self) -> list[ExportedMetricPayload]:
        return [self._payload(MetricType.GAUGE, self.name, self.value)]


class HistogramMetric(AggregatedMetric):
    """All raw samples for the key, resolved on export."""

    metric_type = MetricType.HISTOGRAM

    def __init__(self, key: str, event: MetricEvent):
        super().__init__(key, event)
        self.options = event.options or HistogramOptions()
        self.samples: list[float] = [event.value]

    def _combine(self, event: MetricEvent) -> None:
        self.samples.append(event.value)

    def export(self) -> list[ExportedMetricPayload]:
        ordered = sorted(self.samples)
        payloads = [
            self._payload(MetricType.GAUGE, f"{self.name}.{aggregate.value}", summarize(ordered, aggregate))
            for aggregate in self.options.aggregates
        ]
        payloads.extend(
            self._payload(MetricType.GAUGE, f"{self.name}.{percentile_label(p)}", percentile(ordered, p))
            for p in self.options.percentiles
        )
        return payloads


_ACCUMULATORS: dict[MetricType, type[AggregatedMetric]] = {
    MetricType.COUNT: CountMetric,
    MetricType.GAUGE: GaugeMetric,
    MetricType.HISTOGRAM: HistogramMetric,
}
