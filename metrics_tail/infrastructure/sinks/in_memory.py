"""In-memory sink that records every delivered batch."""

from __future__ import annotations

from collections.abc import Sequence

from ...domain.models import ExportedMetricPayload
from ...ports.sink import MetricSinkPort


class InMemoryMetricSink(MetricSinkPort):
    """Keeps delivered batches in memory for inspection."""

    def __init__(self, name: str = "in-memory") -> None:
        self._name = name
        self.batches: list[list[ExportedMetricPayload]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.batches)

    @property
    def payloads(self) -> list[ExportedMetricPayload]:
        """All delivered payloads across batches, in delivery order."""
        return [payload for batch in self.batches for payload in batch]

    def find(self, metric_name: str) -> list[ExportedMetricPayload]:
        return [payload for payload in self.payloads if payload.name == metric_name]

    async def send_metrics(self, payloads: Sequence[ExportedMetricPayload]) -> None:
        self.batches.append(list(payloads))

    def reset(self) -> None:
        self.batches.clear()
