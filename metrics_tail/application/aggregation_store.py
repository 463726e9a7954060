"""Keyed in-memory accumulation of metric events.

The store is owned by a single processing unit and mutated only
synchronously, so every operation here completes within one turn of the
event loop.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..domain.aggregation import AggregatedMetric, aggregation_key
from ..domain.models import ExportedMetricPayload, MetricEvent
from ..domain.services import is_valid_metric
from ..ports.logger import LoggerPort


def _export(metrics: Mapping[str, AggregatedMetric]) -> list[ExportedMetricPayload]:
    return [payload for metric in metrics.values() for payload in metric.export()]


class AggregationStore:
    """Combines metric events by (type, name, tags) identity."""

    def __init__(self, logger: LoggerPort | None = None) -> None:
        self._metrics: dict[str, AggregatedMetric] = {}
        self._logger = logger or self._create_default_logger()

    def _create_default_logger(self) -> LoggerPort:
        """Create a default logger if none provided."""
        from ..infrastructure.simple_logger import SimpleLogger

        return SimpleLogger()

    def store_metric(self, event: MetricEvent | Mapping[str, Any]) -> bool:
        """Insert or combine an event.

        Malformed input is logged and ignored, never raised.

        Returns:
            True if the event was stored
        """
        if not isinstance(event, MetricEvent):
            if not is_valid_metric(event):
                self._logger.warning("Received invalid metric payload", payload=repr(event))
                return False
            try:
                event = MetricEvent.model_validate(event)
            except ValidationError as e:
                self._logger.warning(f"Received invalid metric payload: {e}", payload=repr(event))
                return False

        key = aggregation_key(event.type, event.name, event.tags)
        existing = self._metrics.get(key)
        if existing is None:
            self._metrics[key] = AggregatedMetric.from_event(key, event)
        else:
            existing.combine(event)
        return True

    def get_metric_count(self) -> int:
        """Number of distinct metrics currently buffered."""
        return len(self._metrics)

    def get(self, key: str) -> AggregatedMetric | None:
        return self._metrics.get(key)

    def to_exported_payloads(self) -> list[ExportedMetricPayload]:
        """Resolve the buffered metrics without clearing them."""
        return _export(self._metrics)

    def clear_all(self) -> None:
        self._metrics.clear()

    def drain(self) -> list[ExportedMetricPayload]:
        """Snapshot and clear in a single step.

        The buffer is detached before payloads are resolved, so it is
        already empty even if resolving them raises.
        """
        metrics, self._metrics = self._metrics, {}
        return _export(metrics)

    def __len__(self) -> int:
        return len(self._metrics)
