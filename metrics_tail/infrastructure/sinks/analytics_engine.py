"""Sink writing each exported metric as a data point to an analytics dataset."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from ...domain.exceptions import SinkError
from ...domain.models import ExportedMetricPayload
from ...ports.analytics_dataset import AnalyticsDatasetPort
from ...ports.sink import MetricSinkPort


class AnalyticsEngineSink(MetricSinkPort):
    """Writes one data point per payload.

    The metric name is the index; type and tags go into blobs, value and
    timestamp into doubles.
    """

    def __init__(self, dataset: AnalyticsDatasetPort) -> None:
        self._dataset = dataset

    @property
    def name(self) -> str:
        return "analytics-engine"

    @staticmethod
    def to_data_point(payload: ExportedMetricPayload) -> dict[str, Any]:
        tags = json.dumps(payload.tags, sort_keys=True, separators=(",", ":"), default=str)
        return {
            "indexes": [payload.name],
            "blobs": [payload.name, payload.type.value, tags],
            "doubles": [payload.value, float(payload.timestamp)],
        }

    async def send_metrics(self, payloads: Sequence[ExportedMetricPayload]) -> None:
        try:
            for payload in payloads:
                self._dataset.write_data_point(self.to_data_point(payload))
        except Exception as e:
            raise SinkError(f"Failed to write metrics to analytics dataset: {e}", sink=self.name) from e
