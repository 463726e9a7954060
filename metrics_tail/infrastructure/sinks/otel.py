"""OpenTelemetry sink speaking OTLP/HTTP with JSON encoding."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

import httpx

from ...domain.enums import MetricType
from ...domain.exceptions import SinkError
from ...domain.models import ExportedMetricPayload, TagValue
from ...ports.logger import LoggerPort
from ...ports.sink import MetricSinkPort
from ..config import OtelSinkConfig

AGGREGATION_TEMPORALITY_DELTA = 1
SCOPE_NAME = "metrics_tail"


def otlp_value(value: TagValue) -> dict[str, Any]:
    """Encode a tag value as an OTLP ``AnyValue``."""
    if isinstance(value, bool):
        return {"boolValue": value}
    if isinstance(value, int):
        # int64 values are strings in OTLP JSON
        return {"intValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    return {"stringValue": str(value)}


def otlp_attributes(tags: dict[str, TagValue]) -> list[dict[str, Any]]:
    return [{"key": key, "value": otlp_value(value)} for key, value in tags.items() if value is not None]


class OtelMetricSink(MetricSinkPort):
    """Exports metric batches to an OTLP/HTTP collector.

    Counts become delta monotonic sums and gauges become gauges; histogram
    payloads already arrive expanded into gauges.
    """

    def __init__(
        self,
        config: OtelSinkConfig | None = None,
        client: httpx.AsyncClient | None = None,
        logger: LoggerPort | None = None,
    ) -> None:
        config = config or OtelSinkConfig()
        self._logger = logger or self._create_default_logger()
        self._client = client
        self._timeout = config.timeout
        self._headers = {"Content-Type": "application/json", **config.headers}
        self._service_name = config.service_name
        self.endpoint = config.endpoint or self._endpoint_from_env()

    def _create_default_logger(self) -> LoggerPort:
        """Create a default logger if none provided."""
        from ..simple_logger import SimpleLogger

        return SimpleLogger()

    @staticmethod
    def _endpoint_from_env() -> str | None:
        if endpoint := os.getenv("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT"):
            return endpoint
        if base := os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"):
            return f"{base.rstrip('/')}/v1/metrics"
        return None

    @property
    def name(self) -> str:
        return "otel"

    async def send_metrics(self, payloads: Sequence[ExportedMetricPayload]) -> None:
        if not payloads:
            return
        if not self.endpoint:
            raise SinkError("OTLP endpoint is not configured", sink=self.name)

        try:
            body = self.build_request(payloads)
            if self._client is not None:
                response = await self._client.post(self.endpoint, json=body, headers=self._headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.endpoint, json=body, headers=self._headers)
        except Exception as e:
            raise SinkError(f"Failed to send metrics to OTLP endpoint: {e}", sink=self.name) from e

        if response.is_error:
            raise SinkError(
                f"OTLP endpoint error ({response.status_code}): {response.text}",
                sink=self.name,
                status_code=response.status_code,
            )

    def build_request(self, payloads: Sequence[ExportedMetricPayload]) -> dict[str, Any]:
        """Build an ``ExportMetricsServiceRequest`` JSON body."""
        return {
            "resourceMetrics": [
                {
                    "resource": {
                        "attributes": otlp_attributes({"service.name": self._service_name}),
                    },
                    "scopeMetrics": [
                        {
                            "scope": {"name": SCOPE_NAME},
                            "metrics": [self._metric(payload) for payload in payloads],
                        }
                    ],
                }
            ]
        }

    @staticmethod
    def _metric(payload: ExportedMetricPayload) -> dict[str, Any]:
        data_point = {
            "asDouble": payload.value,
            "timeUnixNano": str(payload.timestamp * 1_000_000),
            "attributes": otlp_attributes(payload.tags),
        }
        if payload.type is MetricType.COUNT:
            return {
                "name": payload.name,
                "sum": {
                    "dataPoints": [data_point],
                    "aggregationTemporality": AGGREGATION_TEMPORALITY_DELTA,
                    "isMonotonic": True,
                },
            }
        return {"name": payload.name, "gauge": {"dataPoints": [data_point]}}
