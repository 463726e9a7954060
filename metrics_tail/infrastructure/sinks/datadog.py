"""Datadog series API sink."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

import httpx

from ...domain.exceptions import SinkError
from ...domain.models import ExportedMetricPayload
from ...ports.logger import LoggerPort
from ...ports.sink import MetricSinkPort
from ..config import DatadogSinkConfig

DEFAULT_SITE = "datadoghq.com"


class DatadogMetricSink(MetricSinkPort):
    """Sends metric batches to the Datadog v1 series endpoint."""

    def __init__(
        self,
        config: DatadogSinkConfig | None = None,
        client: httpx.AsyncClient | None = None,
        logger: LoggerPort | None = None,
    ) -> None:
        """Initialize the sink.

        Args:
            config: Sink settings, missing values fall back to environment variables
            client: HTTP client to reuse; one is created per request otherwise
            logger: Logger for delivery events
        """
        config = config or DatadogSinkConfig()
        self._logger = logger or self._create_default_logger()
        self._client = client
        self._timeout = config.timeout

        self.api_key = config.api_key or os.getenv("DD_API_KEY") or os.getenv("DATADOG_API_KEY")
        if not self.api_key:
            self._logger.error(
                "Datadog API key was not found. Provide it in the sink options or set the "
                "DD_API_KEY environment variable. Metrics will not be sent to Datadog."
            )

        self.site = config.site or os.getenv("DD_SITE") or DEFAULT_SITE
        self.endpoint = config.endpoint or f"https://api.{self.site}/api/v1/series"

    def _create_default_logger(self) -> LoggerPort:
        """Create a default logger if none provided."""
        from ..simple_logger import SimpleLogger

        return SimpleLogger()

    @property
    def name(self) -> str:
        return "datadog"

    async def send_metrics(self, payloads: Sequence[ExportedMetricPayload]) -> None:
        if not payloads:
            return

        try:
            series = [self.transform_metric(payload) for payload in payloads]
            await self._send_to_datadog(series)
        except SinkError:
            raise
        except Exception as e:
            raise SinkError(f"Failed to send metrics to Datadog: {e}", sink=self.name) from e

    @staticmethod
    def transform_metric(payload: ExportedMetricPayload) -> dict[str, Any]:
        """Transform an exported metric into a Datadog series item."""
        tags = [f"{key}:{value}" for key, value in payload.tags.items() if value is not None]
        return {
            "metric": payload.name,
            "type": payload.type.value.lower(),
            "points": [[payload.timestamp // 1000, payload.value]],
            "tags": tags,
        }

    async def _send_to_datadog(self, series: list[dict[str, Any]]) -> None:
        if not self.api_key:
            self._logger.warning(f"Datadog API key was not found. Dropping {len(series)} metrics.")
            return

        headers = {"Content-Type": "application/json", "DD-API-KEY": self.api_key}
        body = {"series": series}

        if self._client is not None:
            response = await self._client.post(self.endpoint, json=body, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self.endpoint, json=body, headers=headers)

        if response.is_error:
            raise SinkError(
                f"Datadog API error ({response.status_code}): {response.text}",
                sink=self.name,
                status_code=response.status_code,
            )
        self._logger.debug("Sent metrics to Datadog", count=len(series))
