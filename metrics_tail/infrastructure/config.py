"""Configuration objects for the metrics tail and its sinks."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_BUFFER_DURATION_CAP = 30.0


class DefaultMetricsConfig(BaseModel):
    """Toggles for the metrics synthesized for every trace."""

    model_config = ConfigDict(extra="forbid", strict=True, validate_assignment=True)

    cpu_time: bool = Field(default=True, description="Record worker.cpu_time histogram")
    wall_time: bool = Field(default=True, description="Record worker.wall_time histogram")
    invocation: bool = Field(default=True, description="Record worker.invocation counter")


class MetricsTailConfig(BaseModel):
    """Buffering configuration for the metrics tail.

    Buffer size is measured in distinct metrics (name, type and tags),
    not in raw samples.
    """

    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        validate_assignment=True,
    )

    max_buffer_size: int = Field(
        default=100,
        ge=1,
        description="Max number of unique metrics to buffer before flushing",
    )
    max_buffer_duration: float = Field(
        default=5.0,
        gt=0,
        description="Max seconds to buffer before flushing, capped at 30",
    )
    default_metrics: DefaultMetricsConfig = Field(
        default_factory=DefaultMetricsConfig,
        description="Default metric toggles",
    )

    @field_validator("max_buffer_duration")
    @classmethod
    def cap_buffer_duration(cls, v: float) -> float:
        """Bound worst-case staleness of buffered metrics."""
        return min(v, MAX_BUFFER_DURATION_CAP)

    @classmethod
    def from_env(
        cls, prefix: str = "METRICS_TAIL_", environ: Mapping[str, str] | None = None
    ) -> MetricsTailConfig:
        """Build a configuration from environment variables.

        Recognized variables: ``{prefix}MAX_BUFFER_SIZE``,
        ``{prefix}MAX_BUFFER_DURATION``, ``{prefix}CPU_TIME``,
        ``{prefix}WALL_TIME`` and ``{prefix}INVOCATION``.
        """
        env = os.environ if environ is None else environ
        values: dict = {}

        if size := env.get(f"{prefix}MAX_BUFFER_SIZE"):
            values["max_buffer_size"] = int(size)
        if duration := env.get(f"{prefix}MAX_BUFFER_DURATION"):
            values["max_buffer_duration"] = float(duration)

        toggles = {}
        for field in DefaultMetricsConfig.model_fields:
            raw = env.get(f"{prefix}{field.upper()}")
            if raw is not None:
                toggles[field] = raw.strip().lower() not in ("0", "false", "no", "off")
        if toggles:
            values["default_metrics"] = DefaultMetricsConfig(**toggles)

        return cls(**values)


class DatadogSinkConfig(BaseModel):
    """Settings for the Datadog series sink.

    Missing values fall back to ``DD_API_KEY``/``DATADOG_API_KEY`` and
    ``DD_SITE`` at sink construction time.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, strict=True)

    api_key: str | None = Field(default=None, description="Datadog API key")
    site: str | None = Field(default=None, description="Datadog site, e.g. datadoghq.eu")
    endpoint: str | None = Field(default=None, description="Full endpoint URL override")
    timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")


class OtelSinkConfig(BaseModel):
    """Settings for the OTLP/HTTP JSON sink."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, strict=True)

    endpoint: str | None = Field(default=None, description="OTLP metrics endpoint URL")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")
    service_name: str = Field(default="metrics-tail", description="service.name resource attribute")
    timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str | None) -> str | None:
        """Endpoint must be an http(s) URL."""
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid OTLP endpoint: {v}. Must start with http:// or https://")
        return v
