"""Domain models using Pydantic for validation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import AggregateKind, MetricType

METRICS_CHANNEL_NAME = "workers-observability-metrics"

TagValue = str | int | float | bool | None

DEFAULT_AGGREGATES: tuple[AggregateKind, ...] = (
    AggregateKind.MAX,
    AggregateKind.MIN,
    AggregateKind.AVG,
)
DEFAULT_PERCENTILES: tuple[float, ...] = (0.5, 0.75, 0.9, 0.95, 0.99)


class HistogramOptions(BaseModel):
    """Which statistics a histogram is resolved into at export time."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    aggregates: tuple[AggregateKind, ...] = Field(
        default=DEFAULT_AGGREGATES, description="Summary statistics to export"
    )
    percentiles: tuple[float, ...] = Field(
        default=DEFAULT_PERCENTILES, description="Percentiles to export, each in (0, 1)"
    )

    @field_validator("aggregates")
    @classmethod
    def dedupe_aggregates(cls, v: tuple[AggregateKind, ...]) -> tuple[AggregateKind, ...]:
        return tuple(dict.fromkeys(v))

    @field_validator("percentiles")
    @classmethod
    def validate_percentiles(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        """Percentiles are fractions strictly between 0 and 1, each listed once."""
        for p in v:
            if not 0 < p < 1:
                raise ValueError(f"Percentile must be in (0, 1), got {p}")
        return tuple(dict.fromkeys(v))


class MetricEvent(BaseModel):
    """One raw, timestamped observation submitted by instrumented code."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: MetricType = Field(..., description="Metric kind")
    name: str = Field(..., min_length=1, description="Metric name")
    value: float = Field(..., allow_inf_nan=False, description="Observed value")
    tags: dict[str, TagValue] = Field(default_factory=dict, description="Metric tags")
    timestamp: int = Field(..., ge=0, description="Observation time in epoch milliseconds")
    options: HistogramOptions | None = Field(default=None, description="Histogram options")


class ExportedMetricPayload(BaseModel):
    """Read-only, fully resolved metric handed to sinks."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: MetricType
    name: str
    value: float
    tags: dict[str, TagValue] = Field(default_factory=dict)
    timestamp: int


class DiagnosticsChannelEvent(BaseModel):
    """A message published on a diagnostics channel during a trace."""

    model_config = ConfigDict(extra="ignore")

    channel: str
    message: Any = None
    timestamp: int


class ScriptVersion(BaseModel):
    """Deployed version of the traced script."""

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    tag: str | None = None
    message: str | None = None


class TraceItem(BaseModel):
    """A completed execution trace as delivered to the tail consumer.

    Accepts both snake_case and the camelCase field names of the raw
    trace records.
    """

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    script_name: str | None = None
    script_version: ScriptVersion | None = None
    execution_model: str | None = None
    outcome: str = "unknown"
    event_timestamp: int | None = None
    cpu_time: float | None = None
    wall_time: float | None = None
    event: dict[str, Any] | None = None
    diagnostics_channel_events: list[DiagnosticsChannelEvent] = Field(default_factory=list)
