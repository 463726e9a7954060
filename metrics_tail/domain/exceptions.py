"""Domain-specific exceptions following DDD principles."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class MetricsTailError(Exception):
    """Base exception for all metrics tail errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidMetricError(MetricsTailError):
    """Raised when a metric message does not have a valid structure."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload
        if payload is not None:
            self.details["payload"] = repr(payload)


class SinkError(MetricsTailError):
    """Delivery failure reported by a single sink."""

    def __init__(self, message: str, sink: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.sink = sink
        self.status_code = status_code
        if sink:
            self.details["sink"] = sink
        if status_code is not None:
            self.details["status_code"] = status_code


class SinkFanoutError(MetricsTailError):
    """One or more sinks failed during a single flush.

    The other sinks of the same flush may still have succeeded.
    """

    def __init__(self, reasons: Sequence[str], sink_count: int):
        reasons = list(reasons)
        super().__init__(
            f"Failed to flush metrics to {len(reasons)} sink(s): {', '.join(reasons)}",
            details={"failure_count": len(reasons), "sink_count": sink_count},
        )
        self.reasons = reasons
        self.sink_count = sink_count

    @property
    def failure_count(self) -> int:
        return len(self.reasons)
