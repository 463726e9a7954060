"""Concurrent delivery of one finalized batch to every configured sink."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..domain.exceptions import SinkFanoutError
from ..domain.models import ExportedMetricPayload
from ..ports.logger import LoggerPort
from ..ports.sink import MetricSinkPort


@dataclass(frozen=True)
class SinkFailure:
    """A single sink's failure within one dispatch."""

    sink_name: str
    reason: str


@dataclass
class DispatchReport:
    """Outcome of delivering one batch to all sinks."""

    sink_count: int
    payload_count: int
    failures: list[SinkFailure] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def succeeded(self) -> int:
        return self.sink_count - self.failure_count

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def reasons(self) -> list[str]:
        return [failure.reason for failure in self.failures]

    @property
    def summary(self) -> str:
        if self.ok:
            return f"Flushed {self.payload_count} metrics to {self.sink_count} sink(s)"
        return f"Failed to flush metrics to {self.failure_count} sink(s): {', '.join(self.reasons)}"

    def to_error(self) -> SinkFanoutError | None:
        """Aggregated error for the failed sinks, or None if all succeeded."""
        if self.ok:
            return None
        return SinkFanoutError(self.reasons, sink_count=self.sink_count)


def _reason(error: BaseException) -> str:
    message = getattr(error, "message", None) or str(error)
    return message or type(error).__name__


class SinkFanout:
    """Invokes every sink concurrently and isolates their failures.

    All sinks are awaited regardless of individual outcomes; one sink's
    error never prevents the others from being attempted or counted.
    """

    def __init__(self, logger: LoggerPort | None = None) -> None:
        self._logger = logger or self._create_default_logger()

    def _create_default_logger(self) -> LoggerPort:
        """Create a default logger if none provided."""
        from ..infrastructure.simple_logger import SimpleLogger

        return SimpleLogger()

    async def dispatch(
        self,
        payloads: Sequence[ExportedMetricPayload],
        sinks: Sequence[MetricSinkPort],
    ) -> DispatchReport:
        # One delivery per sink object per flush
        unique_sinks = list({id(sink): sink for sink in sinks}.values())
        report = DispatchReport(sink_count=len(unique_sinks), payload_count=len(payloads))
        if not payloads or not unique_sinks:
            return report

        batch = tuple(payloads)
        results = await asyncio.gather(
            *(self._deliver(sink, batch) for sink in unique_sinks),
            return_exceptions=True,
        )

        for sink, result in zip(unique_sinks, results, strict=True):
            if isinstance(result, BaseException):
                report.failures.append(SinkFailure(sink_name=sink.name, reason=_reason(result)))
                self._logger.debug(
                    f"Sink {sink.name} failed: {_reason(result)}",
                    sink=sink.name,
                )

        return report

    @staticmethod
    async def _deliver(sink: MetricSinkPort, batch: tuple[ExportedMetricPayload, ...]) -> None:
        await sink.send_metrics(batch)
