"""Decides when buffered metrics are flushed.

The scheduler has two states per buffering window: idle, or scheduled with
a timer pending for a captured flush generation. The generation is a
monotonically increasing counter; a timer only flushes if the generation
it captured when armed is still the live one when it elapses. Any flush
that runs in the meantime advances the generation, which turns the
pending timer into a harmless no-op instead of a duplicate flush.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..domain.enums import FlushDecision
from ..domain.models import ExportedMetricPayload
from ..infrastructure.config import MAX_BUFFER_DURATION_CAP
from ..ports.execution_context import ExecutionContextPort
from ..ports.logger import LoggerPort
from ..ports.sink import MetricSinkPort
from ..ports.timer import TimerPort
from .aggregation_store import AggregationStore
from .sink_fanout import DispatchReport, SinkFanout


class FlushScheduler:
    """Size- and time-triggered flushing of an aggregation store."""

    def __init__(
        self,
        store: AggregationStore,
        sinks: Sequence[MetricSinkPort],
        max_buffer_size: int,
        max_buffer_duration: float,
        timer: TimerPort | None = None,
        fanout: SinkFanout | None = None,
        logger: LoggerPort | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            store: Store drained on every flush
            sinks: Sinks each flushed batch is delivered to
            max_buffer_size: Distinct metric count that triggers an immediate flush
            max_buffer_duration: Seconds a window stays open before a timed flush, capped at 30
            timer: Suspension point for timed flushes
            fanout: Batch dispatcher
            logger: Logger for flush events
        """
        self._store = store
        self._sinks = list(sinks)
        self._max_buffer_size = max_buffer_size
        self._max_buffer_duration = min(max_buffer_duration, MAX_BUFFER_DURATION_CAP)
        self._logger = logger or self._create_default_logger()
        self._timer = timer or self._create_default_timer()
        self._fanout = fanout or SinkFanout(logger=self._logger)

        self._generation = 0
        self._flush_scheduled = False

    def _create_default_logger(self) -> LoggerPort:
        """Create a default logger if none provided."""
        from ..infrastructure.simple_logger import SimpleLogger

        return SimpleLogger()

    def _create_default_timer(self) -> TimerPort:
        from ..infrastructure.asyncio_timer import AsyncioTimer

        return AsyncioTimer()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_scheduled(self) -> bool:
        return self._flush_scheduled

    @property
    def sinks(self) -> list[MetricSinkPort]:
        return list(self._sinks)

    def on_batch_ingested(self, ctx: ExecutionContextPort) -> FlushDecision:
        """Decide what to do after a batch of events has been stored.

        Must be called after the store has been updated, within the same
        turn of the event loop.
        """
        count = self._store.get_metric_count()

        if count >= self._max_buffer_size:
            # Draining advances the generation and pre-empts any pending timer
            payloads = self._take_snapshot()
            if payloads:
                ctx.wait_until(self._dispatch(payloads))
            self._logger.debug("Buffer full, flushing immediately", metric_count=count)
            return FlushDecision.IMMEDIATE

        if self._flush_scheduled:
            return FlushDecision.COALESCED

        if count == 0:
            return FlushDecision.IDLE

        self._flush_scheduled = True
        self._generation += 1
        ctx.wait_until(self._flush_after_delay(self._generation))
        return FlushDecision.SCHEDULED

    async def _flush_after_delay(self, captured_generation: int) -> None:
        try:
            await self._timer.wait(self._max_buffer_duration)
            if captured_generation != self._generation:
                self._logger.debug(
                    "Scheduled flush superseded",
                    captured_generation=captured_generation,
                    generation=self._generation,
                )
                return
            await self.perform_flush()
        except Exception as e:
            self._logger.exception("Error in scheduled flush", exc_info=e)
            # Never leave the window stuck in the scheduled state
            if captured_generation == self._generation:
                self._flush_scheduled = False

    async def perform_flush(self) -> DispatchReport | None:
        """Drain the store and deliver the batch to every sink.

        Returns:
            The dispatch report, or None when there was nothing to send
        """
        payloads = self._take_snapshot()
        if not payloads:
            return None
        return await self._dispatch(payloads)

    def _take_snapshot(self) -> list[ExportedMetricPayload]:
        self._generation += 1
        self._flush_scheduled = False
        try:
            return self._store.drain()
        except Exception as e:
            self._logger.exception("Error building metrics snapshot", exc_info=e)
            return []

    async def _dispatch(self, payloads: list[ExportedMetricPayload]) -> DispatchReport | None:
        try:
            report = await self._fanout.dispatch(payloads, self._sinks)
        except Exception as e:
            self._logger.exception("Error flushing batch", exc_info=e)
            return None

        if report.ok:
            self._logger.debug(report.summary, payload_count=report.payload_count)
        else:
            self._logger.error(
                report.summary,
                failure_count=report.failure_count,
                sink_count=report.sink_count,
            )
        return report
