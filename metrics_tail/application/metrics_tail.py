"""Ingestion facade: turns completed traces into buffered, flushed metrics."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..domain.enums import AggregateKind, FlushDecision, MetricType
from ..domain.exceptions import InvalidMetricError
from ..domain.models import (
    METRICS_CHANNEL_NAME,
    HistogramOptions,
    MetricEvent,
    TagValue,
    TraceItem,
)
from ..domain.services import build_metric_event, global_tags
from ..infrastructure.config import MetricsTailConfig
from ..ports.clock import ClockPort
from ..ports.execution_context import ExecutionContextPort
from ..ports.logger import LoggerPort
from ..ports.sink import MetricSinkPort
from ..ports.timer import TimerPort
from .aggregation_store import AggregationStore
from .flush_scheduler import FlushScheduler
from .sink_fanout import DispatchReport

DURATION_HISTOGRAM_OPTIONS = HistogramOptions(
    aggregates=(AggregateKind.MAX, AggregateKind.MIN, AggregateKind.AVG),
    percentiles=(0.5, 0.75, 0.9, 0.95, 0.99),
)


class MetricsTail:
    """Consumes trace items, aggregates their metrics and flushes them to sinks.

    One instance is meant to live for the whole lifetime of the processing
    unit; its store accumulates across many calls to
    ``process_trace_items``.

    Example:
        tail = MetricsTail(sinks=[DatadogMetricSink()])
        tasks = BackgroundTasks()
        tail.process_trace_items(trace_items, tasks)
        await tasks.wait_for_all()
    """

    def __init__(
        self,
        sinks: Sequence[MetricSinkPort],
        config: MetricsTailConfig | None = None,
        logger: LoggerPort | None = None,
        clock: ClockPort | None = None,
        timer: TimerPort | None = None,
    ) -> None:
        self._config = config or MetricsTailConfig()
        self._logger = logger or self._create_default_logger()
        self._clock = clock or self._create_default_clock()
        self._store = AggregationStore(logger=self._logger)
        self._scheduler = FlushScheduler(
            store=self._store,
            sinks=sinks,
            max_buffer_size=self._config.max_buffer_size,
            max_buffer_duration=self._config.max_buffer_duration,
            timer=timer,
            logger=self._logger,
        )

    def _create_default_logger(self) -> LoggerPort:
        """Create a default logger if none provided."""
        from ..infrastructure.simple_logger import SimpleLogger

        return SimpleLogger()

    def _create_default_clock(self) -> ClockPort:
        from ..infrastructure.system_clock import SystemClock

        return SystemClock()

    @property
    def config(self) -> MetricsTailConfig:
        return self._config

    @property
    def store(self) -> AggregationStore:
        return self._store

    @property
    def scheduler(self) -> FlushScheduler:
        return self._scheduler

    def process_trace_items(
        self, trace_items: Iterable[TraceItem], ctx: ExecutionContextPort
    ) -> FlushDecision:
        """Store the metrics of a batch of traces and let the scheduler react.

        Invalid metric messages are dropped with a warning; the rest of the
        batch is still processed.
        """
        for trace_item in trace_items:
            tags = global_tags(trace_item)
            self._add_default_metrics(trace_item, tags)

            for channel_event in trace_item.diagnostics_channel_events:
                if channel_event.channel != METRICS_CHANNEL_NAME:
                    continue
                try:
                    event = build_metric_event(channel_event.message, channel_event.timestamp, tags)
                except InvalidMetricError as e:
                    self._logger.warning(e.message, payload=repr(channel_event.message))
                    continue
                self._store.store_metric(event)

        return self._scheduler.on_batch_ingested(ctx)

    async def flush(self) -> DispatchReport | None:
        """Flush whatever is buffered right now, e.g. on shutdown."""
        return await self._scheduler.perform_flush()

    def _add_default_metrics(self, trace_item: TraceItem, tags: dict[str, TagValue]) -> None:
        enabled = self._config.default_metrics
        timestamp = trace_item.event_timestamp or self._clock.now_millis()

        if enabled.cpu_time and trace_item.cpu_time is not None:
            self._store.store_metric(
                MetricEvent(
                    type=MetricType.HISTOGRAM,
                    name="worker.cpu_time",
                    value=trace_item.cpu_time,
                    tags=tags,
                    timestamp=timestamp,
                    options=DURATION_HISTOGRAM_OPTIONS,
                )
            )

        if enabled.wall_time and trace_item.wall_time is not None:
            self._store.store_metric(
                MetricEvent(
                    type=MetricType.HISTOGRAM,
                    name="worker.wall_time",
                    value=trace_item.wall_time,
                    tags=tags,
                    timestamp=timestamp,
                    options=DURATION_HISTOGRAM_OPTIONS,
                )
            )

        if enabled.invocation:
            self._store.store_metric(
                MetricEvent(
                    type=MetricType.COUNT,
                    name="worker.invocation",
                    value=1,
                    tags=tags,
                    timestamp=timestamp,
                )
            )
