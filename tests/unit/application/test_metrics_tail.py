"""Unit tests for the MetricsTail ingestion facade."""

import pytest

from metrics_tail.application.metrics_tail import MetricsTail
from metrics_tail.application.recorder import MetricsRecorder
from metrics_tail.domain.enums import FlushDecision
from metrics_tail.domain.models import HistogramOptions, TraceItem
from metrics_tail.infrastructure.background_tasks import BackgroundTasks
from metrics_tail.infrastructure.config import DefaultMetricsConfig, MetricsTailConfig
from metrics_tail.infrastructure.diagnostics_channel import InMemoryDiagnosticsChannel
from tests.builders import BASE_TS, FixedClock, channel_event, metric_message, trace_item


@pytest.fixture
def tasks(mock_logger):
    return BackgroundTasks(logger=mock_logger)


@pytest.fixture
def make_tail(sink, mock_logger, clock, manual_timer):
    def factory(**config):
        return MetricsTail(
            sinks=[sink],
            config=MetricsTailConfig(**config),
            logger=mock_logger,
            clock=clock,
            timer=manual_timer,
        )

    return factory


@pytest.fixture
def tail(make_tail):
    return make_tail()


class TestDefaultMetrics:
    @pytest.mark.asyncio
    async def test_duration_and_invocation_recorded(self, tail, tasks, sink, manual_timer):
        decision = tail.process_trace_items([trace_item(cpu_time=3, wall_time=10)], tasks)

        assert decision is FlushDecision.SCHEDULED
        assert tail.store.get_metric_count() == 3

        await tail.flush()

        [invocation] = sink.find("worker.invocation")
        assert invocation.value == 1
        assert invocation.timestamp == BASE_TS
        assert invocation.tags == {
            "scriptName": "my-worker",
            "executionModel": "stateless",
            "outcome": "ok",
            "versionId": "v1",
            "trigger": "fetch",
        }
        assert sink.find("worker.cpu_time.max")[0].value == 3
        assert sink.find("worker.wall_time.p99")[0].value == 10

        manual_timer.release()
        await tasks.wait_for_all()
        assert sink.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_durations_skipped(self, tail, tasks):
        tail.process_trace_items([trace_item()], tasks)

        assert tail.store.get_metric_count() == 1
        assert [p.name for p in tail.store.to_exported_payloads()] == ["worker.invocation"]

    @pytest.mark.asyncio
    async def test_toggles_disable_default_metrics(self, make_tail, tasks):
        tail = make_tail(
            default_metrics=DefaultMetricsConfig(cpu_time=False, wall_time=False, invocation=False)
        )

        decision = tail.process_trace_items([trace_item(cpu_time=3, wall_time=10)], tasks)

        assert decision is FlushDecision.IDLE
        assert tail.store.get_metric_count() == 0
        assert tasks.pending_count == 0

    @pytest.mark.asyncio
    async def test_invocations_combine_across_traces(self, tail, tasks, sink):
        tail.process_trace_items([trace_item(), trace_item()], tasks)
        tail.process_trace_items([trace_item()], tasks)

        await tail.flush()

        assert sink.find("worker.invocation")[0].value == 3

    @pytest.mark.asyncio
    async def test_clock_used_without_event_timestamp(self, sink, mock_logger, manual_timer, tasks):
        tail = MetricsTail(
            sinks=[sink],
            logger=mock_logger,
            clock=FixedClock(BASE_TS + 500),
            timer=manual_timer,
        )

        tail.process_trace_items([TraceItem(script_name="cron-job")], tasks)
        await tail.flush()

        [invocation] = sink.find("worker.invocation")
        assert invocation.timestamp == BASE_TS + 500
        assert invocation.tags["trigger"] == "unknown"
        assert invocation.tags["versionId"] is None


class TestCustomMetrics:
    @pytest.mark.asyncio
    async def test_channel_messages_aggregated(self, tail, tasks, sink):
        messages = [
            metric_message("COUNT", "orders", 2, {"region": "eu"}),
            metric_message("COUNT", "orders", 3, {"region": "eu"}),
            metric_message("GAUGE", "queue.depth", 7),
        ]

        tail.process_trace_items([trace_item(messages)], tasks)
        await tail.flush()

        [orders] = sink.find("orders")
        assert orders.value == 5
        assert orders.tags["region"] == "eu"
        assert orders.tags["scriptName"] == "my-worker"
        assert sink.find("queue.depth")[0].value == 7

    @pytest.mark.asyncio
    async def test_message_tags_override_global_tags(self, tail, tasks, sink):
        tail.process_trace_items(
            [trace_item([metric_message(name="x", tags={"outcome": "custom"})])], tasks
        )
        await tail.flush()

        assert sink.find("x")[0].tags["outcome"] == "custom"

    @pytest.mark.asyncio
    async def test_invalid_messages_skipped_with_warning(self, tail, tasks, sink, mock_logger):
        messages = [
            metric_message("TIMER", "bad"),
            "not a metric",
            metric_message(name="inf", value=float("inf")),
            metric_message(name="good"),
        ]

        tail.process_trace_items([trace_item(messages)], tasks)
        await tail.flush()

        assert mock_logger.warning.call_count == 3
        assert mock_logger.warning.call_args.args[0] == "Received invalid metric payload"
        assert len(sink.find("good")) == 1
        assert sink.find("bad") == []

    @pytest.mark.asyncio
    async def test_other_channels_ignored(self, tail, tasks):
        item = trace_item().model_copy(
            update={"diagnostics_channel_events": [channel_event(metric_message(), channel="other")]}
        )

        tail.process_trace_items([item], tasks)

        assert [p.name for p in tail.store.to_exported_payloads()] == ["worker.invocation"]


class TestFlushing:
    @pytest.mark.asyncio
    async def test_size_trigger(self, make_tail, tasks, sink):
        tail = make_tail(max_buffer_size=2)

        decision = tail.process_trace_items([trace_item([metric_message(name="orders")])], tasks)

        assert decision is FlushDecision.IMMEDIATE
        assert tail.store.get_metric_count() == 0
        await tasks.wait_for_all()
        assert sink.call_count == 1
        assert sorted(p.name for p in sink.batches[0]) == ["orders", "worker.invocation"]

    @pytest.mark.asyncio
    async def test_buffer_duration_capped(self, make_tail, tasks, manual_timer):
        tail = make_tail(max_buffer_duration=120)

        tail.process_trace_items([trace_item()], tasks)
        await tail.flush()
        manual_timer.release()
        await tasks.wait_for_all()

        assert tail.config.max_buffer_duration == 30
        assert manual_timer.requested == [30.0]

    @pytest.mark.asyncio
    async def test_flush_with_empty_buffer(self, tail, sink):
        assert await tail.flush() is None
        assert sink.call_count == 0

    @pytest.mark.asyncio
    async def test_scheduler_shares_sinks(self, tail, sink):
        assert tail.scheduler.sinks == [sink]


class TestRecorderEndToEnd:
    @pytest.mark.asyncio
    async def test_recorded_metrics_reach_sink(self, tail, tasks, sink, clock):
        channel = InMemoryDiagnosticsChannel(clock=clock)
        recorder = MetricsRecorder(channel)

        recorder.count("orders", 2, tags={"k": "v"})
        recorder.histogram(
            "latency", 10, options=HistogramOptions(aggregates=("sum",), percentiles=(0.5,))
        )
        recorder.histogram("latency", 30)
        recorder.gauge("connections", 4)

        item = trace_item().model_copy(update={"diagnostics_channel_events": channel.drain()})
        tail.process_trace_items([item], tasks)
        await tail.flush()

        assert sink.find("orders")[0].value == 2
        assert sink.find("orders")[0].tags["k"] == "v"
        assert sink.find("latency.sum")[0].value == 40
        assert sink.find("latency.p50")[0].value == 10
        assert sink.find("latency.max") == []
        assert sink.find("connections")[0].timestamp == clock.millis
