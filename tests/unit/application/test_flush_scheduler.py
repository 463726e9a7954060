"""Unit tests for FlushScheduler."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from metrics_tail.application.flush_scheduler import FlushScheduler
from metrics_tail.application.sink_fanout import SinkFanout
from metrics_tail.domain.enums import FlushDecision
from metrics_tail.infrastructure.background_tasks import BackgroundTasks
from metrics_tail.infrastructure.sinks.in_memory import InMemoryMetricSink
from metrics_tail.ports.timer import TimerPort
from tests.builders import FailingSink, metric_event


@pytest.fixture
def tasks(mock_logger):
    return BackgroundTasks(logger=mock_logger)


def fill(store, *names: str) -> None:
    for name in names:
        store.store_metric(metric_event(name=name))


@pytest.mark.asyncio
async def test_idle_when_store_empty(scheduler, tasks, sink):
    assert scheduler.on_batch_ingested(tasks) is FlushDecision.IDLE
    assert tasks.pending_count == 0
    assert scheduler.generation == 0
    assert not scheduler.is_scheduled


@pytest.mark.asyncio
async def test_schedules_timed_flush(scheduler, store, tasks, sink, manual_timer):
    fill(store, "a")

    assert scheduler.on_batch_ingested(tasks) is FlushDecision.SCHEDULED
    assert scheduler.is_scheduled
    assert scheduler.generation == 1

    await asyncio.sleep(0)
    assert manual_timer.requested == [5.0]
    assert sink.call_count == 0

    manual_timer.release()
    await tasks.wait_for_all()

    assert sink.call_count == 1
    assert [p.name for p in sink.batches[0]] == ["a"]
    assert store.get_metric_count() == 0
    assert not scheduler.is_scheduled


@pytest.mark.asyncio
async def test_coalesces_while_scheduled(scheduler, store, tasks, sink, manual_timer):
    fill(store, "a")
    scheduler.on_batch_ingested(tasks)
    fill(store, "b")

    assert scheduler.on_batch_ingested(tasks) is FlushDecision.COALESCED
    assert scheduler.generation == 1

    await asyncio.sleep(0)
    assert len(manual_timer.requested) == 1

    manual_timer.release()
    await tasks.wait_for_all()

    assert sink.call_count == 1
    assert sorted(p.name for p in sink.batches[0]) == ["a", "b"]


@pytest.mark.asyncio
async def test_size_trigger_flushes_exactly_once(scheduler, store, tasks, sink):
    fill(store, "a", "b", "c")

    assert scheduler.on_batch_ingested(tasks) is FlushDecision.IMMEDIATE
    assert store.get_metric_count() == 0

    await tasks.wait_for_all()
    assert sink.call_count == 1
    assert len(sink.batches[0]) == 3

    assert scheduler.on_batch_ingested(tasks) is FlushDecision.IDLE
    await tasks.wait_for_all()
    assert sink.call_count == 1


@pytest.mark.asyncio
async def test_immediate_flush_preempts_scheduled_timer(
    scheduler, store, tasks, sink, manual_timer, mock_logger
):
    fill(store, "a")
    assert scheduler.on_batch_ingested(tasks) is FlushDecision.SCHEDULED
    await asyncio.sleep(0)

    fill(store, "b", "c")
    assert scheduler.on_batch_ingested(tasks) is FlushDecision.IMMEDIATE
    assert not scheduler.is_scheduled

    manual_timer.release()
    await tasks.wait_for_all()

    # The stale timer woke up but did not flush a second time
    assert sink.call_count == 1
    assert sorted(p.name for p in sink.batches[0]) == ["a", "b", "c"]
    debug_messages = [c.args[0] for c in mock_logger.debug.call_args_list]
    assert "Scheduled flush superseded" in debug_messages

    # The next window only carries what arrived after the flush
    store.store_metric(metric_event(name="a", value=5))
    assert scheduler.on_batch_ingested(tasks) is FlushDecision.SCHEDULED
    await tasks.wait_for_all()

    assert sink.call_count == 2
    [payload] = sink.batches[1]
    assert payload.name == "a"
    assert payload.value == 5


@pytest.mark.asyncio
async def test_stale_timer_does_not_flush_newer_window(scheduler, store, tasks, sink, manual_timer):
    fill(store, "a")
    scheduler.on_batch_ingested(tasks)
    fill(store, "b", "c")
    scheduler.on_batch_ingested(tasks)

    fill(store, "d")
    assert scheduler.on_batch_ingested(tasks) is FlushDecision.SCHEDULED
    assert scheduler.generation == 3

    manual_timer.release()
    await tasks.wait_for_all()

    assert sink.call_count == 2
    assert [p.name for p in sink.batches[1]] == ["d"]


@pytest.mark.asyncio
async def test_generation_is_monotonic(scheduler, store, tasks, manual_timer):
    seen = [scheduler.generation]
    fill(store, "a")
    scheduler.on_batch_ingested(tasks)
    seen.append(scheduler.generation)
    fill(store, "b", "c")
    scheduler.on_batch_ingested(tasks)
    seen.append(scheduler.generation)
    await scheduler.perform_flush()
    seen.append(scheduler.generation)

    assert seen == sorted(seen)
    assert len(set(seen)) == len(seen)

    manual_timer.release()
    await tasks.wait_for_all()


@pytest.mark.asyncio
async def test_empty_flush_sends_nothing(scheduler, sink):
    assert await scheduler.perform_flush() is None
    assert sink.call_count == 0


@pytest.mark.asyncio
async def test_manual_flush_invalidates_pending_timer(scheduler, store, tasks, sink, manual_timer):
    fill(store, "a")
    scheduler.on_batch_ingested(tasks)

    report = await scheduler.perform_flush()
    assert report.ok
    assert report.payload_count == 1

    manual_timer.release()
    await tasks.wait_for_all()
    assert sink.call_count == 1


@pytest.mark.asyncio
async def test_sink_failures_reported_as_error(store, manual_timer, mock_logger):
    healthy = InMemoryMetricSink()
    scheduler = FlushScheduler(
        store=store,
        sinks=[healthy, FailingSink("connection refused")],
        max_buffer_size=10,
        max_buffer_duration=1,
        timer=manual_timer,
        logger=mock_logger,
    )
    fill(store, "a")

    report = await scheduler.perform_flush()

    assert report.failure_count == 1
    assert healthy.call_count == 1
    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args.args[0] == (
        "Failed to flush metrics to 1 sink(s): connection refused"
    )


@pytest.mark.asyncio
async def test_unexpected_fanout_error_is_contained(store, sink, manual_timer, mock_logger):
    fanout = Mock(spec=SinkFanout)
    fanout.dispatch = AsyncMock(side_effect=RuntimeError("fanout exploded"))
    scheduler = FlushScheduler(
        store=store,
        sinks=[sink],
        max_buffer_size=10,
        max_buffer_duration=1,
        timer=manual_timer,
        fanout=fanout,
        logger=mock_logger,
    )
    fill(store, "a")

    assert await scheduler.perform_flush() is None
    assert store.get_metric_count() == 0
    mock_logger.exception.assert_called_once()


@pytest.mark.asyncio
async def test_snapshot_error_clears_buffer_and_returns_to_idle(
    scheduler, store, tasks, sink, mock_logger
):
    fill(store, "a")
    store.drain = Mock(side_effect=RuntimeError("export failed"))

    assert await scheduler.perform_flush() is None
    assert sink.call_count == 0
    assert not scheduler.is_scheduled
    mock_logger.exception.assert_called_once()


@pytest.mark.asyncio
async def test_timer_failure_returns_scheduler_to_idle(store, sink, mock_logger):
    timer = Mock(spec=TimerPort)
    timer.wait = AsyncMock(side_effect=RuntimeError("timer broke"))
    tasks = BackgroundTasks(logger=mock_logger)
    scheduler = FlushScheduler(
        store=store,
        sinks=[sink],
        max_buffer_size=10,
        max_buffer_duration=1,
        timer=timer,
        logger=mock_logger,
    )
    fill(store, "a")

    scheduler.on_batch_ingested(tasks)
    await tasks.wait_for_all()

    assert not scheduler.is_scheduled
    assert sink.call_count == 0
    mock_logger.exception.assert_called_once()

    # A later batch arms a fresh timer instead of being coalesced forever
    assert scheduler.on_batch_ingested(tasks) is FlushDecision.SCHEDULED
    await tasks.wait_for_all()


@pytest.mark.asyncio
async def test_real_timer_flushes_after_duration(store, sink, mock_logger):
    tasks = BackgroundTasks(logger=mock_logger)
    scheduler = FlushScheduler(
        store=store,
        sinks=[sink],
        max_buffer_size=10,
        max_buffer_duration=0.01,
        logger=mock_logger,
    )
    fill(store, "a", "b")

    scheduler.on_batch_ingested(tasks)
    await tasks.wait_for_all(timeout=2)

    assert sink.call_count == 1
    assert len(sink.batches[0]) == 2


@pytest.mark.asyncio
async def test_buffer_duration_capped_without_config(store, sink, manual_timer, mock_logger):
    scheduler = FlushScheduler(
        store=store,
        sinks=[sink],
        max_buffer_size=10,
        max_buffer_duration=60,
        timer=manual_timer,
        logger=mock_logger,
    )
    tasks = BackgroundTasks(logger=mock_logger)
    fill(store, "a")

    scheduler.on_batch_ingested(tasks)
    manual_timer.release()
    await tasks.wait_for_all()

    assert manual_timer.requested == [30.0]
    assert sink.call_count == 1
