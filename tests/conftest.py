"""Pytest configuration and shared fixtures."""

from unittest.mock import Mock

import pytest

from metrics_tail.application.aggregation_store import AggregationStore
from metrics_tail.application.flush_scheduler import FlushScheduler
from metrics_tail.infrastructure.sinks.in_memory import InMemoryMetricSink
from metrics_tail.ports.logger import LoggerPort
from tests.builders import FixedClock, ManualTimer


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    return Mock(spec=LoggerPort)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def manual_timer():
    return ManualTimer()


@pytest.fixture
def sink():
    return InMemoryMetricSink()


@pytest.fixture
def store(mock_logger):
    return AggregationStore(logger=mock_logger)


@pytest.fixture
def scheduler(store, sink, manual_timer, mock_logger):
    """Scheduler flushing to one in-memory sink at 3 distinct metrics."""
    return FlushScheduler(
        store=store,
        sinks=[sink],
        max_buffer_size=3,
        max_buffer_duration=5.0,
        timer=manual_timer,
        logger=mock_logger,
    )
