#!/usr/bin/env python3
"""
Metrics Tail Replay

Replays recorded trace items through a MetricsTail so that buffering,
aggregation and sink output can be inspected locally.
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import dataclass
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel

from metrics_tail.application.metrics_tail import MetricsTail
from metrics_tail.domain.enums import FlushDecision
from metrics_tail.domain.models import TraceItem
from metrics_tail.infrastructure.background_tasks import BackgroundTasks
from metrics_tail.infrastructure.config import (
    DatadogSinkConfig,
    DefaultMetricsConfig,
    MetricsTailConfig,
    OtelSinkConfig,
)
from metrics_tail.infrastructure.sinks import (
    ConsoleMetricSink,
    DatadogMetricSink,
    InMemoryMetricSink,
    OtelMetricSink,
)
from metrics_tail.ports.sink import MetricSinkPort


@dataclass
class ReplayResult:
    """Summary of a replay run."""

    trace_items: int
    batches: int
    flushes: int
    payloads: int
    immediate_flushes: int


def load_trace_items(path: Path) -> list[TraceItem]:
    """Load trace items from a JSON array or a JSONL file."""
    text = path.read_text()
    stripped = text.lstrip()
    if stripped.startswith("["):
        records = json.loads(text)
    else:
        records = [json.loads(line) for line in text.splitlines() if line.strip()]
    return [TraceItem.model_validate(record) for record in records]


async def replay(
    trace_items: list[TraceItem],
    tail: MetricsTail,
    recorder: InMemoryMetricSink,
    batch_size: int,
) -> ReplayResult:
    """Feed trace items to the tail in batches and wait for every flush."""
    tasks = BackgroundTasks()
    batches = 0
    immediate = 0

    for start in range(0, len(trace_items), batch_size):
        decision = tail.process_trace_items(trace_items[start : start + batch_size], tasks)
        batches += 1
        if decision is FlushDecision.IMMEDIATE:
            immediate += 1

    await tasks.wait_for_all()
    await tail.flush()

    return ReplayResult(
        trace_items=len(trace_items),
        batches=batches,
        flushes=recorder.call_count,
        payloads=len(recorder.payloads),
        immediate_flushes=immediate,
    )


@click.command()
@click.argument("trace_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--batch-size", "-b", default=10, show_default=True, type=click.IntRange(min=1))
@click.option("--max-buffer-size", default=100, show_default=True, type=click.IntRange(min=1))
@click.option(
    "--max-buffer-duration",
    default=0.1,
    show_default=True,
    type=click.FloatRange(min=0, min_open=True),
    help="Seconds to buffer before a timed flush (capped at 30)",
)
@click.option("--no-default-metrics", is_flag=True, help="Disable worker.* default metrics")
@click.option("--datadog", is_flag=True, help="Also send to Datadog (needs DD_API_KEY)")
@click.option("--otel-endpoint", default=None, help="Also send to this OTLP/HTTP metrics endpoint")
@click.option("--quiet", "-q", is_flag=True, help="Do not print flushed batches")
def main(
    trace_file: Path,
    batch_size: int,
    max_buffer_size: int,
    max_buffer_duration: float,
    no_default_metrics: bool,
    datadog: bool,
    otel_endpoint: str | None,
    quiet: bool,
) -> None:
    """Replay TRACE_FILE (JSON array or JSONL of trace items) through a metrics tail."""
    console = Console()

    try:
        trace_items = load_trace_items(trace_file)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]✗ Invalid trace file: {e}[/red]")
        sys.exit(1)

    recorder = InMemoryMetricSink(name="replay")
    sinks: list[MetricSinkPort] = [recorder]
    if not quiet:
        sinks.append(ConsoleMetricSink(console=console))
    if datadog:
        sinks.append(DatadogMetricSink(DatadogSinkConfig()))
    if otel_endpoint:
        sinks.append(OtelMetricSink(OtelSinkConfig(endpoint=otel_endpoint)))

    enabled = not no_default_metrics
    config = MetricsTailConfig(
        max_buffer_size=max_buffer_size,
        max_buffer_duration=max_buffer_duration,
        default_metrics=DefaultMetricsConfig(cpu_time=enabled, wall_time=enabled, invocation=enabled),
    )
    tail = MetricsTail(sinks=sinks, config=config)

    result = asyncio.run(replay(trace_items, tail, recorder, batch_size))

    summary = f"""
[bold]Trace items:[/bold] {result.trace_items}
[bold]Batches:[/bold] {result.batches}
[bold]Flushes:[/bold] {result.flushes} ({result.immediate_flushes} size-triggered)
[bold]Payloads sent:[/bold] {result.payloads}
"""
    console.print(Panel(summary.strip(), title="Replay summary", border_style="green"))


if __name__ == "__main__":
    main()
