"""Sink printing each batch as a rich table."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from ...domain.models import ExportedMetricPayload
from ...ports.sink import MetricSinkPort


class ConsoleMetricSink(MetricSinkPort):
    """Renders flushed metrics to the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._flushes = 0

    @property
    def name(self) -> str:
        return "console"

    async def send_metrics(self, payloads: Sequence[ExportedMetricPayload]) -> None:
        self._flushes += 1
        table = Table(title=f"Flush #{self._flushes} ({len(payloads)} metrics)")
        table.add_column("Metric", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Value", justify="right", style="green")
        table.add_column("Tags", style="dim")

        for payload in payloads:
            tags = ", ".join(f"{k}={v}" for k, v in payload.tags.items() if v is not None)
            table.add_row(payload.name, payload.type.value, f"{payload.value:g}", tags)

        self.console.print(table)
