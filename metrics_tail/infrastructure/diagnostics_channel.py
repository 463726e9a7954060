"""In-memory diagnostics channel used to capture published metric messages."""

from __future__ import annotations

from typing import Any

from ..domain.models import METRICS_CHANNEL_NAME, DiagnosticsChannelEvent
from ..ports.clock import ClockPort
from ..ports.diagnostics_channel import DiagnosticsChannelPort


class InMemoryDiagnosticsChannel(DiagnosticsChannelPort):
    """Buffers published messages as timestamped channel events.

    ``drain`` hands the captured events over, ready to be attached to a
    trace item.
    """

    def __init__(self, channel_name: str = METRICS_CHANNEL_NAME, clock: ClockPort | None = None):
        self._channel_name = channel_name
        self._clock = clock or self._create_default_clock()
        self._events: list[DiagnosticsChannelEvent] = []

    def _create_default_clock(self) -> ClockPort:
        from .system_clock import SystemClock

        return SystemClock()

    @property
    def channel_name(self) -> str:
        return self._channel_name

    def publish(self, message: dict[str, Any]) -> None:
        self._events.append(
            DiagnosticsChannelEvent(
                channel=self._channel_name,
                message=message,
                timestamp=self._clock.now_millis(),
            )
        )

    def drain(self) -> list[DiagnosticsChannelEvent]:
        """Return and forget every captured event."""
        events, self._events = self._events, []
        return events

    def __len__(self) -> int:
        return len(self._events)
