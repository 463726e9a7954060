"""Diagnostics channel port used by instrumented code to publish metrics."""

from abc import ABC, abstractmethod
from typing import Any


class DiagnosticsChannelPort(ABC):
    """Named channel that carries raw messages into the trace."""

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Name the messages are tagged with."""
        ...

    @abstractmethod
    def publish(self, message: dict[str, Any]) -> None:
        """Publish a message on the channel.

        Args:
            message: Raw message, stored as-is
        """
        ...
