"""Sink port - the single capability every telemetry backend implements."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..domain.models import ExportedMetricPayload


class MetricSinkPort(ABC):
    """Delivery target for finalized metric batches.

    A sink either attempts the whole batch or fails for the whole batch.
    Sinks are shared across flush cycles and may run concurrently with
    other sinks.
    """

    @property
    def name(self) -> str:
        """Human readable sink name used in failure reports."""
        return type(self).__name__

    @abstractmethod
    async def send_metrics(self, payloads: Sequence[ExportedMetricPayload]) -> None:
        """Deliver a batch of exported metrics.

        Args:
            payloads: Resolved metrics of one flush

        Raises:
            Exception: Any error describing why the batch was not delivered
        """
        ...
