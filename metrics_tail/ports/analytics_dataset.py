"""Analytics dataset port - a binding that accepts individual data points."""

from abc import ABC, abstractmethod
from typing import Any


class AnalyticsDatasetPort(ABC):
    """Write-only dataset such as an analytics engine binding."""

    @abstractmethod
    def write_data_point(self, point: dict[str, Any]) -> None:
        """Write one data point.

        Args:
            point: Mapping with ``indexes``, ``blobs`` and ``doubles`` lists
        """
        ...
