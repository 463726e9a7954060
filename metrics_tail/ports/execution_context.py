"""Execution context port for detached background work."""

from abc import ABC, abstractmethod
from collections.abc import Coroutine
from typing import Any


class ExecutionContextPort(ABC):
    """Host hook that keeps a unit of work alive until its background work ends.

    Flush timers and sink dispatches are registered here instead of being
    awaited by the ingesting call.
    """

    @abstractmethod
    def wait_until(self, work: Coroutine[Any, Any, Any]) -> None:
        """Run ``work`` in the background and keep the unit alive until it finishes.

        Args:
            work: Coroutine to run detached from the caller
        """
        ...
