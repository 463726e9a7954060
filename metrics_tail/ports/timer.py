"""Timer port used by the flush scheduler to wait out a buffering window."""

from abc import ABC, abstractmethod


class TimerPort(ABC):
    """Abstract suspension point for duration-bounded waits."""

    @abstractmethod
    async def wait(self, seconds: float) -> None:
        """Suspend the caller for ``seconds``.

        Args:
            seconds: Duration to wait, already clamped by the caller
        """
        ...
