"""Clock port abstraction for time handling.

Decouples metric timestamping from system time so that tests can
control the timestamps attached to default metrics and recorded events.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    """Abstract clock interface for time operations."""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time as a timezone-aware datetime.

        Note:
            Implementations MUST return timezone-aware datetimes.
        """
        ...

    def now_millis(self) -> int:
        """Current time in epoch milliseconds."""
        return int(self.now().timestamp() * 1000)
