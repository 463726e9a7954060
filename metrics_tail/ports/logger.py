"""Logger port used by every metrics_tail component."""

from abc import ABC, abstractmethod
from typing import Any


class LoggerPort(ABC):
    """Leveled logging with structured fields.

    Keyword arguments are structured context (``metric_count=3``,
    ``sink="datadog"``) kept apart from the human readable message, so
    adapters can render or index them.
    """

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None: ...

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None: ...

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None: ...

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None: ...

    @abstractmethod
    def exception(self, message: str, exc_info: BaseException | None = None, **kwargs: Any) -> None:
        """Log an error together with a traceback.

        Args:
            message: What failed
            exc_info: The caught exception; the one being handled when omitted
        """
        ...
