"""Execution context that tracks detached asyncio tasks.

The host awaits ``wait_for_all`` before considering its unit of work
complete, so flush timers and sink dispatches are never abandoned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from ..ports.execution_context import ExecutionContextPort
from ..ports.logger import LoggerPort


class BackgroundTasks(ExecutionContextPort):
    """Keeps strong references to background tasks until they finish."""

    def __init__(self, logger: LoggerPort | None = None) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._logger = logger or self._create_default_logger()

    def _create_default_logger(self) -> LoggerPort:
        """Create a default logger if none provided."""
        from .simple_logger import SimpleLogger

        return SimpleLogger()

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    def wait_until(self, work: Coroutine[Any, Any, Any]) -> None:
        """Schedule ``work`` on the running loop and track it."""
        task = asyncio.ensure_future(work)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.exception("Background task failed", exc_info=error)

    async def wait_for_all(self, timeout: float | None = None) -> None:
        """Wait until every tracked task, including ones spawned meanwhile, is done.

        Args:
            timeout: Give up and cancel the remaining tasks after this many seconds
        """
        try:
            await asyncio.wait_for(self._drain(), timeout=timeout)
        except TimeoutError:
            self._logger.warning(
                "Timed out waiting for background tasks, cancelling",
                pending=len(self._tasks),
            )
            await self.cancel_all()

    async def _drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
