"""Timer implementation on top of the running asyncio event loop."""

import asyncio

from ..ports.timer import TimerPort


class AsyncioTimer(TimerPort):
    """Waits with ``asyncio.sleep``."""

    async def wait(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
