# extsync Auto-poll Scheduler
# Fixed-interval re-triggering of sync passes

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

logger = logging.getLogger(__name__)


class AutoPollScheduler:
    """
    Calls a coroutine function every ``interval`` seconds once armed.

    The tick shields the call it starts: disarming stops future ticks
    but lets a pass that is already running finish.
    """

    def __init__(self, callback: Callable[[], Awaitable[Any]], interval: float = 60.0):
        """
        Initialize scheduler.

        Args:
            callback: Coroutine function invoked on every tick.
            interval: Seconds between ticks.
        """
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        self.callback = callback
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def armed(self) -> bool:
        """Check if the recurring timer is running."""
        return self._task is not None

    def arm(self) -> bool:
        """
        Start the recurring timer unless it is already running.

        Must be called from a running event loop.

        Returns:
            True if a timer was started, False if one was already armed.
        """
        if self._task is not None:
            return False

        self._task = asyncio.get_running_loop().create_task(self._run(), name="extsync-autopoll")
        logger.debug("auto-poll armed (every %gs)", self.interval)
        return True

    def disarm(self) -> bool:
        """
        Cancel the recurring timer.

        Returns:
            True if a timer was cancelled, False if none was armed.
        """
        if self._task is None:
            return False

        self._task.cancel()
        self._task = None
        logger.debug("auto-poll disarmed")
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            logger.debug("auto-poll tick")
            try:
                await asyncio.shield(self.callback())
            except Exception:
                logger.exception("auto-poll callback failed")
