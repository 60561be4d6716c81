"""Debounced refresh scheduling for auto-refresh."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, Hashable, Union

import structlog

logger = structlog.get_logger()

RefreshCallback = Callable[[], Union[None, Awaitable[Any]]]


class RefreshScheduler:
    """
    Run a callback once a key has been quiet for ``delay`` seconds.

    Every ``schedule`` call for a key cancels the pending run for that key
    and starts the quiescence window again, so a burst of edits produces one
    refresh after the burst ends.

    Example:
        >>> scheduler = RefreshScheduler(delay=2.0)
        >>> scheduler.schedule(path, lambda: refresh(path))
    """

    def __init__(self, delay: float = 2.0):
        self.delay = delay
        self._tasks: Dict[Hashable, asyncio.Task] = {}

    def schedule(self, key: Hashable, callback: RefreshCallback) -> asyncio.Task:
        """
        (Re)start the quiescence window for ``key``.

        Must be called from a running event loop.
        """
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(self._run(key, callback))
        self._tasks[key] = task
        return task

    async def _run(self, key: Hashable, callback: RefreshCallback) -> None:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            logger.debug("refresh_rescheduled", key=str(key))
            raise

        # Leave the table before running so the callback can schedule again
        if self._tasks.get(key) is asyncio.current_task():
            del self._tasks[key]

        try:
            outcome = callback()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error("scheduled_refresh_failed", key=str(key), error=str(e), exc_info=True)

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending run for ``key``; returns whether one existed."""
        task = self._tasks.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def cancel_all(self) -> None:
        for key in list(self._tasks):
            self.cancel(key)

    def is_pending(self, key: Hashable) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    @property
    def pending(self) -> int:
        """Number of keys waiting to run."""
        return sum(1 for task in self._tasks.values() if not task.done())
