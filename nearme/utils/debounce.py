from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Delays a coroutine until calls to schedule() have been quiet for `delay` seconds.

    Scheduling replaces any timer that has not fired yet. Once a timer fires its
    coroutine runs as a task of its own and later schedules do not touch it.
    """

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, func: Callable[[], Awaitable[None]]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, func)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, func: Callable[[], Awaitable[None]]) -> None:
        self._handle = None
        task = asyncio.ensure_future(func())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced call failed", exc_info=exc)

    async def join(self) -> None:
        """Wait until no timer is armed and every fired call has finished."""
        loop = asyncio.get_running_loop()
        while self._handle is not None or self._tasks:
            if self._tasks:
                await asyncio.wait(set(self._tasks))
            else:
                await asyncio.sleep(max(self._handle.when() - loop.time(), 0))

    async def aclose(self) -> None:
        self.cancel()
        if self._tasks:
            await asyncio.wait(set(self._tasks))
