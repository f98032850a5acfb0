"""
Serial task queue.

Runs submitted coroutines one at a time in submission order. Used to keep
generation submissions from a single client from racing each other.
"""

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Thunk = Callable[[], Awaitable[Any]]


class SerialTaskQueue:
    """
    FIFO work queue with a single execution slot.

    Usage:
        queue = SerialTaskQueue()
        result = await queue.submit(lambda: do_work(arg))

    A failing or self-cancelling task rejects only its own future; the
    queue keeps draining. Futures cancelled by the caller before their turn
    are skipped.
    No priority, cancellation or timeout is applied here, each task owns
    its own timeout.
    """

    def __init__(self, name: str = "default"):
        self.name = name
        self._queue: Deque[Tuple[Thunk, asyncio.Future]] = deque()
        self._slot = asyncio.Semaphore(1)
        self._drainer: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        """Number of tasks waiting to run."""
        return len(self._queue)

    @property
    def running(self) -> bool:
        return self._drainer is not None and not self._drainer.done()

    def submit(self, task: Callable[[], Awaitable[T]]) -> "asyncio.Future[T]":
        """
        Enqueue a task and return a future for its result.

        Args:
            task: Zero-argument callable returning an awaitable

        Returns:
            Future resolved with the task's result or exception
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.append((task, future))
        logger.debug(f"Queue [{self.name}]: enqueued task, {len(self._queue)} waiting")

        if not self.running:
            self._drainer = loop.create_task(self._drain())
        return future

    async def _drain(self):
        while self._queue:
            task, future = self._queue.popleft()
            async with self._slot:
                if future.cancelled():
                    continue
                try:
                    result = await task()
                except asyncio.CancelledError:
                    future.cancel()
                    # Only stop draining when the drainer itself is being cancelled
                    if asyncio.current_task().cancelling():
                        raise
                    logger.debug(f"Queue [{self.name}]: task cancelled")
                except Exception as e:
                    logger.debug(f"Queue [{self.name}]: task failed: {type(e).__name__}")
                    if not future.done():
                        future.set_exception(e)
                else:
                    if not future.done():
                        future.set_result(result)
