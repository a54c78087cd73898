"""
Application service: process-wide FIFO queue for upstream calls.

At most one enqueued task runs at any time. Each enqueue captures the current
tail and installs its own release future as the new tail synchronously, before
control returns to the event loop, so calls issued in the same tick still run
in call order. A failing task only fails its own caller; the queue moves on.
No timeout is imposed here; bounding a slow call is the upstream adapter's job.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


class CallSerializer:
    def __init__(self) -> None:
        self._tail: Optional[asyncio.Future] = None
        self._pending = 0

    @property
    def pending(self) -> int:
        """Number of tasks enqueued and not yet finished (running one included)."""
        return self._pending

    def enqueue(self, task: Callable[[], Awaitable[T]]) -> "asyncio.Task[T]":
        """Schedule *task* after every previously enqueued task.

        Args:
            task: Zero-argument coroutine function performing one upstream call.

        Returns:
            A Task resolving (or failing) with the task's own outcome.
        """
        loop = asyncio.get_running_loop()
        previous = self._tail
        released = loop.create_future()
        self._tail = released
        self._pending += 1
        return loop.create_task(self._run(task, previous, released))

    async def _run(
        self,
        task: Callable[[], Awaitable[T]],
        previous: Optional[asyncio.Future],
        released: asyncio.Future,
    ) -> T:
        try:
            if previous is not None and not previous.done():
                await asyncio.shield(previous)
            return await task()
        finally:
            self._pending -= 1
            if previous is None or previous.done():
                _release(released)
            else:
                # Cancelled while waiting: keep the successor behind our predecessor.
                previous.add_done_callback(lambda _: _release(released))


def _release(released: asyncio.Future) -> None:
    if not released.done():
        released.set_result(None)
