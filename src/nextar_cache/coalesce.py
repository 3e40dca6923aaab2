"""Request coalescing for identical in-flight reads."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")


class RequestCoalescer:
    """Share one in-flight fetch between concurrent callers with the same key.

    Share a single instance between hooks so that two components asking for
    the same page at the same time trigger one network call. The fetch runs
    in its own task: cancelling any caller, the first one included, leaves
    it running for the others.
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Future[Any]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._in_flight

    def __len__(self) -> int:
        return len(self._in_flight)

    async def run(self, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(fetch())
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        result: T = await asyncio.shield(task)
        return result

    def _forget(self, key: str, task: asyncio.Future[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Nobody may be left to await a failed fetch
        if not task.cancelled():
            task.exception()
