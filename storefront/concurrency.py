from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Coroutine
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_required(*awaitables: Awaitable[Any]) -> list[Any]:
    """Await every operation and return their results in order.

    Nothing is returned until all of them finish. If one fails the rest are
    cancelled and the first error propagates.
    """
    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class Deferred(Generic[T]):
    """A value that is already being computed and will be awaited later."""

    def __init__(self, coro: Coroutine[Any, Any, T], *, label: str = "deferred") -> None:
        self.label = label
        self._task: asyncio.Task[T] = asyncio.get_running_loop().create_task(coro)
        self._task.add_done_callback(self._log_failure)

    def _log_failure(self, task: asyncio.Task[T]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Deferred %s failed: %s", self.label, exc)

    @property
    def done(self) -> bool:
        return self._task.done()

    async def result(self) -> T:
        return await asyncio.shield(self._task)


def defer(coro: Coroutine[Any, Any, T], *, label: str = "deferred") -> Deferred[T]:
    return Deferred(coro, label=label)
