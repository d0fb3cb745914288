import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class ConcurrencyLimiter:
    """Counting gate that caps how many conversions run at the same time.

    Callers beyond ``capacity`` wait in arrival order; the wait queue is unbounded.
    A slot is always given back when the task finishes, raises or is cancelled.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("limiter capacity must be at least 1")
        self.capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._active = 0
        self._pending = 0

    @property
    def active(self) -> int:
        """Tasks currently holding a slot."""
        return self._active

    @property
    def pending(self) -> int:
        """Tasks waiting for a slot."""
        return self._pending

    async def schedule(self, task: Callable[[], Awaitable[T]]) -> T:
        """Run ``task()`` once a slot is free and return its result."""
        self._pending += 1
        try:
            await self._semaphore.acquire()
        finally:
            self._pending -= 1

        self._active += 1
        try:
            return await task()
        finally:
            self._active -= 1
            self._semaphore.release()
