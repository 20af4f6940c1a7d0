"""
Fair counting semaphore for bounding in-flight trials.

release() hands its permit straight to the oldest waiter instead of
returning it to the pool, so a newly arriving acquire() can never jump
the queue and no wakeup is lost.
"""

import asyncio
from collections import deque
from typing import Deque

from ..exceptions import ValidationError


class BoundedSemaphore:
    """FIFO semaphore for a single asyncio event loop.

    The counter and waiter queue are only touched from the loop thread,
    so no lock is needed.

    Usage:
        semaphore = BoundedSemaphore(3)
        async with semaphore:
            await do_work()

    Attributes:
        permits: Permit count the semaphore was created with
    """

    def __init__(self, permits: int):
        """Initialize semaphore.

        Args:
            permits: Number of concurrent holders allowed (>= 1)
        """
        if isinstance(permits, bool) or not isinstance(permits, int) or permits < 1:
            raise ValidationError(f"permits must be a positive integer, got {permits!r}")
        self.permits = permits
        self._available = permits
        self._waiters: Deque[asyncio.Future] = deque()

    @property
    def available(self) -> int:
        """Permits not currently held."""
        return self._available

    @property
    def waiting(self) -> int:
        """Callers suspended in acquire()."""
        return sum(1 for w in self._waiters if not w.done())

    async def acquire(self) -> None:
        """Wait until a permit is available, then take it."""
        if self._available > 0 and not self.waiting:
            self._available -= 1
            return

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            # The permit may already have been handed over
            if waiter.done() and not waiter.cancelled():
                self.release()
            raise
        finally:
            try:
                self._waiters.remove(waiter)
            except ValueError:
                pass

    def release(self) -> None:
        """Hand a permit to the oldest waiter, or return it to the pool.

        Raises:
            ValidationError: If no permit is currently held
        """
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        if self._available >= self.permits:
            raise ValidationError("release() called more times than acquire()")
        self._available += 1

    async def __aenter__(self) -> "BoundedSemaphore":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
