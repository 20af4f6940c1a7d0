"""
Timeout management for trial attempts.

Races one attempt against a deadline. The attempt is not cancelled when
the deadline fires: it keeps running detached and whatever it eventually
produces is discarded. Trials that need real cancellation must stop
themselves cooperatively.
"""

import asyncio
from typing import Awaitable, TypeVar
import logging

from ..exceptions import TimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def timeout_message(ms: float) -> str:
    return f"Operation timed out after {ms}ms"


def _discard_late_result(task: "asyncio.Future") -> None:
    """Retrieve a detached attempt's result so the loop never warns about it."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Discarding error from timed-out attempt: {exc}")
    else:
        logger.debug("Discarding late result from timed-out attempt")


class TimeoutGuard:
    """Races an awaitable against a deadline.

    Usage:
        outcome = await TimeoutGuard.guard(trial(), 5000)
    """

    @staticmethod
    async def guard(operation: Awaitable[T], ms: float) -> T:
        """Await an operation, giving up after ms milliseconds.

        Args:
            operation: Coroutine or future for one attempt
            ms: Deadline in milliseconds

        Returns:
            The operation's result, if it settles in time

        Raises:
            TimeoutError: If the deadline passes first
            Exception: Whatever the operation raises before the deadline
        """
        task = asyncio.ensure_future(operation)
        try:
            # asyncio.wait drops its own timer on both paths
            done, _ = await asyncio.wait({task}, timeout=ms / 1000)
        except asyncio.CancelledError:
            task.add_done_callback(_discard_late_result)
            raise

        if task in done:
            return task.result()

        task.add_done_callback(_discard_late_result)
        raise TimeoutError(timeout_message(ms))
