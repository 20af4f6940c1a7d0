"""
Execution layer for the trial evaluation engine.

Handles:
- Concurrency limiting (fair semaphore)
- Timeout management
- Retry logic
"""

from .semaphore import BoundedSemaphore
from .timeout_manager import TimeoutGuard, timeout_message
from .retry_manager import RetryPolicy, RetryOutcome, TrialFactory, error_message

__all__ = [
    # Concurrency
    "BoundedSemaphore",
    # Timeout
    "TimeoutGuard",
    "timeout_message",
    # Retry
    "RetryPolicy",
    "RetryOutcome",
    "TrialFactory",
    "error_message",
]
