"""
Retry management with exponential backoff for trial attempts.

Every attempt is timeout-guarded. Any exception, a timeout included,
counts as a failed attempt; there is no filtering by exception type.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence
import logging

from ..config import EngineConfig
from ..exceptions import TimeoutError, TrialError
from ..models.result import TrialOutcome
from .timeout_manager import TimeoutGuard

logger = logging.getLogger(__name__)

TrialFactory = Callable[[], Awaitable[TrialOutcome]]
SleepFunc = Callable[[float], Awaitable[None]]

DEFAULT_BASE_DELAY_MS = 100.0


def error_message(error: BaseException) -> str:
    """Human-readable message for an attempt failure."""
    return str(error) or type(error).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_numeric_mapping(value: Any, what: str) -> None:
    if not isinstance(value, Mapping):
        raise TrialError(f"{what} must be a mapping, got {type(value).__name__}")
    for name, amount in value.items():
        if not isinstance(name, str) or not _is_number(amount):
            raise TrialError(
                f"{what} entry {name!r} must map a name to a number, got {amount!r}"
            )


def normalize_outcome(value: Any) -> TrialOutcome:
    """Accept a TrialOutcome, or a bare bool from verdict-only trials.

    A TrialOutcome is checked for shape as well: measurements must be a
    list of name -> number mappings and resource_use a name -> number
    mapping.

    Raises:
        TrialError: If the trial returned anything else, or a malformed outcome
    """
    if isinstance(value, bool):
        return TrialOutcome(passed=value)
    if not isinstance(value, TrialOutcome):
        raise TrialError(
            f"Trial returned {type(value).__name__}, expected TrialOutcome or bool"
        )

    if isinstance(value.measurements, (str, bytes, Mapping)) or not isinstance(
        value.measurements, Sequence
    ):
        raise TrialError(
            f"measurements must be a list, got {type(value.measurements).__name__}"
        )
    for measurement in value.measurements:
        _check_numeric_mapping(measurement, "measurement")
    _check_numeric_mapping(value.resource_use, "resource_use")
    return value


@dataclass
class RetryOutcome:
    """How a trial's attempt sequence resolved.

    Exactly one of outcome / error is set.
    """

    outcome: Optional[TrialOutcome]
    retry_count: int
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.outcome is not None


class RetryPolicy:
    """Repeats a timeout-guarded attempt with exponential backoff.

    Backoff before attempt k+1 is base_delay_ms * 2^(k-1): 100ms, 200ms,
    400ms, ... with the default base. No jitter, so runs are reproducible.

    Usage:
        policy = RetryPolicy()
        result = await policy.execute(trial_factory, retries=2, timeout_ms=5000)
        if not result.succeeded:
            print(result.error)

    Attributes:
        base_delay_ms: Delay before the second attempt
    """

    def __init__(
        self,
        base_delay_ms: float = DEFAULT_BASE_DELAY_MS,
        sleep: Optional[SleepFunc] = None,
        guard: Optional[TimeoutGuard] = None,
    ):
        """Initialize retry policy.

        Args:
            base_delay_ms: Base backoff delay in milliseconds
            sleep: Coroutine used to wait between attempts (seconds)
            guard: Timeout guard wrapping each attempt
        """
        self.base_delay_ms = base_delay_ms
        self._sleep = sleep or asyncio.sleep
        self._guard = guard or TimeoutGuard()

    @classmethod
    def from_config(cls, config: EngineConfig) -> "RetryPolicy":
        return cls(base_delay_ms=config.backoff_base_ms)

    def calculate_delay_ms(self, attempt: int) -> float:
        """Calculate delay after a failed attempt.

        Args:
            attempt: Attempt number that just failed (1-indexed)

        Returns:
            Delay in milliseconds
        """
        return self.base_delay_ms * (2 ** (attempt - 1))

    async def execute(
        self,
        trial: TrialFactory,
        retries: int,
        timeout_ms: float,
        operation_name: str = "trial",
    ) -> RetryOutcome:
        """Run up to retries + 1 attempts of a trial.

        Args:
            trial: Zero-argument factory producing one attempt
            retries: Extra attempts allowed after the first
            timeout_ms: Deadline for each attempt
            operation_name: Name for logging

        Returns:
            RetryOutcome; never raises for attempt failures
        """
        attempts = retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                outcome = normalize_outcome(
                    await self._guard.guard(trial(), timeout_ms)
                )
                return RetryOutcome(outcome=outcome, retry_count=attempt - 1)

            except Exception as e:
                last_error = e

                if attempt < attempts:
                    delay_ms = self.calculate_delay_ms(attempt)
                    logger.warning(
                        f"{operation_name} failed (attempt {attempt}/{attempts}), "
                        f"retrying in {delay_ms:.0f}ms: {error_message(e)}"
                    )
                    await self._sleep(delay_ms / 1000)
                else:
                    logger.error(
                        f"{operation_name} failed after {attempts} attempts: "
                        f"{error_message(e)}"
                    )

        return RetryOutcome(
            outcome=None,
            retry_count=retries,
            error=error_message(last_error),
            timed_out=isinstance(last_error, TimeoutError),
        )
