"""
Tests for the execution layer of the trial evaluation engine.

Tests:
- Fair semaphore
- Timeout guard
- Retry policy with backoff
"""

import asyncio

import pytest

from trial_eval import TrialOutcome
from trial_eval.exceptions import TimeoutError, TrialError, ValidationError
from trial_eval.execution import (
    BoundedSemaphore,
    RetryPolicy,
    TimeoutGuard,
    error_message,
)


def flaky_trial(failures: int, message: str = "Transient error"):
    """Trial factory that raises on its first `failures` attempts."""
    calls = {"count": 0}

    async def trial():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise TrialError(f"{message} {calls['count']}")
        return TrialOutcome(passed=True, measurements=[{"e2e": 10.0}])

    return trial, calls


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ============================================================================
# Semaphore Tests
# ============================================================================


class TestBoundedSemaphore:
    """Test FIFO semaphore."""

    def test_rejects_non_positive_permits(self):
        for permits in (0, -1, 1.5, True):
            with pytest.raises(ValidationError):
                BoundedSemaphore(permits)

    def test_acquire_within_capacity_does_not_wait(self):
        async def scenario():
            semaphore = BoundedSemaphore(2)
            await semaphore.acquire()
            await semaphore.acquire()
            return semaphore.available, semaphore.waiting

        assert asyncio.run(scenario()) == (0, 0)

    def test_release_hands_permit_to_oldest_waiter(self):
        """Waiters resume in the order they queued."""

        async def scenario():
            semaphore = BoundedSemaphore(1)
            order = []

            async def worker(name):
                await semaphore.acquire()
                order.append(name)
                await asyncio.sleep(0)
                semaphore.release()

            await semaphore.acquire()
            tasks = [asyncio.ensure_future(worker(n)) for n in ("a", "b", "c")]
            await asyncio.sleep(0)
            assert semaphore.waiting == 3

            semaphore.release()
            await asyncio.gather(*tasks)
            return order, semaphore.available

        order, available = asyncio.run(scenario())
        assert order == ["a", "b", "c"]
        assert available == 1

    def test_release_does_not_let_newcomer_jump_queue(self):
        """A permit handed to a waiter is not up for grabs."""

        async def scenario():
            semaphore = BoundedSemaphore(1)
            order = []

            async def worker(name):
                await semaphore.acquire()
                order.append(name)
                semaphore.release()

            await semaphore.acquire()
            waiter = asyncio.ensure_future(worker("queued"))
            await asyncio.sleep(0)

            semaphore.release()
            assert semaphore.available == 0
            newcomer = asyncio.ensure_future(worker("newcomer"))
            await asyncio.gather(waiter, newcomer)
            return order

        assert asyncio.run(scenario()) == ["queued", "newcomer"]

    def test_cancelled_waiter_is_skipped(self):
        async def scenario():
            semaphore = BoundedSemaphore(1)
            await semaphore.acquire()

            cancelled = asyncio.ensure_future(semaphore.acquire())
            survivor = asyncio.ensure_future(semaphore.acquire())
            await asyncio.sleep(0)

            cancelled.cancel()
            await asyncio.sleep(0)
            semaphore.release()
            await survivor
            return semaphore.available, semaphore.waiting

        assert asyncio.run(scenario()) == (0, 0)

    def test_async_context_manager(self):
        async def scenario():
            semaphore = BoundedSemaphore(1)
            async with semaphore:
                inside = semaphore.available
            return inside, semaphore.available

        assert asyncio.run(scenario()) == (0, 1)

    def test_unmatched_release_rejected(self):
        async def scenario():
            semaphore = BoundedSemaphore(2)
            await semaphore.acquire()
            semaphore.release()
            with pytest.raises(ValidationError):
                semaphore.release()
            return semaphore.available

        assert asyncio.run(scenario()) == 2


# ============================================================================
# Timeout Guard Tests
# ============================================================================


class TestTimeoutGuard:
    """Test timeout guard."""

    def test_fast_operation_returns_result(self):
        async def fast():
            return 42

        assert asyncio.run(TimeoutGuard.guard(fast(), 1000)) == 42

    def test_slow_operation_times_out(self):
        async def slow():
            await asyncio.sleep(5)

        with pytest.raises(TimeoutError) as exc_info:
            asyncio.run(TimeoutGuard.guard(slow(), 20))

        assert str(exc_info.value) == "Operation timed out after 20ms"

    def test_operation_error_propagates(self):
        async def broken():
            raise ValueError("boom")

        with pytest.raises(ValueError) as exc_info:
            asyncio.run(TimeoutGuard.guard(broken(), 1000))

        assert "boom" in str(exc_info.value)

    def test_timed_out_operation_is_not_cancelled(self):
        """Work keeps running after the deadline; its result is discarded."""

        async def scenario():
            finished = asyncio.Event()

            async def slow():
                await asyncio.sleep(0.05)
                finished.set()
                raise RuntimeError("late failure")

            with pytest.raises(TimeoutError):
                await TimeoutGuard.guard(slow(), 10)

            await asyncio.wait_for(finished.wait(), timeout=1)
            await asyncio.sleep(0)
            return finished.is_set()

        assert asyncio.run(scenario())


# ============================================================================
# Retry Policy Tests
# ============================================================================


class TestRetryPolicy:
    """Test retry policy."""

    @pytest.fixture
    def sleep(self):
        return RecordingSleep()

    @pytest.fixture
    def policy(self, sleep):
        return RetryPolicy(sleep=sleep)

    def test_successful_operation_no_retry(self, policy, sleep):
        trial, calls = flaky_trial(failures=0)

        result = asyncio.run(policy.execute(trial, retries=3, timeout_ms=1000))

        assert result.succeeded
        assert result.retry_count == 0
        assert result.error is None
        assert calls["count"] == 1
        assert sleep.delays == []

    def test_retry_on_failure_then_success(self, policy):
        """Failing k times then succeeding reports retry_count == k."""
        trial, calls = flaky_trial(failures=2)

        result = asyncio.run(policy.execute(trial, retries=3, timeout_ms=1000))

        assert result.succeeded
        assert result.outcome.passed
        assert result.retry_count == 2
        assert calls["count"] == 3

    def test_retry_exhausted_keeps_last_error(self, policy):
        trial, calls = flaky_trial(failures=10, message="Always fails")

        result = asyncio.run(policy.execute(trial, retries=2, timeout_ms=1000))

        assert not result.succeeded
        assert result.outcome is None
        assert result.retry_count == 2
        assert result.error == "Always fails 3"
        assert not result.timed_out
        assert calls["count"] == 3

    def test_no_retries_means_single_attempt(self, policy, sleep):
        trial, calls = flaky_trial(failures=1)

        result = asyncio.run(policy.execute(trial, retries=0, timeout_ms=1000))

        assert not result.succeeded
        assert result.retry_count == 0
        assert calls["count"] == 1
        assert sleep.delays == []

    def test_backoff_doubles_between_attempts(self, policy, sleep):
        """Backoff is 100ms, 200ms, 400ms with no jitter."""
        trial, _ = flaky_trial(failures=10)

        asyncio.run(policy.execute(trial, retries=3, timeout_ms=1000))

        assert sleep.delays == pytest.approx([0.1, 0.2, 0.4])

    def test_calculate_delay(self):
        policy = RetryPolicy(base_delay_ms=50)
        assert policy.calculate_delay_ms(1) == 50
        assert policy.calculate_delay_ms(2) == 100
        assert policy.calculate_delay_ms(4) == 400

    def test_every_exception_type_is_retried(self, policy):
        """There is no filtering by exception type."""
        errors = [KeyError("k"), TypeError("t")]

        async def trial():
            if errors:
                raise errors.pop(0)
            return TrialOutcome(passed=True)

        result = asyncio.run(policy.execute(trial, retries=2, timeout_ms=1000))

        assert result.succeeded
        assert result.retry_count == 2

    def test_timeouts_are_retried_and_reported(self, policy):
        async def trial():
            await asyncio.sleep(5)

        result = asyncio.run(policy.execute(trial, retries=1, timeout_ms=10))

        assert not result.succeeded
        assert result.timed_out
        assert result.retry_count == 1
        assert "timed out" in result.error

    def test_failed_outcome_is_not_retried(self, policy):
        """Only raising triggers a retry; passed=False ends the sequence."""
        calls = {"count": 0}

        async def trial():
            calls["count"] += 1
            return TrialOutcome(passed=False, error="wrong tool called")

        result = asyncio.run(policy.execute(trial, retries=3, timeout_ms=1000))

        assert result.succeeded
        assert not result.outcome.passed
        assert calls["count"] == 1

    def test_bool_verdict_is_accepted(self, policy):
        async def trial():
            return True

        result = asyncio.run(policy.execute(trial, retries=0, timeout_ms=1000))

        assert result.outcome == TrialOutcome(passed=True)

    def test_unexpected_return_value_counts_as_failure(self, policy):
        async def trial():
            return {"passed": True}

        result = asyncio.run(policy.execute(trial, retries=0, timeout_ms=1000))

        assert not result.succeeded
        assert "expected TrialOutcome" in result.error

    @pytest.mark.parametrize(
        "outcome",
        [
            TrialOutcome(passed=True, measurements=[5.0]),
            TrialOutcome(passed=True, measurements={"e2e": 5.0}),
            TrialOutcome(passed=True, measurements=[{"e2e": "fast"}]),
            TrialOutcome(passed=True, resource_use={"total": None}),
            TrialOutcome(passed=True, resource_use=12),
        ],
    )
    def test_malformed_outcome_counts_as_failure(self, policy, outcome):
        calls = {"count": 0}

        async def trial():
            calls["count"] += 1
            return outcome

        result = asyncio.run(policy.execute(trial, retries=1, timeout_ms=1000))

        assert not result.succeeded
        assert calls["count"] == 2
        assert result.retry_count == 1
        assert "must" in result.error

    def test_error_message_falls_back_to_type_name(self):
        assert error_message(ValueError()) == "ValueError"
        assert error_message(ValueError("bad")) == "bad"
