"""
Main runner for the trial evaluation engine.

The IterationRunner orchestrates one run:
1. Validate options
2. Launch every trial up front, throttled by a fair semaphore
3. Retry each trial under a per-attempt timeout
4. Collect one IterationResult per trial, in launch order
5. Aggregate and record the results for metric queries
"""

from typing import Any, List, Mapping, Optional, Union
import asyncio
import logging
import uuid

from ..config import Config
from ..evaluation.aggregator import ResultAggregator
from ..evaluation.metrics import MetricsFacade
from ..exceptions import ValidationError
from ..execution.retry_manager import RetryOutcome, RetryPolicy, TrialFactory
from ..execution.semaphore import BoundedSemaphore
from ..models.options import ProgressCallback, RunOptions
from ..models.result import AggregateResult, IterationResult, ResultStatus

logger = logging.getLogger(__name__)

OptionsArg = Union[RunOptions, Mapping[str, Any], None]


def resolve_options(config: Config, options: OptionsArg = None, **overrides: Any) -> RunOptions:
    """Validate and default run options.

    A RunOptions instance is used as given. A mapping (or keyword
    arguments) takes its unset fields from the engine config.

    Raises:
        ValidationError: If options are malformed
    """
    if isinstance(options, RunOptions):
        return RunOptions.coerce(options, **overrides)
    if options is not None and not isinstance(options, Mapping):
        raise ValidationError(
            f"options must be RunOptions or a mapping, got {type(options).__name__}"
        )

    values = dict(options or {})
    values.update(overrides)
    if "iterations" not in values:
        raise ValidationError("iterations is required")
    iterations = values.pop("iterations")
    on_progress = values.pop("on_progress", None)
    return RunOptions.from_config(config.engine, iterations, on_progress, **values)


class IterationRunner:
    """Runs N independent trials under a concurrency cap.

    Trial failures never escape run(); they are recorded in the
    corresponding IterationResult. Only malformed options raise.

    Usage:
        runner = IterationRunner()
        aggregate = await runner.run(my_trial, RunOptions(iterations=30))
        print(aggregate.summary())
        print(runner.metrics.accuracy())

    Attributes:
        config: Configuration supplying option defaults
        retry_policy: Retry/backoff policy applied to each trial
        aggregator: Reducer for the collected results
        metrics: Metrics over the most recent run
        name: Label used in log output
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        retry_policy: Optional[RetryPolicy] = None,
        aggregator: Optional[ResultAggregator] = None,
        name: str = "trial",
    ):
        """Initialize runner.

        Args:
            config: Configuration (uses defaults if not provided). A given
                config also sets the package log level.
            retry_policy: Retry policy (built from config if not provided)
            aggregator: Result aggregator (default dimensions if not provided)
            name: Label for log output
        """
        if config is not None:
            config.logging.apply()
        self.config = config or Config.default()
        self.retry_policy = retry_policy or RetryPolicy.from_config(self.config.engine)
        self.aggregator = aggregator or ResultAggregator()
        self.metrics = MetricsFacade()
        self.name = name

    async def run(
        self,
        trial_factory: TrialFactory,
        options: OptionsArg = None,
        **overrides: Any,
    ) -> AggregateResult:
        """Run every trial to completion and aggregate the results.

        Args:
            trial_factory: Zero-argument factory producing one attempt
            options: RunOptions or a mapping of option fields
            **overrides: Individual option fields

        Returns:
            AggregateResult for this run (also recorded in self.metrics)

        Raises:
            ValidationError: If options or the trial factory are malformed
        """
        opts = resolve_options(self.config, options, **overrides)
        if not callable(trial_factory):
            raise ValidationError("trial_factory must be callable")

        run_id = str(uuid.uuid4())[:8]
        total = opts.iterations
        logger.info(
            f"[{run_id}] Running {self.name}: {total} iteration(s), "
            f"concurrency={opts.concurrency}, retries={opts.retries}, "
            f"timeout={opts.timeout_ms}ms"
        )

        semaphore = BoundedSemaphore(opts.concurrency)
        results: List[Optional[IterationResult]] = [None] * total
        completed = 0

        async def run_iteration(index: int) -> None:
            nonlocal completed

            await semaphore.acquire()
            try:
                attempt = await self.retry_policy.execute(
                    trial_factory,
                    opts.retries,
                    opts.timeout_ms,
                    operation_name=f"[{run_id}] {self.name} #{index}",
                )
            finally:
                semaphore.release()

            result = self._build_result(index, attempt)
            results[index] = result
            logger.debug(f"[{run_id}] {result}")

            completed += 1
            self._report_progress(run_id, opts.on_progress, completed, total)

        await asyncio.gather(*(run_iteration(i) for i in range(total)))

        aggregate = self.aggregator.aggregate(results)
        self.metrics.record(aggregate)
        logger.info(f"[{run_id}] {self.name}: {aggregate.summary()}")
        return aggregate

    def _build_result(self, index: int, attempt: RetryOutcome) -> IterationResult:
        """Turn a resolved attempt sequence into an IterationResult.

        Args:
            index: Launch index of the trial
            attempt: How the attempt sequence resolved

        Returns:
            IterationResult for the trial
        """
        outcome = attempt.outcome
        if outcome is None:
            return IterationResult(
                index=index,
                passed=False,
                error=attempt.error,
                retry_count=attempt.retry_count,
                status=ResultStatus.TIMEOUT if attempt.timed_out else ResultStatus.ERROR,
            )

        passed = bool(outcome.passed)
        return IterationResult(
            index=index,
            passed=passed,
            measurements=outcome.measurements,
            resource_use=outcome.resource_use,
            error=outcome.error,
            retry_count=attempt.retry_count,
            status=ResultStatus.PASSED if passed else ResultStatus.FAILED,
        )

    def _report_progress(
        self,
        run_id: str,
        on_progress: Optional[ProgressCallback],
        completed: int,
        total: int,
    ) -> None:
        if on_progress is None:
            return
        try:
            on_progress(completed, total)
        except Exception as e:
            logger.warning(f"[{run_id}] Progress callback failed: {e}")


async def run(
    trial_factory: TrialFactory,
    options: OptionsArg = None,
    config: Optional[Config] = None,
    **overrides: Any,
) -> AggregateResult:
    """Run trials with a throwaway IterationRunner.

    Example:
        aggregate = await run(my_trial, iterations=10, concurrency=2)
    """
    runner = IterationRunner(config=config)
    return await runner.run(trial_factory, options, **overrides)
