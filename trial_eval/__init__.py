"""
Trial Eval - Repeated-trial evaluation engine for non-deterministic agents.

This module provides:
- Bounded, FIFO-fair concurrent execution of N independent trials
- Per-attempt timeouts and retries with exponential backoff
- Aggregation into pass/fail counts, resource totals and latency percentiles
- Post-run metrics (accuracy, recall, precision, false-positive rate)
- Suites of named trials with combined metrics

Quick start:
    import asyncio
    from trial_eval import IterationRunner, RunOptions, TrialOutcome

    async def ask_agent():
        reply = await agent.ask("Add 2 + 3")
        return TrialOutcome(
            passed="5" in reply.text,
            measurements=[{"e2e": reply.elapsed_ms}],
            resource_use={"total": reply.tokens},
        )

    runner = IterationRunner()
    aggregate = asyncio.run(runner.run(ask_agent, RunOptions(iterations=30, retries=2)))

    # Check results
    print(aggregate.summary())
    print(runner.metrics.accuracy())
    for failure in runner.metrics.get_failed_iterations():
        print(f"  - {failure}")
"""

__version__ = "0.1.0"

# Core exports
from .config import Config, EngineConfig, LoggingConfig, configure_logging
from .exceptions import (
    TrialEvalError,
    ValidationError,
    TimeoutError,
    TrialError,
    NoResultsAvailable,
    ConfigurationError,
)

# Model exports
from .models import (
    RunOptions,
    Measurement,
    ResourceUse,
    ResultStatus,
    TrialOutcome,
    IterationResult,
    PercentileStats,
    AggregateResult,
)

# Execution exports
from .execution import BoundedSemaphore, TimeoutGuard, RetryPolicy, RetryOutcome

# Evaluation exports
from .evaluation import (
    ResultAggregator,
    MetricsFacade,
    calculate_percentile,
    calculate_latency_stats,
)

# Orchestration exports
from .orchestration import IterationRunner, EvalSuite, SuiteResult, run

__all__ = [
    # Version
    "__version__",
    # Config
    "Config",
    "EngineConfig",
    "LoggingConfig",
    "configure_logging",
    # Exceptions
    "TrialEvalError",
    "ValidationError",
    "TimeoutError",
    "TrialError",
    "NoResultsAvailable",
    "ConfigurationError",
    # Models
    "RunOptions",
    "Measurement",
    "ResourceUse",
    "ResultStatus",
    "TrialOutcome",
    "IterationResult",
    "PercentileStats",
    "AggregateResult",
    # Execution
    "BoundedSemaphore",
    "TimeoutGuard",
    "RetryPolicy",
    "RetryOutcome",
    # Evaluation
    "ResultAggregator",
    "MetricsFacade",
    "calculate_percentile",
    "calculate_latency_stats",
    # Orchestration
    "IterationRunner",
    "EvalSuite",
    "SuiteResult",
    "run",
]
