"""
Result aggregation for the trial evaluation engine.

Reduces the launch-ordered list of IterationResults from one run into
pass/fail counts, resource totals and per-dimension latency statistics.
"""

from typing import Dict, Iterable, List, Sequence
import logging

from ..models.result import (
    E2E,
    AggregateResult,
    IterationResult,
    PercentileStats,
)
from .statistics import calculate_latency_stats

logger = logging.getLogger(__name__)

DEFAULT_DIMENSIONS = (E2E,)


class ResultAggregator:
    """Reduces iteration results into an AggregateResult.

    Samples are flattened in iteration order, then measurement order
    within an iteration. Wall-clock completion order never enters the
    reduction.

    Usage:
        aggregator = ResultAggregator()
        aggregate = aggregator.aggregate(iteration_results)
        print(aggregate.latency_stats["e2e"].p95)

    Attributes:
        dimensions: Latency dimensions always reported, even without samples
    """

    def __init__(self, dimensions: Sequence[str] = DEFAULT_DIMENSIONS):
        self.dimensions = tuple(dimensions)

    def aggregate(self, results: Sequence[IterationResult]) -> AggregateResult:
        """Reduce one run's results.

        Args:
            results: Iteration results ordered by launch index

        Returns:
            Immutable AggregateResult
        """
        iterations = len(results)
        successes = sum(1 for r in results if r.passed)

        per_iteration = tuple(dict(r.resource_use) for r in results)
        components: Dict[str, int] = {}
        for usage in per_iteration:
            for name, amount in usage.items():
                components[name] = components.get(name, 0) + int(amount)

        aggregate = AggregateResult(
            iterations=iterations,
            successes=successes,
            failures=iterations - successes,
            per_iteration_passed=tuple(r.passed for r in results),
            iteration_details=tuple(results),
            resource_use_total=components.get("total", 0),
            resource_use_per_iteration=per_iteration,
            resource_use_components=components,
            latency_stats=self._latency_stats(results),
        )
        logger.debug(f"Aggregated {iterations} iteration(s): {aggregate.summary()}")
        return aggregate

    def combine(self, aggregates: Iterable[AggregateResult]) -> AggregateResult:
        """Merge several runs into one aggregate.

        Iteration details keep the index they had in their own run and
        are concatenated in the order the aggregates are given.
        """
        details: List[IterationResult] = []
        for aggregate in aggregates:
            details.extend(aggregate.iteration_details)
        return self.aggregate(details)

    def flatten_samples(self, results: Iterable[IterationResult]) -> Dict[str, List[float]]:
        """Collect one sample list per latency dimension.

        Args:
            results: Iteration results in launch order

        Returns:
            Dimension name -> samples, default dimensions first
        """
        samples: Dict[str, List[float]] = {name: [] for name in self.dimensions}
        for result in results:
            for measurement in result.measurements:
                for name, value in measurement.items():
                    samples.setdefault(name, []).append(value)
        return samples

    def _latency_stats(self, results: Sequence[IterationResult]) -> Dict[str, PercentileStats]:
        return {
            name: calculate_latency_stats(values)
            for name, values in self.flatten_samples(results).items()
        }
