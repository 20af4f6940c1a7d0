"""
Post-run metrics for the trial evaluation engine.

MetricsFacade holds the most recent AggregateResult and derives named
rates from it. Every accessor except get_results() raises
NoResultsAvailable until a run has been recorded.
"""

from typing import List, Optional

from ..exceptions import NoResultsAvailable
from ..models.result import AggregateResult, IterationResult, PercentileStats


class MetricsFacade:
    """Derives metrics from the latest run.

    In this pass/fail model there is no separate false-negative concept,
    so recall and precision are both equal to accuracy.

    Usage:
        metrics = MetricsFacade()
        metrics.record(aggregate)
        print(f"Accuracy: {metrics.accuracy():.2f}")
    """

    def __init__(self, result: Optional[AggregateResult] = None):
        self._result = result

    def record(self, result: AggregateResult) -> None:
        """Replace the held result with a newer run."""
        self._result = result

    def has_results(self) -> bool:
        return self._result is not None

    def _require(self) -> AggregateResult:
        if self._result is None:
            raise NoResultsAvailable()
        return self._result

    def accuracy(self) -> float:
        """Fraction of iterations that passed."""
        result = self._require()
        if result.iterations == 0:
            return 0.0
        return result.successes / result.iterations

    def recall(self) -> float:
        self._require()
        return self.accuracy()

    def precision(self) -> float:
        self._require()
        return self.accuracy()

    def true_positive_rate(self) -> float:
        self._require()
        return self.recall()

    def false_positive_rate(self) -> float:
        """Fraction of iterations that failed."""
        result = self._require()
        if result.iterations == 0:
            return 0.0
        return result.failures / result.iterations

    def average_resource_use(self) -> float:
        """Mean total resource use per iteration."""
        result = self._require()
        if result.iterations == 0:
            return 0.0
        return result.resource_use_total / result.iterations

    def latency_stats(self, dimension: str) -> PercentileStats:
        """Stats for one latency dimension (zero stats if it was never measured)."""
        return self._require().latency_stats.get(dimension, PercentileStats.zero())

    def get_results(self) -> Optional[AggregateResult]:
        """The latest aggregate, or None before any run."""
        return self._result

    def get_all_iterations(self) -> List[IterationResult]:
        return list(self._require().iteration_details)

    def get_failed_iterations(self) -> List[IterationResult]:
        return [r for r in self._require().iteration_details if not r.passed]

    def get_successful_iterations(self) -> List[IterationResult]:
        return [r for r in self._require().iteration_details if r.passed]
