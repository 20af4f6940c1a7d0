"""
Suites of named trials.

An EvalSuite runs several trial factories one after another with the
same options and reports both per-trial aggregates and a combined one.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional
import logging

from ..config import Config
from ..evaluation.aggregator import ResultAggregator
from ..evaluation.metrics import MetricsFacade
from ..exceptions import ValidationError
from ..execution.retry_manager import TrialFactory
from ..models.options import RunOptions
from ..models.result import AggregateResult
from .runner import IterationRunner, OptionsArg, resolve_options

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuiteResult:
    """Outcome of one suite run."""

    name: str
    tests: Mapping[str, AggregateResult]
    aggregate: AggregateResult

    def __post_init__(self):
        object.__setattr__(self, "tests", MappingProxyType(dict(self.tests)))

    @property
    def resource_use_per_test(self) -> Dict[str, int]:
        """Total resource use of each trial, in insertion order."""
        return {name: result.resource_use_total for name, result in self.tests.items()}

    def summary(self) -> str:
        """Human-readable summary, one line per trial."""
        lines = [f"{self.name}: {self.aggregate.summary()}"]
        for test_name, result in self.tests.items():
            lines.append(f"  {test_name}: {result.summary()}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "aggregate": self.aggregate.to_dict(),
            "resource_use_per_test": self.resource_use_per_test,
            "tests": {name: r.to_dict() for name, r in self.tests.items()},
        }


class EvalSuite:
    """Groups named trials and aggregates across them.

    Trials run sequentially; each one still runs its own iterations
    concurrently. Progress is reported suite-wide.

    Usage:
        suite = EvalSuite(name="math")
        suite.add("addition", addition_trial)
        suite.add("multiply", multiply_trial)
        await suite.run({"iterations": 30})
        print(suite.metrics.accuracy())                 # combined
        print(suite.runner("addition").metrics.accuracy())  # per trial
    """

    def __init__(self, name: str = "EvalSuite", config: Optional[Config] = None):
        if config is not None:
            config.logging.apply()
        self.name = name
        self.config = config or Config.default()
        self._explicit_config = config
        self.aggregator = ResultAggregator()
        self.metrics = MetricsFacade()
        self._trials: Dict[str, TrialFactory] = {}
        self._runners: Dict[str, IterationRunner] = {}

    def add(self, name: str, trial_factory: TrialFactory) -> None:
        """Add a named trial.

        Raises:
            ValidationError: If the name is taken or the factory is not callable
        """
        if name in self._trials:
            raise ValidationError(f'Test with name "{name}" already exists in suite')
        if not callable(trial_factory):
            raise ValidationError("trial_factory must be callable")
        self._trials[name] = trial_factory
        self._runners[name] = IterationRunner(config=self._explicit_config, name=name)

    def get(self, name: str) -> Optional[TrialFactory]:
        return self._trials.get(name)

    def runner(self, name: str) -> IterationRunner:
        """The runner (and so the metrics) for one trial."""
        try:
            return self._runners[name]
        except KeyError:
            raise ValidationError(f'No test named "{name}" in suite')

    def names(self) -> List[str]:
        return list(self._trials)

    def size(self) -> int:
        return len(self._trials)

    async def run(self, options: OptionsArg = None, **overrides: Any) -> SuiteResult:
        """Run every trial in insertion order.

        Args:
            options: RunOptions or mapping, applied to each trial
            **overrides: Individual option fields

        Returns:
            SuiteResult with per-trial and combined aggregates

        Raises:
            ValidationError: If options are malformed
        """
        # Validated up front so a bad option fails before any trial runs
        base = resolve_options(self.config, options, **overrides)
        grand_total = base.iterations * self.size()
        finished = 0

        def suite_progress(completed: int, _total: int) -> None:
            base.on_progress(finished + completed, grand_total)

        trial_options = RunOptions.coerce(
            base, on_progress=suite_progress if base.on_progress else None
        )

        tests: Dict[str, AggregateResult] = {}
        for name, trial_factory in self._trials.items():
            logger.info(f"Suite {self.name}: running {name}")
            tests[name] = await self._runners[name].run(trial_factory, trial_options)
            finished += base.iterations

        result = SuiteResult(
            name=self.name,
            tests=tests,
            aggregate=self.aggregator.combine(tests.values()),
        )
        self.metrics.record(result.aggregate)
        logger.info(f"Suite {self.name}: {result.aggregate.summary()}")
        return result
