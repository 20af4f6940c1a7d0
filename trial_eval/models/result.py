"""
Result data models for the trial evaluation engine.

These capture the outcomes of a run, including:
- What a trial body reports for one attempt (TrialOutcome)
- The resolved record of one trial (IterationResult)
- Latency distribution summaries (PercentileStats)
- The reduced view of a whole run (AggregateResult)
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

# Latency dimension name -> milliseconds, e.g. {"e2e": 812.0, "llm": 640.5}
Measurement = Mapping[str, float]

# Countable consumption for one trial; "total" plus optional named parts
ResourceUse = Mapping[str, int]

E2E = "e2e"


def _frozen_mapping(values: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only snapshot of a mapping."""
    return MappingProxyType(dict(values))


def _frozen_mappings(values: Sequence[Mapping[str, Any]]) -> Tuple[Mapping[str, Any], ...]:
    return tuple(_frozen_mapping(v) for v in values)


class ResultStatus(Enum):
    """How a trial's attempt sequence resolved."""

    PASSED = "passed"  # Trial body reported success
    FAILED = "failed"  # Trial body completed but reported failure
    ERROR = "error"  # Every attempt raised
    TIMEOUT = "timeout"  # Last attempt exceeded its deadline


@dataclass
class TrialOutcome:
    """What a trial body returns for one successful attempt.

    Returning a TrialOutcome (even with passed=False) ends the retry
    sequence; only raising triggers another attempt.
    """

    passed: bool
    measurements: List[Measurement] = field(default_factory=list)
    resource_use: ResourceUse = field(default_factory=lambda: {"total": 0})
    error: Optional[str] = None

    def __str__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"[{status}] {len(self.measurements)} measurement(s)"


@dataclass(frozen=True)
class IterationResult:
    """Resolved record of one trial, stored at its launch index.

    Measurements and resource use are snapshotted into read-only
    mappings, so a result cannot change after it is built.
    """

    index: int
    passed: bool
    measurements: Tuple[Measurement, ...] = ()
    resource_use: ResourceUse = field(default_factory=lambda: {"total": 0})
    error: Optional[str] = None
    retry_count: int = 0
    status: ResultStatus = ResultStatus.PASSED

    def __post_init__(self):
        object.__setattr__(self, "measurements", _frozen_mappings(self.measurements))
        object.__setattr__(self, "resource_use", _frozen_mapping(self.resource_use))

    @property
    def total_resource_use(self) -> int:
        return int(self.resource_use.get("total", 0))

    def __str__(self) -> str:
        text = f"#{self.index} {self.status.value} (retries={self.retry_count})"
        if self.error:
            text += f": {self.error}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "index": self.index,
            "passed": self.passed,
            "status": self.status.value,
            "measurements": [dict(m) for m in self.measurements],
            "resource_use": dict(self.resource_use),
            "error": self.error,
            "retry_count": self.retry_count,
        }


@dataclass(frozen=True)
class PercentileStats:
    """Summary of one latency dimension."""

    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    p50: float = 0.0
    p95: float = 0.0
    count: int = 0

    @classmethod
    def zero(cls) -> "PercentileStats":
        """Stats for a dimension with no samples."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "p50": self.p50,
            "p95": self.p95,
            "count": self.count,
        }


@dataclass(frozen=True)
class AggregateResult:
    """Reduced view of one run.

    iteration_details is ordered by launch index, never by completion
    order, so every derived statistic is reproducible. Sequences are
    stored as tuples and mappings as read-only views.
    """

    iterations: int
    successes: int
    failures: int
    per_iteration_passed: Tuple[bool, ...]
    iteration_details: Tuple[IterationResult, ...]
    resource_use_total: int
    resource_use_per_iteration: Tuple[ResourceUse, ...]
    resource_use_components: Mapping[str, int]
    latency_stats: Mapping[str, PercentileStats]

    def __post_init__(self):
        object.__setattr__(self, "per_iteration_passed", tuple(self.per_iteration_passed))
        object.__setattr__(self, "iteration_details", tuple(self.iteration_details))
        object.__setattr__(
            self, "resource_use_per_iteration", _frozen_mappings(self.resource_use_per_iteration)
        )
        object.__setattr__(
            self, "resource_use_components", _frozen_mapping(self.resource_use_components)
        )
        object.__setattr__(self, "latency_stats", _frozen_mapping(self.latency_stats))

    @property
    def accuracy(self) -> float:
        """Fraction of trials that passed (0.0 for an empty run)."""
        if self.iterations == 0:
            return 0.0
        return self.successes / self.iterations

    def summary(self) -> str:
        """Human-readable summary."""
        e2e = self.latency_stats.get(E2E, PercentileStats.zero())
        return (
            f"{self.successes}/{self.iterations} passed "
            f"({self.accuracy * 100:.1f}%), "
            f"e2e p50={e2e.p50:.1f}ms p95={e2e.p95:.1f}ms, "
            f"resource use={self.resource_use_total}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "iterations": self.iterations,
            "successes": self.successes,
            "failures": self.failures,
            "accuracy": self.accuracy,
            "per_iteration_passed": list(self.per_iteration_passed),
            "iteration_details": [r.to_dict() for r in self.iteration_details],
            "resource_use": {
                "total": self.resource_use_total,
                "components": dict(self.resource_use_components),
                "per_iteration": [dict(r) for r in self.resource_use_per_iteration],
            },
            "latency_stats": {
                name: stats.to_dict() for name, stats in self.latency_stats.items()
            },
        }
