"""
Data models for the trial evaluation engine.

Public exports:
- Run options (RunOptions)
- Result types (TrialOutcome, IterationResult, PercentileStats, AggregateResult)
- Enums (ResultStatus)
"""

from .options import RunOptions, ProgressCallback

from .result import (
    E2E,
    Measurement,
    ResourceUse,
    ResultStatus,
    TrialOutcome,
    IterationResult,
    PercentileStats,
    AggregateResult,
)

__all__ = [
    # Options
    "RunOptions",
    "ProgressCallback",
    # Result models
    "E2E",
    "Measurement",
    "ResourceUse",
    "ResultStatus",
    "TrialOutcome",
    "IterationResult",
    "PercentileStats",
    "AggregateResult",
]
