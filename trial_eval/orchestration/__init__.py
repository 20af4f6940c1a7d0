"""
Orchestration layer for the trial evaluation engine.

Handles:
- Running N trials of one scenario (main runner)
- Running suites of named trials
"""

from .runner import IterationRunner, resolve_options, run
from .suite import EvalSuite, SuiteResult

__all__ = [
    "IterationRunner",
    "resolve_options",
    "run",
    "EvalSuite",
    "SuiteResult",
]
