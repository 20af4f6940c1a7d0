"""
Evaluation layer for the trial evaluation engine.

Handles:
- Percentile statistics
- Result aggregation
- Post-run metrics
"""

from .statistics import calculate_percentile, calculate_latency_stats
from .aggregator import ResultAggregator, DEFAULT_DIMENSIONS
from .metrics import MetricsFacade

__all__ = [
    # Statistics
    "calculate_percentile",
    "calculate_latency_stats",
    # Aggregation
    "ResultAggregator",
    "DEFAULT_DIMENSIONS",
    # Metrics
    "MetricsFacade",
]
