"""
Percentile statistics over latency samples.

Percentiles use linear interpolation between closest ranks:
rank = (p / 100) * (n - 1) on the ascending-sorted sample.
"""

import math
from typing import Sequence

from ..exceptions import ValidationError
from ..models.result import PercentileStats


def _percentile_of_sorted(ordered: Sequence[float], p: float) -> float:
    rank = (p / 100) * (len(ordered) - 1)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return ordered[lower]
    fraction = rank - lower
    return ordered[lower] + (ordered[upper] - ordered[lower]) * fraction


def calculate_percentile(values: Sequence[float], p: float) -> float:
    """Calculate the p-th percentile of a sample.

    Args:
        values: Samples in any order
        p: Percentile between 0 and 100 inclusive

    Returns:
        Interpolated percentile value

    Raises:
        ValidationError: If values is empty or p is out of range

    Example:
        calculate_percentile([1, 2, 3, 4], 50)  # 2.5
    """
    if not values:
        raise ValidationError("Cannot calculate percentile of empty array")
    if not 0 <= p <= 100:
        raise ValidationError("Percentile must be between 0 and 100")
    return _percentile_of_sorted(sorted(values), p)


def calculate_latency_stats(values: Sequence[float]) -> PercentileStats:
    """Summarize a latency sample.

    An empty sample yields all-zero stats rather than dividing by zero.
    """
    if not values:
        return PercentileStats.zero()

    ordered = sorted(values)
    count = len(ordered)
    return PercentileStats(
        min=ordered[0],
        max=ordered[-1],
        mean=sum(ordered) / count,
        p50=_percentile_of_sorted(ordered, 50),
        p95=_percentile_of_sorted(ordered, 95),
        count=count,
    )
