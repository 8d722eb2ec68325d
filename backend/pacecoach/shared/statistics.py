"""Statistical primitives for run timing data.

All functions are pure: they never mutate their argument and return 0 for an
empty sequence instead of raising.
"""

from __future__ import annotations

import math
from typing import Sequence


def median(values: Sequence[float]) -> float:
    """Middle value, or the mean of the two central values for even counts.

    [1, 2, 3, 4, 5] → 3
    [1, 2, 3, 4]    → 2.5
    []              → 0
    """
    if not values:
        return 0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def percentile(values: Sequence[float], p: float) -> float:
    """Value at sorted index floor((n - 1) * p), no interpolation.

    Args:
        values: Unsorted values.
        p: Fraction in [0, 1].
    """
    if not values:
        return 0
    ordered = sorted(values)
    return ordered[math.floor((len(ordered) - 1) * p)]


def iqr(values: Sequence[float]) -> float:
    """Interquartile range Q3 - Q1.

    Quartiles are read at sorted indices floor(n * 0.25) and floor(n * 0.75).
    This is not the (n - 1) index rule used by `percentile`; the two
    disagree for small samples.
    """
    if not values:
        return 0
    ordered = sorted(values)
    n = len(ordered)
    return ordered[math.floor(n * 0.75)] - ordered[math.floor(n * 0.25)]


def clean_time(total_seconds: float, penalty_seconds: float) -> float:
    """Elapsed time net of penalties, floored at zero."""
    return max(0, total_seconds - penalty_seconds)
