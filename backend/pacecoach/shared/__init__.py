"""
Shared utilities (NOT business logic).

Usage:
    from pacecoach.shared import median, clean_time
    from pacecoach.shared.constants import ScopeType
"""
from .statistics import (
    median,
    percentile,
    iqr,
    clean_time,
)
from .constants import (
    ANALYTICS_VERSION,
    ALL_SCOPE_ID,
    DEFAULT_WINDOW_SIZE,
    RECOVERABLE_VARIANCE_FACTOR,
    ScopeType,
    AdjustmentType,
    TrendImpact,
    ComputationType,
)
from .repository import BaseRepository

__all__ = [
    # statistics
    "median",
    "percentile",
    "iqr",
    "clean_time",
    # constants
    "ANALYTICS_VERSION",
    "ALL_SCOPE_ID",
    "DEFAULT_WINDOW_SIZE",
    "RECOVERABLE_VARIANCE_FACTOR",
    "ScopeType",
    "AdjustmentType",
    "TrendImpact",
    "ComputationType",
    # repository
    "BaseRepository",
]
