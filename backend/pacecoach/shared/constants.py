"""
Unified constants for scenario scopes, adjustments and analytics outputs.

This module provides a single source of truth for the string values that
cross the boundary with the persistence layer (scope types, adjustment
types, computation names).
"""

from enum import Enum


# Engine version stamped on every persisted analytics run and artifact.
# Bump on any change that alters computed values.
ANALYTICS_VERSION = "2.0.0"

# Scope id used in the adjustment index when an adjustment targets "all"
ALL_SCOPE_ID = "ALL"

DEFAULT_WINDOW_SIZE = 3

# Share of the clean-time IQR counted as recoverable through consistency.
# Heuristic, not a statistical bound.
RECOVERABLE_VARIANCE_FACTOR = 0.5


class ScopeType(str, Enum):
    """
    Granularity at which a scenario adjustment applies.

    Listed broadest to narrowest.
    """
    SEASON = "SEASON"
    COMPETITION = "COMPETITION"
    RUN_TYPE = "RUN_TYPE"
    RUN_RESULT = "RUN_RESULT"


class AdjustmentType(str, Enum):
    """Kind of hypothetical edit a scenario adjustment performs."""
    REMOVE_PENALTY_TAXONOMY = "REMOVE_PENALTY_TAXONOMY"
    OVERRIDE_PENALTY_SECONDS = "OVERRIDE_PENALTY_SECONDS"
    CLEAN_TIME_DELTA = "CLEAN_TIME_DELTA"


class TrendImpact(str, Enum):
    """Direction of a performance trend."""
    IMPROVING = "improving"
    DETERIORATING = "deteriorating"
    STABLE = "stable"


class ComputationType(str, Enum):
    """
    Analytics computation names.

    Used as the first segment of artifact keys and as
    AnalyticsRun.computation_type.
    """
    COMPETITION_TRENDS = "competition-trends"
    RUN_DIAGNOSTICS = "run-diagnostics"
    DRIVERS = "drivers"
    RECOVERABLE_TIME = "recoverable-time"
