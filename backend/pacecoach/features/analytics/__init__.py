"""
Competition analytics module.

Usage:
    from pacecoach.features.analytics import AnalyticsService, apply_scenario_adjustments
    from pacecoach.features.analytics.computations import compute_drivers

Components:
- computations: trends, rolling diagnostics, penalty drivers, recoverable time
- scenarios: what-if overlay engine
- comparison: baseline vs scenario deltas
- coaching: coaching summary
- spec_validation: run specification checks
- AnalyticsService: provider -> overlay -> computation -> sink orchestration
"""

from .models import (
    PenaltyData,
    RunResultData,
    CompetitionData,
    ScenarioAdjustmentData,
    DrillData,
    CompetitionTrend,
    RunDataPoint,
    RollingMedianPoint,
    RollingIQRPoint,
    RunDiagnostic,
    TaxonomyBreakdown,
    DriverAnalysis,
    RecoverableTimeEstimate,
)
from .computations import (
    AnalyticsError,
    AnalyticsInputError,
    compute_competition_trends,
    compute_run_diagnostics,
    compute_drivers,
    compute_recoverable_time,
)
from .scenarios import apply_scenario_adjustments, recompute_penalty_seconds
from .comparison import ScenarioResult, compare_diagnostics, compare_drivers, compare_trends
from .coaching import CoachingSummary, build_coaching_summary
from .repository import AnalyticsDataRepository, AnalyticsRunRepository
from .sink import DatabaseResultSink, ResultSink, build_artifact_key, stable_params_json
from .service import AnalyticsService, RunResultProvider, RunTypeNotFoundError

__all__ = [
    # Models
    "PenaltyData",
    "RunResultData",
    "CompetitionData",
    "ScenarioAdjustmentData",
    "DrillData",
    "CompetitionTrend",
    "RunDataPoint",
    "RollingMedianPoint",
    "RollingIQRPoint",
    "RunDiagnostic",
    "TaxonomyBreakdown",
    "DriverAnalysis",
    "RecoverableTimeEstimate",
    # Computations
    "AnalyticsError",
    "AnalyticsInputError",
    "compute_competition_trends",
    "compute_run_diagnostics",
    "compute_drivers",
    "compute_recoverable_time",
    # Scenarios
    "apply_scenario_adjustments",
    "recompute_penalty_seconds",
    "ScenarioResult",
    "compare_diagnostics",
    "compare_drivers",
    "compare_trends",
    # Coaching
    "CoachingSummary",
    "build_coaching_summary",
    # Persistence
    "AnalyticsDataRepository",
    "AnalyticsRunRepository",
    "DatabaseResultSink",
    "ResultSink",
    "build_artifact_key",
    "stable_params_json",
    # Service
    "AnalyticsService",
    "RunResultProvider",
    "RunTypeNotFoundError",
]
