"""Data models for competition analytics (dataclasses, no DB dependency).

Input records are hydrated by a provider (see repository.py); result records
are what the computations return.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from pacecoach.shared.constants import AdjustmentType, ScopeType, TrendImpact
from pacecoach.shared.statistics import clean_time


# =============================================================================
# Inputs
# =============================================================================

@dataclass(frozen=True)
class PenaltyData:
    """One rule infraction on one run."""

    id: str
    penalty_rule_id: str
    taxonomy_code: str  # "ORDER_VIOLATION"
    rule_id: str  # rulebook reference, e.g. "A1.4"
    seconds_applied: float | None = None  # None for DQ / warning outcomes


@dataclass
class RunResultData:
    """One timed attempt at one run type within one competition."""

    id: str
    competition_id: str
    run_type_id: str
    run_type_code: str  # "A1"
    run_type_name: str
    total_time_seconds: float
    penalty_seconds: float
    penalties: list[PenaltyData] = field(default_factory=list)

    @property
    def clean_time(self) -> float:
        return clean_time(self.total_time_seconds, self.penalty_seconds)


@dataclass
class CompetitionData:
    """A named event on a date with its run results in creation order."""

    id: str
    name: str
    date: date | datetime | str
    run_results: list[RunResultData] = field(default_factory=list)
    season_id: str | None = None


@dataclass
class ScenarioAdjustmentData:
    """A hypothetical edit overlaid on baseline data.

    `payload` shape depends on `adjustment_type`; it is validated by the
    schemas in schemas.py when a scenario is compiled.
    """

    id: str
    scope_type: ScopeType
    scope_id: str | None
    adjustment_type: AdjustmentType
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DrillData:
    """A coaching drill linked to the infraction categories it addresses."""

    id: str
    name: str
    linked_taxonomy_codes: tuple[str, ...] = ()


# =============================================================================
# Results
# =============================================================================

@dataclass
class CompetitionTrend:
    """Per-competition performance summary."""

    competition_id: str
    competition_name: str
    competition_date: str  # ISO format
    median_clean_time: float
    penalty_load: float
    penalty_rate: float
    consistency_iqr: float
    run_count: int

    def to_dict(self) -> dict:
        """Convert to dict for storage."""
        return {
            "competition_id": self.competition_id,
            "competition_name": self.competition_name,
            "competition_date": self.competition_date,
            "median_clean_time": self.median_clean_time,
            "penalty_load": self.penalty_load,
            "penalty_rate": self.penalty_rate,
            "consistency_iqr": self.consistency_iqr,
            "run_count": self.run_count,
        }


@dataclass
class RunDataPoint:
    """A single run in a diagnostics series."""

    competition_id: str
    clean_time: float
    penalty_seconds: float
    total_time_seconds: float
    competition_name: str = ""  # filled in by the caller
    competition_date: str = ""

    def to_dict(self) -> dict:
        return {
            "competition_id": self.competition_id,
            "competition_name": self.competition_name,
            "competition_date": self.competition_date,
            "clean_time": self.clean_time,
            "penalty_seconds": self.penalty_seconds,
            "total_time_seconds": self.total_time_seconds,
        }


@dataclass
class RollingMedianPoint:
    """Median clean time of the window ending at data point `index`."""

    index: int
    value: float
    competition_date: str = ""

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "competition_date": self.competition_date,
            "value": self.value,
        }


@dataclass
class RollingIQRPoint:
    """Q1/Q3 clean-time band of the window ending at data point `index`."""

    index: int
    lower: float
    upper: float
    competition_date: str = ""

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "competition_date": self.competition_date,
            "lower": self.lower,
            "upper": self.upper,
        }


@dataclass
class RunDiagnostic:
    """Chronological series and rolling statistics for one run type."""

    run_type_code: str
    run_type_name: str
    data_points: list[RunDataPoint] = field(default_factory=list)
    rolling_median: list[RollingMedianPoint] = field(default_factory=list)
    rolling_iqr: list[RollingIQRPoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dict for storage."""
        return {
            "run_type_code": self.run_type_code,
            "run_type_name": self.run_type_name,
            "data_points": [p.to_dict() for p in self.data_points],
            "rolling_median": [p.to_dict() for p in self.rolling_median],
            "rolling_iqr": [p.to_dict() for p in self.rolling_iqr],
        }


@dataclass
class TaxonomyBreakdown:
    """Penalty count and seconds for one infraction category."""

    taxonomy_code: str
    count: int = 0
    total_seconds: float = 0

    def to_dict(self) -> dict:
        return {
            "taxonomy_code": self.taxonomy_code,
            "count": self.count,
            "total_seconds": self.total_seconds,
        }


@dataclass
class DriverAnalysis:
    """Penalty contribution of one run type."""

    run_type_code: str
    run_type_name: str
    penalty_count: int = 0
    total_penalty_seconds: float = 0
    taxonomy_breakdown: list[TaxonomyBreakdown] = field(default_factory=list)
    trend_impact: TrendImpact = TrendImpact.STABLE

    def to_dict(self) -> dict:
        """Convert to dict for storage."""
        return {
            "run_type_code": self.run_type_code,
            "run_type_name": self.run_type_name,
            "penalty_count": self.penalty_count,
            "total_penalty_seconds": self.total_penalty_seconds,
            "taxonomy_breakdown": [b.to_dict() for b in self.taxonomy_breakdown],
            "trend_impact": self.trend_impact.value,
        }


@dataclass
class RecoverableTimeEstimate:
    """Time a crew could plausibly win back on one run type."""

    total_penalty_seconds: float
    variance_estimate: float
    recoverable_time: float
    iqr: float
    clean_times: list[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_penalty_seconds": self.total_penalty_seconds,
            "variance_estimate": self.variance_estimate,
            "recoverable_time": self.recoverable_time,
            "iqr": self.iqr,
            "clean_times": list(self.clean_times),
        }
