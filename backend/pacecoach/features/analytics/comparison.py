"""Baseline vs scenario comparisons.

Deltas are computed on demand from two result sets and are never persisted.
Positive values mean the scenario is better (less time, fewer penalties).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .models import CompetitionTrend, DriverAnalysis, RunDiagnostic


@dataclass(frozen=True)
class DriverDelta:
    """Penalty seconds saved on one run type."""

    run_type_code: str
    penalty_seconds_delta: float

    def to_dict(self) -> dict:
        return {
            "run_type_code": self.run_type_code,
            "penalty_seconds_delta": self.penalty_seconds_delta,
        }


@dataclass(frozen=True)
class TrendDelta:
    """Change in one competition's summary."""

    competition_id: str
    median_clean_time_delta: float
    penalty_load_delta: float

    def to_dict(self) -> dict:
        return {
            "competition_id": self.competition_id,
            "median_clean_time_delta": self.median_clean_time_delta,
            "penalty_load_delta": self.penalty_load_delta,
        }


@dataclass(frozen=True)
class DiagnosticDelta:
    """Change in the latest rolling median clean time."""

    median_improvement: float

    def to_dict(self) -> dict:
        return {"median_improvement": self.median_improvement}


@dataclass
class ScenarioResult:
    """Baseline and scenario outputs side by side."""

    baseline: object
    scenario: object
    delta: object = field(default=None)

    def to_dict(self) -> dict:
        return {
            "baseline": _as_dict(self.baseline),
            "scenario": _as_dict(self.scenario),
            "delta": _as_dict(self.delta),
        }


def _as_dict(value):
    if isinstance(value, list):
        return [_as_dict(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def compare_diagnostics(baseline: RunDiagnostic, scenario: RunDiagnostic) -> DiagnosticDelta:
    """
    Compare the last rolling median of two diagnostics.

    Returns a zero improvement when either rolling series is empty.
    """
    if not baseline.rolling_median or not scenario.rolling_median:
        return DiagnosticDelta(median_improvement=0)
    return DiagnosticDelta(
        median_improvement=baseline.rolling_median[-1].value - scenario.rolling_median[-1].value
    )


def compare_drivers(
    baseline: Sequence[DriverAnalysis],
    scenario: Sequence[DriverAnalysis],
) -> list[DriverDelta]:
    """
    Penalty seconds saved per run type, in scenario order.

    A run type missing from the baseline counts as zero baseline seconds.
    """
    baseline_seconds = {d.run_type_code: d.total_penalty_seconds for d in baseline}
    return [
        DriverDelta(
            run_type_code=d.run_type_code,
            penalty_seconds_delta=baseline_seconds.get(d.run_type_code, 0) - d.total_penalty_seconds,
        )
        for d in scenario
    ]


def compare_trends(
    baseline: Sequence[CompetitionTrend],
    scenario: Sequence[CompetitionTrend],
) -> list[TrendDelta]:
    """Per-competition deltas for competitions present in both result sets."""
    by_id = {t.competition_id: t for t in baseline}
    deltas = []
    for trend in scenario:
        before = by_id.get(trend.competition_id)
        if before is None:
            continue
        deltas.append(TrendDelta(
            competition_id=trend.competition_id,
            median_clean_time_delta=before.median_clean_time - trend.median_clean_time,
            penalty_load_delta=before.penalty_load - trend.penalty_load,
        ))
    return deltas
