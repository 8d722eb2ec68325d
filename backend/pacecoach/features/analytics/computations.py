"""
Aggregation computations over competition and run data.

Four independent read-only transforms:
- compute_competition_trends: per-competition summary
- compute_run_diagnostics: rolling-window series for one run type
- compute_drivers: penalty attribution by run type
- compute_recoverable_time: penalty + consistency time estimate

None of them mutate their input. Sparse data (no competitions, no runs)
yields zeroed results; only run diagnostics requires at least one run.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Sequence

from pacecoach.shared.constants import DEFAULT_WINDOW_SIZE, RECOVERABLE_VARIANCE_FACTOR
from pacecoach.shared.statistics import clean_time, iqr, median, percentile

from .models import (
    CompetitionData,
    CompetitionTrend,
    DriverAnalysis,
    RecoverableTimeEstimate,
    RollingIQRPoint,
    RollingMedianPoint,
    RunDataPoint,
    RunDiagnostic,
    RunResultData,
    TaxonomyBreakdown,
)

logger = logging.getLogger(__name__)


class AnalyticsError(Exception):
    """Base analytics error."""
    pass


class AnalyticsInputError(AnalyticsError, ValueError):
    """Caller violated a documented precondition."""
    pass


def to_iso_date(value: date | datetime | str) -> str:
    """Normalize a provider-supplied date to an ISO string."""
    if isinstance(value, str):
        return value
    return value.isoformat()


def compute_competition_trends(
    competitions: Sequence[CompetitionData],
) -> list[CompetitionTrend]:
    """
    Compute competition-level performance trends.

    Args:
        competitions: Competitions already filtered by the provider

    Returns:
        One CompetitionTrend per competition, in input order
    """
    trends = []
    for comp in competitions:
        runs = comp.run_results
        clean_times = [clean_time(rr.total_time_seconds, rr.penalty_seconds) for rr in runs]
        penalized = sum(1 for rr in runs if rr.penalty_seconds > 0)

        trends.append(CompetitionTrend(
            competition_id=comp.id,
            competition_name=comp.name,
            competition_date=to_iso_date(comp.date),
            median_clean_time=median(clean_times),
            penalty_load=sum(rr.penalty_seconds for rr in runs),
            penalty_rate=penalized / len(runs) if runs else 0,
            consistency_iqr=iqr(clean_times),
            run_count=len(runs),
        ))

    logger.debug(f"Computed trends for {len(trends)} competitions")
    return trends


def compute_run_diagnostics(
    run_results: Sequence[RunResultData],
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> RunDiagnostic:
    """
    Compute rolling diagnostics for a single run type.

    The input must already be restricted to one run type and ordered
    chronologically; the first run supplies the reported code and name.
    Rolling series start once `window_size` points are available, so they
    are `window_size - 1` entries shorter than the data points.

    Competition names and dates on the returned points are left blank for
    the caller to fill in.

    Args:
        run_results: Runs of one run type, oldest first
        window_size: Trailing window length

    Returns:
        RunDiagnostic with data points and rolling median / IQR band

    Raises:
        AnalyticsInputError: No runs given, or window_size < 1
    """
    if not run_results:
        raise AnalyticsInputError("No run results provided")
    if window_size < 1:
        raise AnalyticsInputError(f"Window size must be at least 1, got {window_size}")

    first = run_results[0]
    data_points = [
        RunDataPoint(
            competition_id=rr.competition_id,
            clean_time=clean_time(rr.total_time_seconds, rr.penalty_seconds),
            penalty_seconds=rr.penalty_seconds,
            total_time_seconds=rr.total_time_seconds,
        )
        for rr in run_results
    ]

    rolling_median: list[RollingMedianPoint] = []
    rolling_iqr: list[RollingIQRPoint] = []

    for end in range(window_size - 1, len(data_points)):
        window = [dp.clean_time for dp in data_points[end - window_size + 1:end + 1]]
        rolling_median.append(RollingMedianPoint(index=end, value=median(window)))
        rolling_iqr.append(RollingIQRPoint(
            index=end,
            lower=percentile(window, 0.25),
            upper=percentile(window, 0.75),
        ))

    return RunDiagnostic(
        run_type_code=first.run_type_code,
        run_type_name=first.run_type_name,
        data_points=data_points,
        rolling_median=rolling_median,
        rolling_iqr=rolling_iqr,
    )


def compute_drivers(competitions: Sequence[CompetitionData]) -> list[DriverAnalysis]:
    """
    Attribute penalties to run types.

    Taxonomy breakdowns keep first-seen order within each run type.
    Output is sorted worst first by total penalty seconds; ties keep
    first-seen order.

    Args:
        competitions: Competitions of any season scope

    Returns:
        One DriverAnalysis per run type code
    """
    by_code: dict[str, DriverAnalysis] = {}
    breakdowns: dict[str, dict[str, TaxonomyBreakdown]] = {}

    for comp in competitions:
        for rr in comp.run_results:
            analysis = by_code.get(rr.run_type_code)
            if analysis is None:
                analysis = DriverAnalysis(
                    run_type_code=rr.run_type_code,
                    run_type_name=rr.run_type_name,
                )
                by_code[rr.run_type_code] = analysis
                breakdowns[rr.run_type_code] = {}

            analysis.penalty_count += len(rr.penalties)
            analysis.total_penalty_seconds += rr.penalty_seconds

            per_taxonomy = breakdowns[rr.run_type_code]
            for penalty in rr.penalties:
                breakdown = per_taxonomy.get(penalty.taxonomy_code)
                if breakdown is None:
                    breakdown = TaxonomyBreakdown(taxonomy_code=penalty.taxonomy_code)
                    per_taxonomy[penalty.taxonomy_code] = breakdown
                    analysis.taxonomy_breakdown.append(breakdown)
                breakdown.count += 1
                breakdown.total_seconds += penalty.seconds_applied or 0

    return sorted(by_code.values(), key=lambda d: d.total_penalty_seconds, reverse=True)


def compute_recoverable_time(run_results: Sequence[RunResultData]) -> RecoverableTimeEstimate:
    """
    Estimate recoverable time for one run type.

    recoverable = total penalty seconds + 0.5 * IQR(clean times)

    Penalty seconds are recoverable outright. Half the IQR is a conservative
    proxy for what better consistency could close. This is a heuristic, not
    a derived bound.
    """
    clean_times = [clean_time(rr.total_time_seconds, rr.penalty_seconds) for rr in run_results]
    total_penalty_seconds = sum(rr.penalty_seconds for rr in run_results)
    spread = iqr(clean_times)
    variance_estimate = spread * RECOVERABLE_VARIANCE_FACTOR

    return RecoverableTimeEstimate(
        total_penalty_seconds=total_penalty_seconds,
        variance_estimate=variance_estimate,
        recoverable_time=total_penalty_seconds + variance_estimate,
        iqr=spread,
        clean_times=clean_times,
    )
