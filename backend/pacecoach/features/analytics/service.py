"""
Analytics Service

Orchestrates the analytics flow:
- Load baseline data from a provider
- Optionally overlay a scenario on a copy of it
- Run the computations on baseline and scenario data
- Optionally record the result in a sink, without waiting for it

This is the main entry point for analytics callers.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Optional, Protocol, Sequence

from pacecoach.config import settings
from pacecoach.shared.constants import ComputationType, ScopeType

from .coaching import CoachingSummary, build_coaching_summary
from .comparison import (
    ScenarioResult,
    compare_diagnostics,
    compare_drivers,
    compare_trends,
)
from .computations import (
    AnalyticsError,
    compute_competition_trends,
    compute_drivers,
    compute_recoverable_time,
    compute_run_diagnostics,
    to_iso_date,
)
from .models import (
    CompetitionData,
    CompetitionTrend,
    DriverAnalysis,
    DrillData,
    RecoverableTimeEstimate,
    RunDiagnostic,
    RunResultData,
    ScenarioAdjustmentData,
)
from .scenarios import apply_scenario_adjustments
from .sink import ResultSink, build_artifact_key

logger = logging.getLogger(__name__)


class RunTypeNotFoundError(AnalyticsError, LookupError):
    """Requested run type code is unknown to the provider."""
    pass


class RunResultProvider(Protocol):
    """Source of hydrated analytics inputs."""

    async def find_run_type_id(self, code: str) -> str | None: ...

    async def load_competitions(self, season_id: str | None = None) -> list[CompetitionData]: ...

    async def load_competitions_for_run_type(self, run_type_id: str) -> list[CompetitionData]: ...

    async def load_run_results(self, run_type_id: str) -> list[RunResultData]: ...

    async def load_scenario_adjustments(self, scenario_id: str) -> list[ScenarioAdjustmentData]: ...

    async def load_drills(self) -> list[DrillData]: ...


def _flatten_runs(competitions: Sequence[CompetitionData]) -> list[RunResultData]:
    return [rr for comp in competitions for rr in comp.run_results]


def fill_competition_details(
    diagnostic: RunDiagnostic,
    competitions: Sequence[CompetitionData],
) -> RunDiagnostic:
    """
    Fill competition names and dates into a diagnostic in place.

    Rolling points take the date of the data point they end on.
    """
    lookup = {c.id: (c.name, to_iso_date(c.date)) for c in competitions}
    for point in diagnostic.data_points:
        point.competition_name, point.competition_date = lookup.get(point.competition_id, ("", ""))
    for rolling in (*diagnostic.rolling_median, *diagnostic.rolling_iqr):
        rolling.competition_date = diagnostic.data_points[rolling.index].competition_date
    return diagnostic


class AnalyticsService:
    """
    Analytics entry point over a provider and an optional result sink.

    Example usage:
        async with AsyncSessionLocal() as db:
            service = AnalyticsService(
                AnalyticsDataRepository(db),
                sink=DatabaseResultSink(AsyncSessionLocal),
            )
            trends = await service.competition_trends(season_id="s1")
    """

    def __init__(
        self,
        provider: RunResultProvider,
        sink: Optional[ResultSink] = None,
        window_size: Optional[int] = None,
        include_season_scope: Optional[bool] = None,
        persist_by_default: Optional[bool] = None,
    ):
        """
        Initialize analytics service.

        Args:
            provider: Loads competitions, runs and scenario adjustments
            sink: Stores results when persistence is requested
            window_size: Default rolling window (settings if None)
            include_season_scope: Apply SEASON-scoped adjustments (settings if None)
            persist_by_default: Persist when a call does not say (settings if None)
        """
        self.provider = provider
        self.sink = sink
        self.window_size = (
            settings.diagnostics_window_size if window_size is None else window_size
        )
        self.include_season_scope = (
            settings.scenario_season_scope if include_season_scope is None else include_season_scope
        )
        self.persist_by_default = (
            settings.persist_analytics if persist_by_default is None else persist_by_default
        )
        # Strong references to in-flight sink writes
        self._pending: set[asyncio.Task] = set()

    # =========================================================================
    # Computations
    # =========================================================================

    async def competition_trends(
        self,
        season_id: Optional[str] = None,
        scenario_id: Optional[str] = None,
        persist: Optional[bool] = None,
        created_by_id: Optional[str] = None,
    ) -> list[CompetitionTrend] | ScenarioResult:
        """
        Competition trends for a season (or all seasons).

        Returns:
            Trend list, or ScenarioResult with per-competition deltas when a
            scenario is given
        """
        started = time.perf_counter()
        competitions = await self.provider.load_competitions(season_id)
        baseline = compute_competition_trends(competitions)

        result: list[CompetitionTrend] | ScenarioResult = baseline
        output: Any = baseline
        if scenario_id:
            adjusted = await self._apply_scenario(competitions, scenario_id)
            scenario = compute_competition_trends(adjusted)
            result = ScenarioResult(baseline, scenario, compare_trends(baseline, scenario))
            output = scenario

        duration_ms = self._elapsed_ms(started)
        logger.info(
            f"competition-trends season={season_id or 'all'} scenario={scenario_id} "
            f"competitions={len(competitions)} in {duration_ms}ms"
        )

        if self._should_persist(persist):
            self._persist(
                ComputationType.COMPETITION_TRENDS,
                params={"seasonId": season_id, "scenarioId": scenario_id},
                output=[t.to_dict() for t in output],
                scope=f"seasonId={season_id or 'all'}",
                scope_type=ScopeType.SEASON.value if season_id else None,
                scope_id=season_id,
                scenario_id=scenario_id,
                created_by_id=created_by_id,
                duration_ms=duration_ms,
            )
        return result

    async def run_diagnostics(
        self,
        run_type_code: str,
        window_size: Optional[int] = None,
        scenario_id: Optional[str] = None,
        persist: Optional[bool] = None,
        created_by_id: Optional[str] = None,
    ) -> RunDiagnostic | ScenarioResult:
        """
        Rolling diagnostics for one run type, with competition details filled in.

        Returns:
            RunDiagnostic, or ScenarioResult with the latest rolling median
            improvement when a scenario is given

        Raises:
            RunTypeNotFoundError: Unknown run type code
            AnalyticsInputError: Run type has no runs, or window_size < 1
        """
        started = time.perf_counter()
        window = self.window_size if window_size is None else window_size
        run_type_id = await self._resolve_run_type(run_type_code)

        competitions = await self.provider.load_competitions_for_run_type(run_type_id)
        baseline = fill_competition_details(
            compute_run_diagnostics(_flatten_runs(competitions), window),
            competitions,
        )

        result: RunDiagnostic | ScenarioResult = baseline
        output = baseline
        if scenario_id:
            adjusted = await self._apply_scenario(competitions, scenario_id)
            scenario = fill_competition_details(
                compute_run_diagnostics(_flatten_runs(adjusted), window),
                adjusted,
            )
            result = ScenarioResult(baseline, scenario, compare_diagnostics(baseline, scenario))
            output = scenario

        duration_ms = self._elapsed_ms(started)
        logger.info(
            f"run-diagnostics run_type={run_type_code} window={window} scenario={scenario_id} "
            f"runs={len(baseline.data_points)} in {duration_ms}ms"
        )

        if self._should_persist(persist):
            self._persist(
                ComputationType.RUN_DIAGNOSTICS,
                params={"runTypeCode": run_type_code, "windowSize": window, "scenarioId": scenario_id},
                output=output.to_dict(),
                scope=run_type_code,
                scope_type=ScopeType.RUN_TYPE.value,
                scope_id=run_type_id,
                scenario_id=scenario_id,
                created_by_id=created_by_id,
                duration_ms=duration_ms,
            )
        return result

    async def drivers(
        self,
        season_id: Optional[str] = None,
        scenario_id: Optional[str] = None,
        persist: Optional[bool] = None,
        created_by_id: Optional[str] = None,
    ) -> list[DriverAnalysis] | ScenarioResult:
        """
        Penalty drivers by run type, worst first.

        Returns:
            Driver list, or ScenarioResult with penalty seconds saved per run
            type when a scenario is given
        """
        started = time.perf_counter()
        competitions = await self.provider.load_competitions(season_id)
        baseline = compute_drivers(competitions)

        result: list[DriverAnalysis] | ScenarioResult = baseline
        output: Any = baseline
        if scenario_id:
            adjusted = await self._apply_scenario(competitions, scenario_id)
            scenario = compute_drivers(adjusted)
            result = ScenarioResult(baseline, scenario, compare_drivers(baseline, scenario))
            output = scenario

        duration_ms = self._elapsed_ms(started)
        logger.info(
            f"drivers season={season_id or 'all'} scenario={scenario_id} "
            f"run_types={len(baseline)} in {duration_ms}ms"
        )

        if self._should_persist(persist):
            self._persist(
                ComputationType.DRIVERS,
                params={"seasonId": season_id, "scenarioId": scenario_id},
                output=[d.to_dict() for d in output],
                scope=f"seasonId={season_id or 'all'}",
                scope_type=ScopeType.SEASON.value if season_id else None,
                scope_id=season_id,
                scenario_id=scenario_id,
                created_by_id=created_by_id,
                duration_ms=duration_ms,
            )
        return result

    async def recoverable_time(
        self,
        run_type_code: str,
        scenario_id: Optional[str] = None,
    ) -> RecoverableTimeEstimate | ScenarioResult:
        """
        Recoverable time estimate for one run type.

        Returns:
            RecoverableTimeEstimate, or ScenarioResult whose delta is the
            recoverable seconds removed by the scenario

        Raises:
            RunTypeNotFoundError: Unknown run type code
        """
        run_type_id = await self._resolve_run_type(run_type_code)

        if not scenario_id:
            return compute_recoverable_time(await self.provider.load_run_results(run_type_id))

        competitions = await self.provider.load_competitions_for_run_type(run_type_id)
        baseline = compute_recoverable_time(_flatten_runs(competitions))
        adjusted = await self._apply_scenario(competitions, scenario_id)
        scenario = compute_recoverable_time(_flatten_runs(adjusted))
        return ScenarioResult(baseline, scenario, baseline.recoverable_time - scenario.recoverable_time)

    async def coaching_summary(
        self,
        season_id: Optional[str] = None,
        run_type_code: Optional[str] = None,
    ) -> CoachingSummary:
        """
        Coaching narrative for a season, optionally for one run type only.
        """
        competitions = await self.provider.load_competitions(season_id)
        if run_type_code:
            competitions = [
                replace(c, run_results=[rr for rr in c.run_results if rr.run_type_code == run_type_code])
                for c in competitions
            ]
        drills = await self.provider.load_drills()
        return build_coaching_summary(competitions, drills)

    # =========================================================================
    # Persistence
    # =========================================================================

    async def wait_for_pending_writes(self) -> None:
        """Wait until every scheduled sink write has finished."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    def _should_persist(self, persist: Optional[bool]) -> bool:
        wanted = self.persist_by_default if persist is None else persist
        if wanted and self.sink is None:
            logger.warning("Persistence requested but no result sink configured")
            return False
        return wanted

    def _persist(
        self,
        computation_type: ComputationType,
        params: dict[str, Any],
        output: Any,
        scope: str,
        scenario_id: Optional[str],
        **extra: Any,
    ) -> None:
        """Schedule a sink write; the caller never waits for it."""
        artifact_key = build_artifact_key(computation_type, scope, scenario_id)
        task = asyncio.create_task(self._record_safely(
            computation_type=computation_type.value,
            params=params,
            output=output,
            artifact_key=artifact_key,
            scenario_id=scenario_id,
            **extra,
        ))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record_safely(self, **kwargs: Any) -> None:
        try:
            await self.sink.record(**kwargs)
        except Exception:
            # Persistence never fails the computation already returned
            logger.exception(f"Failed to persist analytics result {kwargs.get('artifact_key')}")

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _resolve_run_type(self, run_type_code: str) -> str:
        run_type_id = await self.provider.find_run_type_id(run_type_code)
        if run_type_id is None:
            raise RunTypeNotFoundError(f"Run type not found: {run_type_code}")
        return run_type_id

    async def _apply_scenario(
        self,
        competitions: list[CompetitionData],
        scenario_id: str,
    ) -> list[CompetitionData]:
        adjustments = await self.provider.load_scenario_adjustments(scenario_id)
        return apply_scenario_adjustments(
            competitions,
            adjustments,
            include_season_scope=self.include_season_scope,
        )

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)
