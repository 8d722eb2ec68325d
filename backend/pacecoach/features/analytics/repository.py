"""
Analytics repositories.

AnalyticsDataRepository hydrates competitions, runs, penalties and scenario
adjustments into the dataclasses the computations consume.
AnalyticsRunRepository stores computed results for audit.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pacecoach.models import (
    AnalyticsArtifact,
    AnalyticsRun,
    Competition,
    Drill,
    Penalty,
    RunResult,
    RunType,
    ScenarioAdjustment,
)
from pacecoach.shared.constants import ANALYTICS_VERSION, AdjustmentType, ScopeType
from pacecoach.shared.repository import BaseRepository

from .models import (
    CompetitionData,
    DrillData,
    PenaltyData,
    RunResultData,
    ScenarioAdjustmentData,
)


_RUN_RESULT_LOADS = (
    selectinload(RunResult.run_type),
    selectinload(RunResult.penalties).selectinload(Penalty.penalty_rule),
)


def _to_run_result_data(row: RunResult) -> RunResultData:
    return RunResultData(
        id=row.id,
        competition_id=row.competition_id,
        run_type_id=row.run_type_id,
        run_type_code=row.run_type.code,
        run_type_name=row.run_type.name,
        total_time_seconds=row.total_time_seconds,
        penalty_seconds=row.penalty_seconds,
        penalties=[
            PenaltyData(
                id=p.id,
                penalty_rule_id=p.penalty_rule_id,
                taxonomy_code=p.penalty_rule.taxonomy_code,
                rule_id=p.penalty_rule.rule_id,
                seconds_applied=p.seconds_applied,
            )
            for p in row.penalties
        ],
    )


def _to_competition_data(row: Competition, run_type_id: str | None = None) -> CompetitionData:
    return CompetitionData(
        id=row.id,
        name=row.name,
        date=row.date,
        season_id=row.season_id,
        run_results=[
            _to_run_result_data(rr)
            for rr in row.run_results
            if run_type_id is None or rr.run_type_id == run_type_id
        ],
    )


class AnalyticsDataRepository(BaseRepository[Competition]):
    """Loads fully hydrated analytics inputs."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Competition)

    def _competitions_query(self):
        return select(Competition).options(
            selectinload(Competition.run_results).options(*_RUN_RESULT_LOADS)
        ).order_by(Competition.date.asc(), Competition.created_at.asc())

    async def find_run_type_id(self, code: str) -> str | None:
        """
        Resolve a run type code to its id.

        Args:
            code: Run type code, e.g. "A1"

        Returns:
            Run type id, or None if the code is unknown
        """
        result = await self.db.execute(select(RunType.id).where(RunType.code == code))
        return result.scalar_one_or_none()

    async def load_competitions(self, season_id: str | None = None) -> list[CompetitionData]:
        """
        Load competitions with runs and penalties, oldest first.

        Args:
            season_id: Restrict to one season; None loads every season
        """
        query = self._competitions_query()
        if season_id:
            query = query.where(Competition.season_id == season_id)
        result = await self.db.execute(query)
        return [_to_competition_data(row) for row in result.scalars().all()]

    async def load_competitions_for_run_type(self, run_type_id: str) -> list[CompetitionData]:
        """
        Load competitions that include the run type, keeping only its runs.

        Args:
            run_type_id: Run type id
        """
        query = self._competitions_query().where(
            Competition.run_results.any(RunResult.run_type_id == run_type_id)
        )
        result = await self.db.execute(query)
        return [_to_competition_data(row, run_type_id) for row in result.scalars().all()]

    async def load_run_results(self, run_type_id: str) -> list[RunResultData]:
        """
        Load runs of one run type in competition date order.

        Args:
            run_type_id: Run type id
        """
        query = (
            select(RunResult)
            .join(RunResult.competition)
            .where(RunResult.run_type_id == run_type_id)
            .options(*_RUN_RESULT_LOADS)
            .order_by(Competition.date.asc(), RunResult.created_at.asc())
        )
        result = await self.db.execute(query)
        return [_to_run_result_data(row) for row in result.scalars().all()]

    async def load_scenario_adjustments(self, scenario_id: str) -> list[ScenarioAdjustmentData]:
        """
        Load a scenario's adjustments in application (creation) order, ties by id.

        Args:
            scenario_id: Scenario id
        """
        result = await self.db.execute(
            select(ScenarioAdjustment)
            .where(ScenarioAdjustment.scenario_id == scenario_id)
            .order_by(ScenarioAdjustment.created_at.asc(), ScenarioAdjustment.id.asc())
        )
        return [
            ScenarioAdjustmentData(
                id=adj.id,
                scope_type=ScopeType(adj.scope_type),
                scope_id=adj.scope_id,
                adjustment_type=AdjustmentType(adj.adjustment_type),
                payload=dict(adj.payload_json or {}),
            )
            for adj in result.scalars().all()
        ]

    async def load_drills(self) -> list[DrillData]:
        """Load the drill catalog."""
        result = await self.db.execute(select(Drill).order_by(Drill.name.asc()))
        return [
            DrillData(
                id=d.id,
                name=d.name,
                linked_taxonomy_codes=tuple(d.linked_taxonomy_codes or ()),
            )
            for d in result.scalars().all()
        ]


class AnalyticsRunRepository(BaseRepository[AnalyticsRun]):
    """Stores analytics runs and their output artifacts."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, AnalyticsRun)

    async def record(
        self,
        computation_type: str,
        params: dict[str, Any],
        output: Any,
        artifact_key: str,
        scope_type: str | None = None,
        scope_id: str | None = None,
        scenario_id: str | None = None,
        created_by_id: str | None = None,
        duration_ms: int | None = None,
    ) -> AnalyticsRun:
        """
        Store one analytics run with its artifact.

        Both rows are stamped with ANALYTICS_VERSION.

        Returns:
            The flushed AnalyticsRun
        """
        run = await self.add(AnalyticsRun(
            analytics_version=ANALYTICS_VERSION,
            computation_type=computation_type,
            params_json=params,
            scope_type=scope_type,
            scope_id=scope_id,
            scenario_id=scenario_id,
            status="completed",
            duration_ms=duration_ms,
            created_by_id=created_by_id,
        ))
        self.db.add(AnalyticsArtifact(
            analytics_run_id=run.id,
            analytics_version=ANALYTICS_VERSION,
            artifact_key=artifact_key,
            output_json=output,
        ))
        await self.db.flush()
        return run

    async def list_runs(self, computation_type: str) -> list[AnalyticsRun]:
        """Stored runs of one computation type, oldest first."""
        return await self.list_by(
            order_by=[AnalyticsRun.created_at.asc()],
            computation_type=computation_type,
        )

    async def get_artifacts(self, artifact_key: str) -> list[AnalyticsArtifact]:
        """All stored artifacts for a key, oldest first."""
        result = await self.db.execute(
            select(AnalyticsArtifact)
            .where(AnalyticsArtifact.artifact_key == artifact_key)
            .order_by(AnalyticsArtifact.created_at.asc())
        )
        return list(result.scalars().all())
