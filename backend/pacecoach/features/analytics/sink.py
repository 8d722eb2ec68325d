"""
Result sink for computed analytics.

Results are recorded for reproducibility and audit, keyed by an artifact
key built from the computation type, scope and optional scenario:

    competition-trends:seasonId=all
    competition-trends:seasonId=s1:scenarioId=sc1
    run-diagnostics:A1:scenarioId=sc1
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from pacecoach.shared.constants import ComputationType

from .repository import AnalyticsRunRepository

logger = logging.getLogger(__name__)


class ResultSink(Protocol):
    """Anything that can store a computed analytics result."""

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
    ) -> Any:
        ...


def stable_params_json(params: dict[str, Any]) -> str:
    """Serialize params with sorted keys so equal params compare equal."""
    return json.dumps(params, sort_keys=True, default=str)


def build_artifact_key(
    computation_type: ComputationType | str,
    scope: str,
    scenario_id: str | None = None,
) -> str:
    """
    Build the cache/audit key for a result.

    Args:
        computation_type: Computation name
        scope: Scope segment, e.g. "seasonId=all" or a run type code
        scenario_id: Scenario applied, if any
    """
    name = ComputationType(computation_type).value
    key = f"{name}:{scope}"
    if scenario_id:
        key += f":scenarioId={scenario_id}"
    return key


class DatabaseResultSink:
    """
    Result sink writing to the analytics tables.

    Each record uses its own session and commits on its own, so a failed
    write never affects the caller's session.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

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
    ) -> str:
        """Store the result and return the new analytics run id."""
        async with self._session_factory() as session:
            repo = AnalyticsRunRepository(session)
            run = await repo.record(
                computation_type=computation_type,
                params=json.loads(stable_params_json(params)),
                output=output,
                artifact_key=artifact_key,
                scope_type=scope_type,
                scope_id=scope_id,
                scenario_id=scenario_id,
                created_by_id=created_by_id,
                duration_ms=duration_ms,
            )
            await session.commit()
            logger.debug(f"Stored analytics run {run.id} ({artifact_key})")
            return run.id
