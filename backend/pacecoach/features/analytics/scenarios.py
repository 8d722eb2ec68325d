"""
Scenario overlay engine.

Applies an ordered list of hypothetical adjustments to a deep copy of
baseline competitions. The result can be fed back into the computations
unchanged; the baseline is never touched.

Adjustments are compiled once into ScenarioAction objects, indexed by
"<SCOPE_TYPE>:<scope id or ALL>", then folded over each run result in
precedence order (broadest scope first, submission order within a scope):

    [SEASON:<season id>, SEASON:ALL]        only with include_season_scope
    COMPETITION:<competition id>
    COMPETITION:ALL
    RUN_TYPE:<run type id>
    RUN_TYPE:<run type code>
    RUN_RESULT:<run result id>
    RUN_TYPE:ALL
    RUN_RESULT:ALL

An adjustment whose scope matches nothing is inert.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Iterable, Sequence

from pacecoach.shared.constants import ALL_SCOPE_ID, AdjustmentType, ScopeType

from .models import CompetitionData, PenaltyData, RunResultData, ScenarioAdjustmentData
from .schemas import (
    CleanTimeDeltaPayload,
    OverridePenaltySecondsPayload,
    RemovePenaltyTaxonomyPayload,
)

logger = logging.getLogger(__name__)


def recompute_penalty_seconds(run: RunResultData) -> None:
    """Re-derive penalty_seconds from the run's penalty list."""
    run.penalty_seconds = sum(p.seconds_applied or 0 for p in run.penalties)


def scope_key(scope_type: ScopeType | str, scope_id: str | None) -> str:
    """Index key for a scope; empty or missing id means "all"."""
    return f"{ScopeType(scope_type).value}:{scope_id or ALL_SCOPE_ID}"


# =============================================================================
# Actions
# =============================================================================

class ScenarioAction(ABC):
    """A compiled adjustment that edits one run result in place."""

    def __init__(self, adjustment_id: str):
        self.adjustment_id = adjustment_id

    @abstractmethod
    def apply(self, run: RunResultData) -> None:
        """Apply the adjustment to a (cloned) run result."""
        pass


class RemovePenaltyTaxonomy(ScenarioAction):
    """Drop all penalties of one taxonomy code."""

    def __init__(self, adjustment_id: str, payload: RemovePenaltyTaxonomyPayload):
        super().__init__(adjustment_id)
        self.taxonomy_code = payload.taxonomy_code

    def apply(self, run: RunResultData) -> None:
        run.penalties = [p for p in run.penalties if p.taxonomy_code != self.taxonomy_code]
        recompute_penalty_seconds(run)


class OverridePenaltySeconds(ScenarioAction):
    """Replace seconds applied on penalties matched by taxonomy or rule id."""

    def __init__(self, adjustment_id: str, payload: OverridePenaltySecondsPayload):
        super().__init__(adjustment_id)
        self.new_seconds = payload.new_seconds
        self.taxonomy_code = payload.taxonomy_code
        self.penalty_rule_id = payload.penalty_rule_id

    def _matches(self, penalty: PenaltyData) -> bool:
        # Taxonomy code wins when both are given
        if self.taxonomy_code:
            return penalty.taxonomy_code == self.taxonomy_code
        if self.penalty_rule_id:
            return penalty.penalty_rule_id == self.penalty_rule_id
        return False

    def apply(self, run: RunResultData) -> None:
        run.penalties = [
            replace(p, seconds_applied=self.new_seconds) if self._matches(p) else p
            for p in run.penalties
        ]
        recompute_penalty_seconds(run)


class CleanTimeDelta(ScenarioAction):
    """
    Reduce clean time by editing total time.

    Penalty seconds stay as they are, so lowering total time by the delta
    lowers clean time by the same amount. Total time is clamped at 0.
    """

    def __init__(self, adjustment_id: str, payload: CleanTimeDeltaPayload):
        super().__init__(adjustment_id)
        self.seconds_delta = payload.seconds_delta
        self.run_type_code = payload.run_type_code

    def apply(self, run: RunResultData) -> None:
        if self.run_type_code and run.run_type_code != self.run_type_code:
            return
        run.total_time_seconds = max(0, run.total_time_seconds - self.seconds_delta)


_ACTIONS = {
    AdjustmentType.REMOVE_PENALTY_TAXONOMY: (RemovePenaltyTaxonomyPayload, RemovePenaltyTaxonomy),
    AdjustmentType.OVERRIDE_PENALTY_SECONDS: (OverridePenaltySecondsPayload, OverridePenaltySeconds),
    AdjustmentType.CLEAN_TIME_DELTA: (CleanTimeDeltaPayload, CleanTimeDelta),
}


def compile_adjustment(adjustment: ScenarioAdjustmentData) -> ScenarioAction:
    """
    Validate an adjustment payload and build its action.

    Raises:
        pydantic.ValidationError: Payload does not fit the adjustment type
        ValueError: Unknown adjustment type
    """
    schema, action_cls = _ACTIONS[AdjustmentType(adjustment.adjustment_type)]
    payload = schema.model_validate(adjustment.payload)
    return action_cls(adjustment.id, payload)


def build_scope_index(
    adjustments: Iterable[ScenarioAdjustmentData],
) -> dict[str, list[ScenarioAction]]:
    """
    Compile adjustments and group them by scope key.

    Every payload is validated here, before any data is touched.
    """
    index: dict[str, list[ScenarioAction]] = {}
    for adj in adjustments:
        key = scope_key(adj.scope_type, adj.scope_id)
        index.setdefault(key, []).append(compile_adjustment(adj))
    return index


def _competition_actions(
    index: dict[str, list[ScenarioAction]],
    comp: CompetitionData,
    include_season_scope: bool,
) -> list[ScenarioAction]:
    actions: list[ScenarioAction] = []
    if include_season_scope:
        if comp.season_id:
            actions += index.get(scope_key(ScopeType.SEASON, comp.season_id), [])
        actions += index.get(scope_key(ScopeType.SEASON, None), [])
    actions += index.get(scope_key(ScopeType.COMPETITION, comp.id), [])
    actions += index.get(scope_key(ScopeType.COMPETITION, None), [])
    return actions


def _run_actions(
    index: dict[str, list[ScenarioAction]],
    competition_actions: list[ScenarioAction],
    run: RunResultData,
) -> list[ScenarioAction]:
    return [
        *competition_actions,
        *index.get(scope_key(ScopeType.RUN_TYPE, run.run_type_id), []),
        *index.get(scope_key(ScopeType.RUN_TYPE, run.run_type_code), []),
        *index.get(scope_key(ScopeType.RUN_RESULT, run.id), []),
        *index.get(scope_key(ScopeType.RUN_TYPE, None), []),
        *index.get(scope_key(ScopeType.RUN_RESULT, None), []),
    ]


def apply_scenario_adjustments(
    competitions: Sequence[CompetitionData],
    adjustments: Sequence[ScenarioAdjustmentData],
    *,
    include_season_scope: bool = False,
) -> list[CompetitionData]:
    """
    Apply scenario adjustments to a copy of baseline data.

    Args:
        competitions: Baseline competitions (left unchanged)
        adjustments: Scenario adjustments in submission order
        include_season_scope: Also apply SEASON-scoped adjustments, matched
            on CompetitionData.season_id. Off by default, in which case
            SEASON-scoped adjustments are inert.

    Returns:
        New competitions with adjustments applied; ids and structure match
        the baseline.

    Raises:
        pydantic.ValidationError: A payload is malformed. Every adjustment is
            validated, including ones whose scope matches nothing.
        ValueError: Unknown adjustment type
    """
    index = build_scope_index(adjustments)
    adjusted = copy.deepcopy(list(competitions))
    if not index:
        return adjusted

    applied = 0
    for comp in adjusted:
        comp_actions = _competition_actions(index, comp, include_season_scope)
        for run in comp.run_results:
            for action in _run_actions(index, comp_actions, run):
                action.apply(run)
                applied += 1

    logger.debug(
        f"Applied {len(adjustments)} adjustments to {len(adjusted)} competitions "
        f"({applied} run edits)"
    )
    return adjusted
