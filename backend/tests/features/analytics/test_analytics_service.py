"""
Tests for AnalyticsService.

Uses an in-memory provider and recording sinks, no database.
"""

import asyncio
import copy
import logging
from dataclasses import replace
from datetime import datetime

import pytest

from pacecoach.features.analytics.comparison import ScenarioResult
from pacecoach.features.analytics.computations import AnalyticsInputError, compute_run_diagnostics
from pacecoach.features.analytics.models import DrillData, ScenarioAdjustmentData
from pacecoach.features.analytics.service import (
    AnalyticsService,
    RunTypeNotFoundError,
    fill_competition_details,
)
from pacecoach.shared.constants import AdjustmentType, ScopeType


# =============================================================================
# Fakes
# =============================================================================

class InMemoryProvider:
    """Provider over plain lists, mirroring AnalyticsDataRepository."""

    def __init__(self, competitions, adjustments=None, run_types=None, drills=()):
        self.competitions = competitions
        self.adjustments = adjustments or {}
        self.run_types = run_types or {}
        self.drills = list(drills)
        self.calls = []

    async def find_run_type_id(self, code):
        return self.run_types.get(code)

    async def load_competitions(self, season_id=None):
        self.calls.append("load_competitions")
        return [c for c in self.competitions if season_id is None or c.season_id == season_id]

    async def load_competitions_for_run_type(self, run_type_id):
        self.calls.append("load_competitions_for_run_type")
        result = []
        for comp in self.competitions:
            runs = [rr for rr in comp.run_results if rr.run_type_id == run_type_id]
            if runs:
                result.append(replace(comp, run_results=runs))
        return result

    async def load_run_results(self, run_type_id):
        self.calls.append("load_run_results")
        return [rr for c in self.competitions for rr in c.run_results if rr.run_type_id == run_type_id]

    async def load_scenario_adjustments(self, scenario_id):
        return list(self.adjustments.get(scenario_id, []))

    async def load_drills(self):
        return self.drills


class RecordingSink:
    """Sink that keeps every record call."""

    def __init__(self):
        self.records = []

    async def record(self, **kwargs):
        self.records.append(kwargs)
        return f"run-{len(self.records)}"


class BlockedSink(RecordingSink):
    """Sink that waits until released before recording."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def record(self, **kwargs):
        await self.release.wait()
        return await super().record(**kwargs)


class FailingSink:
    async def record(self, **kwargs):
        raise RuntimeError("disk full")


# =============================================================================
# Fixtures
# =============================================================================

REMOVE_ORDER = ScenarioAdjustmentData(
    id="adj1",
    scope_type=ScopeType.RUN_TYPE,
    scope_id=None,
    adjustment_type=AdjustmentType.REMOVE_PENALTY_TAXONOMY,
    payload={"taxonomyCode": "ORDER_VIOLATION"},
)


@pytest.fixture
def competitions(make_competition, make_run, make_penalty):
    """Four s1 competitions with A1 runs (some penalized) and one A3 run."""
    comps = []
    for i, (total, seconds) in enumerate([(100, 10), (95, 0), (110, 20), (90, 0)]):
        comp_id = f"c{i}"
        runs = [make_run(
            total=total,
            code="A1",
            competition_id=comp_id,
            penalties=[make_penalty("ORDER_VIOLATION", seconds)] if seconds else [],
        )]
        if i == 0:
            runs.append(make_run(total=200, code="A3", competition_id=comp_id,
                                 penalties=[make_penalty("SAFETY", 5)]))
        comps.append(make_competition(
            comp_id, runs=runs, date=datetime(2024, 1, i + 1), season_id="s1",
        ))
    return comps


@pytest.fixture
def provider(competitions):
    return InMemoryProvider(
        competitions,
        adjustments={"sc1": [REMOVE_ORDER]},
        run_types={"A1": "rt-A1", "A3": "rt-A3", "B7": "rt-B7"},
        drills=[DrillData(id="d1", name="Order drill", linked_taxonomy_codes=("ORDER_VIOLATION",))],
    )


def make_service(provider, sink=None, **kwargs):
    kwargs.setdefault("window_size", 3)
    kwargs.setdefault("include_season_scope", False)
    kwargs.setdefault("persist_by_default", False)
    return AnalyticsService(provider, sink=sink, **kwargs)


# =============================================================================
# Test Computations
# =============================================================================

class TestCompetitionTrends:
    """Tests for AnalyticsService.competition_trends."""

    @pytest.mark.asyncio
    async def test_baseline(self, provider):
        trends = await make_service(provider).competition_trends()

        assert [t.competition_id for t in trends] == ["c0", "c1", "c2", "c3"]
        assert trends[0].penalty_load == 15
        assert trends[0].competition_date == "2024-01-01T00:00:00"

    @pytest.mark.asyncio
    async def test_season_filter(self, provider):
        assert await make_service(provider).competition_trends(season_id="other") == []

    @pytest.mark.asyncio
    async def test_scenario(self, provider, competitions):
        snapshot = copy.deepcopy(competitions)

        result = await make_service(provider).competition_trends(scenario_id="sc1")

        assert isinstance(result, ScenarioResult)
        assert result.baseline[0].penalty_load == 15
        assert result.scenario[0].penalty_load == 5
        assert result.delta[0].penalty_load_delta == 10
        assert competitions == snapshot

    @pytest.mark.asyncio
    async def test_unknown_scenario_matches_baseline(self, provider):
        result = await make_service(provider).competition_trends(scenario_id="missing")
        assert result.baseline == result.scenario


class TestRunDiagnostics:
    """Tests for AnalyticsService.run_diagnostics."""

    @pytest.mark.asyncio
    async def test_filled_competition_details(self, provider):
        diagnostic = await make_service(provider).run_diagnostics("A1")

        assert [p.competition_name for p in diagnostic.data_points] == [
            "Competition c0", "Competition c1", "Competition c2", "Competition c3",
        ]
        assert [p.clean_time for p in diagnostic.data_points] == [90, 95, 90, 90]
        assert [p.index for p in diagnostic.rolling_median] == [2, 3]
        assert diagnostic.rolling_median[0].competition_date == "2024-01-03T00:00:00"
        assert diagnostic.rolling_iqr[-1].competition_date == "2024-01-04T00:00:00"

    @pytest.mark.asyncio
    async def test_only_requested_run_type(self, provider):
        diagnostic = await make_service(provider).run_diagnostics("A3", window_size=1)

        assert diagnostic.run_type_code == "A3"
        assert len(diagnostic.data_points) == 1

    @pytest.mark.asyncio
    async def test_unknown_run_type(self, provider):
        with pytest.raises(RunTypeNotFoundError, match="Run type not found: ZZ"):
            await make_service(provider).run_diagnostics("ZZ")

    @pytest.mark.asyncio
    async def test_run_type_without_runs(self, provider):
        with pytest.raises(AnalyticsInputError):
            await make_service(provider).run_diagnostics("B7")

    @pytest.mark.asyncio
    async def test_zero_window_rejected(self, provider):
        with pytest.raises(AnalyticsInputError):
            await make_service(provider).run_diagnostics("A1", window_size=0)

    @pytest.mark.asyncio
    async def test_zero_default_window_rejected(self, provider):
        service = make_service(provider, window_size=0)

        assert service.window_size == 0
        with pytest.raises(AnalyticsInputError):
            await service.run_diagnostics("A1")

    @pytest.mark.asyncio
    async def test_scenario_improvement(self, provider):
        result = await make_service(provider).run_diagnostics("A1", scenario_id="sc1")

        # Scenario clean times 100, 95, 110, 90; last window [95, 110, 90]
        assert result.scenario.rolling_median[-1].value == 95
        assert result.baseline.rolling_median[-1].value == 90
        assert result.delta.median_improvement == -5


class TestDrivers:
    """Tests for AnalyticsService.drivers."""

    @pytest.mark.asyncio
    async def test_baseline(self, provider):
        drivers = await make_service(provider).drivers()

        assert [(d.run_type_code, d.total_penalty_seconds) for d in drivers] == [("A1", 30), ("A3", 5)]

    @pytest.mark.asyncio
    async def test_scenario(self, provider):
        result = await make_service(provider).drivers(scenario_id="sc1")

        assert [d.run_type_code for d in result.scenario] == ["A3", "A1"]
        assert {d.run_type_code: d.penalty_seconds_delta for d in result.delta} == {"A3": 0, "A1": 30}


class TestRecoverableTime:
    """Tests for AnalyticsService.recoverable_time."""

    @pytest.mark.asyncio
    async def test_baseline_uses_run_results(self, provider):
        estimate = await make_service(provider).recoverable_time("A1")

        assert provider.calls == ["load_run_results"]
        assert estimate.total_penalty_seconds == 30
        assert estimate.clean_times == [90, 95, 90, 90]

    @pytest.mark.asyncio
    async def test_scenario_delta(self, provider):
        result = await make_service(provider).recoverable_time("A1", scenario_id="sc1")

        assert result.scenario.total_penalty_seconds == 0
        assert result.delta == result.baseline.recoverable_time - result.scenario.recoverable_time

    @pytest.mark.asyncio
    async def test_unknown_run_type(self, provider):
        with pytest.raises(LookupError):
            await make_service(provider).recoverable_time("ZZ")


class TestCoachingSummary:
    """Tests for AnalyticsService.coaching_summary."""

    @pytest.mark.asyncio
    async def test_summary_with_drills(self, provider):
        summary = await make_service(provider).coaching_summary(season_id="s1")

        assert summary.confidence == "medium"
        assert [d.drill_id for d in summary.recommended_drills] == ["d1"]

    @pytest.mark.asyncio
    async def test_run_type_filter(self, provider, competitions):
        summary = await make_service(provider).coaching_summary(run_type_code="A3")

        assert "Most common issues: SAFETY" in summary.key_findings
        assert len(competitions[0].run_results) == 2


# =============================================================================
# Test Persistence
# =============================================================================

class TestPersistence:
    """Results are written to the sink without blocking the caller."""

    @pytest.mark.asyncio
    async def test_not_persisted_by_default(self, provider):
        sink = RecordingSink()
        service = make_service(provider, sink)

        await service.drivers()
        await service.wait_for_pending_writes()

        assert sink.records == []

    @pytest.mark.asyncio
    async def test_persist_records_scenario_output(self, provider):
        sink = RecordingSink()
        service = make_service(provider, sink)

        await service.competition_trends(season_id="s1", scenario_id="sc1", persist=True, created_by_id="u1")
        await service.wait_for_pending_writes()

        assert len(sink.records) == 1
        record = sink.records[0]
        assert record["computation_type"] == "competition-trends"
        assert record["artifact_key"] == "competition-trends:seasonId=s1:scenarioId=sc1"
        assert record["params"] == {"seasonId": "s1", "scenarioId": "sc1"}
        assert record["scope_type"] == "SEASON"
        assert record["created_by_id"] == "u1"
        assert record["output"][0]["penalty_load"] == 5

    @pytest.mark.asyncio
    async def test_persist_by_default_setting(self, provider):
        sink = RecordingSink()
        service = make_service(provider, sink, persist_by_default=True)

        await service.run_diagnostics("A1")
        await service.wait_for_pending_writes()

        record = sink.records[0]
        assert record["artifact_key"] == "run-diagnostics:A1"
        assert record["scope_id"] == "rt-A1"
        assert record["params"]["windowSize"] == 3

    @pytest.mark.asyncio
    async def test_result_returned_before_write_completes(self, provider):
        sink = BlockedSink()
        service = make_service(provider, sink)

        drivers = await service.drivers(persist=True)

        assert drivers
        assert sink.records == []
        sink.release.set()
        await service.wait_for_pending_writes()
        assert len(sink.records) == 1

    @pytest.mark.asyncio
    async def test_sink_failure_is_logged_not_raised(self, provider, caplog):
        caplog.set_level(logging.ERROR, logger="pacecoach.features.analytics.service")
        service = make_service(provider, FailingSink())

        drivers = await service.drivers(persist=True)
        await service.wait_for_pending_writes()

        assert drivers
        assert "Failed to persist analytics result drivers:seasonId=all" in caplog.text

    @pytest.mark.asyncio
    async def test_persist_without_sink_warns(self, provider, caplog):
        caplog.set_level(logging.WARNING, logger="pacecoach.features.analytics.service")

        trends = await make_service(provider).competition_trends(persist=True)

        assert trends
        assert "no result sink configured" in caplog.text


# =============================================================================
# Test Helpers
# =============================================================================

class TestFillCompetitionDetails:
    """Tests for fill_competition_details."""

    def test_unknown_competition_left_blank(self, make_run, make_competition):
        diagnostic = compute_run_diagnostics([make_run(competition_id="gone")], window_size=1)
        fill_competition_details(diagnostic, [make_competition("other")])

        assert diagnostic.data_points[0].competition_name == ""
        assert diagnostic.rolling_median[0].competition_date == ""
