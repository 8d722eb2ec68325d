"""
Shared fixtures for analytics tests.

Factories build plain dataclass inputs with sensible defaults so tests
only spell out the fields they care about.
"""

from datetime import datetime

import pytest

from pacecoach.features.analytics.models import (
    CompetitionData,
    PenaltyData,
    RunResultData,
)


@pytest.fixture
def make_penalty():
    """Factory for PenaltyData."""
    counter = {"n": 0}

    def _make(taxonomy_code="ORDER_VIOLATION", seconds=10, rule_id="pr1"):
        counter["n"] += 1
        return PenaltyData(
            id=f"p{counter['n']}",
            penalty_rule_id=rule_id,
            taxonomy_code=taxonomy_code,
            rule_id=rule_id,
            seconds_applied=seconds,
        )

    return _make


@pytest.fixture
def make_run():
    """Factory for RunResultData; penalty_seconds defaults to the penalties' sum."""
    counter = {"n": 0}

    def _make(
        total=100,
        penalty=None,
        penalties=None,
        competition_id="comp1",
        code="A1",
        run_type_id=None,
        run_id=None,
    ):
        counter["n"] += 1
        penalties = list(penalties or [])
        if penalty is None:
            penalty = sum(p.seconds_applied or 0 for p in penalties)
        return RunResultData(
            id=run_id or f"rr{counter['n']}",
            competition_id=competition_id,
            run_type_id=run_type_id or f"rt-{code}",
            run_type_code=code,
            run_type_name=f"Run {code}",
            total_time_seconds=total,
            penalty_seconds=penalty,
            penalties=penalties,
        )

    return _make


@pytest.fixture
def make_competition():
    """Factory for CompetitionData."""

    def _make(comp_id="comp1", runs=None, date=None, season_id=None, name=None):
        return CompetitionData(
            id=comp_id,
            name=name or f"Competition {comp_id}",
            date=date or datetime(2024, 1, 1),
            run_results=list(runs or []),
            season_id=season_id,
        )

    return _make


@pytest.fixture
def penalized_competition(make_competition, make_run, make_penalty):
    """One competition, one A1 run of 100s with a 10s ORDER_VIOLATION."""
    return make_competition(
        "comp1",
        runs=[make_run(total=100, penalties=[make_penalty("ORDER_VIOLATION", 10)], run_id="rr1")],
    )
