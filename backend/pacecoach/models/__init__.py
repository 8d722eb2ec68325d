"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy.
"""

from pacecoach.models.base import Base
from pacecoach.models.competition import (
    Season,
    RunType,
    Competition,
    RunResult,
    PenaltyRule,
    Penalty,
    Drill,
)
from pacecoach.models.scenario import Scenario, ScenarioAdjustment
from pacecoach.models.analytics_run import AnalyticsRun, AnalyticsArtifact


__all__ = [
    "Base",
    "Season",
    "RunType",
    "Competition",
    "RunResult",
    "PenaltyRule",
    "Penalty",
    "Drill",
    "Scenario",
    "ScenarioAdjustment",
    "AnalyticsRun",
    "AnalyticsArtifact",
]
