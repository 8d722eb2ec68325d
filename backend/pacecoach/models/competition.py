"""
Competition Models

Seasons, competitions and the timed runs recorded at them.

Models:
- Season: Opaque grouping of competitions
- RunType: Catalog of run types ("A1", "A3", ...)
- Competition: A named event on a date
- RunResult: One timed attempt at one run type
- PenaltyRule: Rulebook entry with its taxonomy code
- Penalty: One applied infraction on a run
- Drill: Training drill linked to taxonomy codes
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float, ForeignKey, JSON, Text
from sqlalchemy.orm import relationship
import uuid

from pacecoach.models.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Season(Base):
    """Season grouping; only used as a filter key by analytics."""

    __tablename__ = "seasons"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    competitions = relationship("Competition", back_populates="season")

    def __repr__(self):
        return f"<Season {self.id} ({self.name})>"


class RunType(Base):
    """Run type catalog entry."""

    __tablename__ = "run_types"

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(20), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<RunType {self.code}>"


class Competition(Base):
    """A competition and its run results."""

    __tablename__ = "competitions"

    id = Column(String(36), primary_key=True, default=_uuid)
    season_id = Column(String(36), ForeignKey("seasons.id"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    date = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    season = relationship("Season", back_populates="competitions")
    run_results = relationship(
        "RunResult",
        back_populates="competition",
        order_by="RunResult.created_at",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Competition {self.id} ({self.name})>"


class RunResult(Base):
    """
    One timed run.

    penalty_seconds is the sum of the run's penalties at entry time.
    Clean time is never stored.
    """

    __tablename__ = "run_results"

    id = Column(String(36), primary_key=True, default=_uuid)
    competition_id = Column(String(36), ForeignKey("competitions.id"), nullable=False, index=True)
    run_type_id = Column(String(36), ForeignKey("run_types.id"), nullable=False, index=True)
    total_time_seconds = Column(Float, nullable=False)
    penalty_seconds = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    competition = relationship("Competition", back_populates="run_results")
    run_type = relationship("RunType")
    penalties = relationship(
        "Penalty",
        back_populates="run_result",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<RunResult {self.id} total={self.total_time_seconds}>"


class PenaltyRule(Base):
    """Rulebook entry."""

    __tablename__ = "penalty_rules"

    id = Column(String(36), primary_key=True, default=_uuid)
    rule_id = Column(String(50), nullable=False, index=True)  # "A1.4"
    taxonomy_code = Column(String(50), nullable=False, index=True)  # "ORDER_VIOLATION"
    description = Column(Text, nullable=True)


class Penalty(Base):
    """Applied infraction. seconds_applied is null for DQ / warning outcomes."""

    __tablename__ = "penalties"

    id = Column(String(36), primary_key=True, default=_uuid)
    run_result_id = Column(String(36), ForeignKey("run_results.id"), nullable=False, index=True)
    penalty_rule_id = Column(String(36), ForeignKey("penalty_rules.id"), nullable=False)
    seconds_applied = Column(Float, nullable=True)

    run_result = relationship("RunResult", back_populates="penalties")
    penalty_rule = relationship("PenaltyRule")


class Drill(Base):
    """Training drill."""

    __tablename__ = "drills"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    linked_taxonomy_codes = Column(JSON, nullable=False, default=list)
