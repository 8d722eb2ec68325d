"""
Scenario Models

What-if scenarios and their ordered adjustments.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
import uuid

from pacecoach.models.base import Base


class Scenario(Base):
    """Named set of hypothetical adjustments."""

    __tablename__ = "scenarios"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    adjustments = relationship(
        "ScenarioAdjustment",
        back_populates="scenario",
        order_by="ScenarioAdjustment.created_at",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Scenario {self.id} ({self.name})>"


class ScenarioAdjustment(Base):
    """
    One adjustment. Application order is created_at order.

    scope_type: SEASON | COMPETITION | RUN_TYPE | RUN_RESULT
    scope_id: null means every entity of scope_type
    adjustment_type: REMOVE_PENALTY_TAXONOMY | OVERRIDE_PENALTY_SECONDS | CLEAN_TIME_DELTA
    """

    __tablename__ = "scenario_adjustments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    scenario_id = Column(String(36), ForeignKey("scenarios.id"), nullable=False, index=True)
    scope_type = Column(String(20), nullable=False)
    scope_id = Column(String(36), nullable=True)
    adjustment_type = Column(String(40), nullable=False)
    payload_json = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)

    scenario = relationship("Scenario", back_populates="adjustments")

    def __repr__(self):
        return f"<ScenarioAdjustment {self.id} {self.scope_type}:{self.scope_id} {self.adjustment_type}>"
