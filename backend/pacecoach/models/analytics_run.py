"""
Analytics Run Models

Audit trail of computed analytics, stamped with the engine version.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, JSON
from sqlalchemy.orm import relationship
import uuid

from pacecoach.models.base import Base


class AnalyticsRun(Base):
    """One computation invocation and its parameters."""

    __tablename__ = "analytics_runs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    analytics_version = Column(String(20), nullable=False)
    computation_type = Column(String(50), nullable=False, index=True)
    params_json = Column(JSON, nullable=False, default=dict)
    scope_type = Column(String(20), nullable=True)
    scope_id = Column(String(36), nullable=True)
    scenario_id = Column(String(36), nullable=True)
    status = Column(String(20), nullable=False, default="completed")
    duration_ms = Column(Integer, nullable=True)
    created_by_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    artifacts = relationship(
        "AnalyticsArtifact",
        back_populates="analytics_run",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<AnalyticsRun {self.id} {self.computation_type} v{self.analytics_version}>"


class AnalyticsArtifact(Base):
    """Output of an analytics run, addressable by artifact key."""

    __tablename__ = "analytics_artifacts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    analytics_run_id = Column(String(36), ForeignKey("analytics_runs.id"), nullable=False, index=True)
    analytics_version = Column(String(20), nullable=False)
    artifact_key = Column(String(255), nullable=False, index=True)
    output_json = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    analytics_run = relationship("AnalyticsRun", back_populates="artifacts")
