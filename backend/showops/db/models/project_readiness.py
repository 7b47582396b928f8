"""ProjectReadiness model: derived readiness snapshot plus explicit finalize flags."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Uuid

from showops.db.base import Base


class ProjectReadiness(Base):
    __tablename__ = "project_readiness"

    project_id = Column(Uuid, ForeignKey("projects.id"), primary_key=True)

    # Finalize flags: set only by an explicit finalize action
    locations_finalized = Column(Boolean, nullable=False, default=False)
    locations_finalized_at = Column(DateTime(timezone=True), nullable=True)
    locations_finalized_by = Column(String(255), nullable=True)
    roles_finalized = Column(Boolean, nullable=False, default=False)
    roles_finalized_at = Column(DateTime(timezone=True), nullable=True)
    roles_finalized_by = Column(String(255), nullable=True)
    team_finalized = Column(Boolean, nullable=False, default=False)
    team_finalized_at = Column(DateTime(timezone=True), nullable=True)
    team_finalized_by = Column(String(255), nullable=True)
    talent_finalized = Column(Boolean, nullable=False, default=False)
    talent_finalized_at = Column(DateTime(timezone=True), nullable=True)
    talent_finalized_by = Column(String(255), nullable=True)

    # Derived snapshot, replaced whole on every recompute
    locations_status = Column(String(20), nullable=False, default="none")  # none, partial, configured, finalized
    roles_status = Column(String(20), nullable=False, default="none")
    team_status = Column(String(20), nullable=False, default="none")
    talent_status = Column(String(20), nullable=False, default="none")
    overall_status = Column(String(20), nullable=False, default="getting-started")

    custom_location_count = Column(Integer, nullable=False, default=0)
    custom_role_count = Column(Integer, nullable=False, default=0)
    staff_assigned = Column(Integer, nullable=False, default=0)
    talent_assigned = Column(Integer, nullable=False, default=0)
    supervisor_count = Column(Integer, nullable=False, default=0)
    escort_count = Column(Integer, nullable=False, default=0)
    coordinator_count = Column(Integer, nullable=False, default=0)

    computed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )
