"""PhaseConfiguration model: optional per-project overrides."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Uuid

from showops.db.base import Base


class PhaseConfiguration(Base):
    __tablename__ = "phase_configurations"

    project_id = Column(Uuid, ForeignKey("projects.id"), primary_key=True)

    # NULL means "use the project's own value"
    auto_transitions_enabled = Column(Boolean, nullable=True)
    timezone = Column(String(64), nullable=True)
    rehearsal_start_date = Column(Date, nullable=True)
    show_end_date = Column(Date, nullable=True)

    rehearsal_grace_seconds = Column(Integer, nullable=False, default=0)
    post_show_grace_seconds = Column(Integer, nullable=False, default=0)

    updated_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )
