"""PhaseTransition model: append-only log of transition attempts."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from showops.db.base import Base


class PhaseTransition(Base):
    __tablename__ = "phase_transitions"

    # Integer key gives a stable newest-first order for rows sharing a timestamp
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(Uuid, nullable=False, unique=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)

    from_phase = Column(String(20), nullable=False)
    to_phase = Column(String(20), nullable=True)  # NULL unless applied
    triggered_by = Column(String(20), nullable=False)  # manual, automatic
    outcome = Column(String(20), nullable=False)  # applied, blocked, error
    blockers = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)  # [{"code", "message"}]
    actor = Column(String(255), nullable=True)
    correlation_id = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), index=True)
    # NO updated_at -- records are immutable (append-only)
