"""Project model: production projects and their lifecycle phase."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, Date, DateTime, String, Uuid

from showops.db.base import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, default="")

    # Lifecycle (written only by the phase engine)
    phase = Column(String(20), nullable=False, default="prep", index=True)
    phase_updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))  # version token

    timezone = Column(String(64), nullable=True)  # IANA id; NULL means UTC
    rehearsal_start_date = Column(Date, nullable=True)
    show_end_date = Column(Date, nullable=True)
    auto_transitions_enabled = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )
