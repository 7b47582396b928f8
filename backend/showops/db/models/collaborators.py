"""Collaborator tables the phase engine only reads.

Owned by the scheduling application; modelled here with just the columns
readiness and the timecard signal depend on.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid

from showops.db.base import Base


class ProjectLocation(Base):
    __tablename__ = "project_locations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)  # seeded template, not a custom entry
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))


class ProjectRoleTemplate(Base):
    __tablename__ = "project_role_templates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    role = Column(String(50), nullable=False)  # supervisor, coordinator, escort
    display_name = Column(String(255), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))


class TeamAssignment(Base):
    __tablename__ = "team_assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Uuid, nullable=False)
    role = Column(String(50), nullable=False)  # supervisor, coordinator, escort
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))


class TalentProjectAssignment(Base):
    __tablename__ = "talent_project_assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    talent_id = Column(Uuid, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))


class Timecard(Base):
    __tablename__ = "timecards"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Uuid, nullable=False)
    status = Column(String(20), nullable=False, default="draft")  # draft, submitted, approved, rejected
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
