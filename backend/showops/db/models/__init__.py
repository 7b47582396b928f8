"""Re-export all models so Base.metadata sees them."""

from showops.db.models.collaborators import (
    ProjectLocation,
    ProjectRoleTemplate,
    TalentProjectAssignment,
    TeamAssignment,
    Timecard,
)
from showops.db.models.phase_configuration import PhaseConfiguration
from showops.db.models.phase_transition import PhaseTransition
from showops.db.models.project import Project
from showops.db.models.project_readiness import ProjectReadiness

__all__ = [
    "PhaseConfiguration",
    "PhaseTransition",
    "Project",
    "ProjectLocation",
    "ProjectReadiness",
    "ProjectRoleTemplate",
    "TalentProjectAssignment",
    "TeamAssignment",
    "Timecard",
]
