"""Readiness status derivation.

Pure functions with no external dependencies. Knows nothing about phases:
it turns collaborator counts and explicit finalize flags into per-category
statuses and an overall roll-up.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class ReadinessCategory(StrEnum):
    LOCATIONS = "locations"
    ROLES = "roles"
    TEAM = "team"
    TALENT = "talent"


class CategoryStatus(StrEnum):
    NONE = "none"
    PARTIAL = "partial"
    CONFIGURED = "configured"
    FINALIZED = "finalized"


class OverallStatus(StrEnum):
    GETTING_STARTED = "getting-started"
    OPERATIONAL = "operational"
    PRODUCTION_READY = "production-ready"


# Template-backed categories report "configured" once custom entries exist;
# assignment-backed ones report "partial".
_IN_PROGRESS_STATUS = {
    ReadinessCategory.LOCATIONS: CategoryStatus.CONFIGURED,
    ReadinessCategory.ROLES: CategoryStatus.CONFIGURED,
    ReadinessCategory.TEAM: CategoryStatus.PARTIAL,
    ReadinessCategory.TALENT: CategoryStatus.PARTIAL,
}


@dataclass(frozen=True)
class ReadinessInputs:
    """Raw collaborator counts and finalize flags for one project."""

    project_id: uuid.UUID
    custom_location_count: int = 0
    custom_role_count: int = 0
    staff_assigned: int = 0
    talent_assigned: int = 0
    supervisor_count: int = 0
    escort_count: int = 0
    coordinator_count: int = 0
    locations_finalized: bool = False
    roles_finalized: bool = False
    team_finalized: bool = False
    talent_finalized: bool = False

    def count_for(self, category: ReadinessCategory) -> int:
        return {
            ReadinessCategory.LOCATIONS: self.custom_location_count,
            ReadinessCategory.ROLES: self.custom_role_count,
            ReadinessCategory.TEAM: self.staff_assigned,
            ReadinessCategory.TALENT: self.talent_assigned,
        }[category]

    def finalized(self, category: ReadinessCategory) -> bool:
        return getattr(self, f"{category.value}_finalized")


@dataclass(frozen=True)
class ReadinessSnapshot:
    """Derived readiness for one project. Always replaced whole, never patched."""

    project_id: uuid.UUID
    locations: CategoryStatus
    roles: CategoryStatus
    team: CategoryStatus
    talent: CategoryStatus
    overall: OverallStatus
    custom_location_count: int = 0
    custom_role_count: int = 0
    staff_assigned: int = 0
    talent_assigned: int = 0
    supervisor_count: int = 0
    escort_count: int = 0
    coordinator_count: int = 0
    computed_at: datetime | None = None

    def status_of(self, category: ReadinessCategory) -> CategoryStatus:
        return getattr(self, category.value)

    def is_finalized(self, category: ReadinessCategory) -> bool:
        return self.status_of(category) == CategoryStatus.FINALIZED


def category_status(category: ReadinessCategory, count: int, finalized: bool) -> CategoryStatus:
    """Status for one category.

    The finalize flag wins regardless of count; reaching a count never
    finalizes on its own.
    """
    if finalized:
        return CategoryStatus.FINALIZED
    if count <= 0:
        return CategoryStatus.NONE
    return _IN_PROGRESS_STATUS[category]


def compute_overall_status(
    statuses: dict[ReadinessCategory, CategoryStatus],
    staff_assigned: int,
    talent_assigned: int,
) -> OverallStatus:
    """Roll the four categories up into one overall status.

    Rules:
        - production-ready: all four finalized and at least one team member
          and one talent record exist
        - operational: team and talent both have records, not all finalized
        - getting-started: otherwise
    """
    staffed = staff_assigned > 0 and talent_assigned > 0
    if not staffed:
        return OverallStatus.GETTING_STARTED
    if all(status == CategoryStatus.FINALIZED for status in statuses.values()):
        return OverallStatus.PRODUCTION_READY
    return OverallStatus.OPERATIONAL


def compute_snapshot(inputs: ReadinessInputs, computed_at: datetime | None = None) -> ReadinessSnapshot:
    """Derive a full snapshot from raw inputs. Deterministic for equal inputs."""
    statuses = {
        category: category_status(category, inputs.count_for(category), inputs.finalized(category))
        for category in ReadinessCategory
    }
    overall = compute_overall_status(statuses, inputs.staff_assigned, inputs.talent_assigned)

    return ReadinessSnapshot(
        project_id=inputs.project_id,
        locations=statuses[ReadinessCategory.LOCATIONS],
        roles=statuses[ReadinessCategory.ROLES],
        team=statuses[ReadinessCategory.TEAM],
        talent=statuses[ReadinessCategory.TALENT],
        overall=overall,
        custom_location_count=inputs.custom_location_count,
        custom_role_count=inputs.custom_role_count,
        staff_assigned=inputs.staff_assigned,
        talent_assigned=inputs.talent_assigned,
        supervisor_count=inputs.supervisor_count,
        escort_count=inputs.escort_count,
        coordinator_count=inputs.coordinator_count,
        computed_at=computed_at,
    )
