"""Readiness Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from showops.domain.readiness import ReadinessCategory, ReadinessSnapshot


class ReadinessCounts(BaseModel):
    custom_locations: int
    custom_roles: int
    staff_assigned: int
    talent_assigned: int
    supervisors: int
    escorts: int
    coordinators: int


class ReadinessResponse(BaseModel):
    project_id: uuid.UUID
    overall_status: str
    categories: dict[str, str]  # category -> none | partial | configured | finalized
    counts: ReadinessCounts
    computed_at: datetime | None = None

    @classmethod
    def from_domain(cls, snapshot: ReadinessSnapshot) -> "ReadinessResponse":
        return cls(
            project_id=snapshot.project_id,
            overall_status=snapshot.overall.value,
            categories={category.value: snapshot.status_of(category).value for category in ReadinessCategory},
            counts=ReadinessCounts(
                custom_locations=snapshot.custom_location_count,
                custom_roles=snapshot.custom_role_count,
                staff_assigned=snapshot.staff_assigned,
                talent_assigned=snapshot.talent_assigned,
                supervisors=snapshot.supervisor_count,
                escorts=snapshot.escort_count,
                coordinators=snapshot.coordinator_count,
            ),
            computed_at=snapshot.computed_at,
        )


class FinalizeRequest(BaseModel):
    category: str
    finalized_by: str | None = Field(default=None, max_length=255)


class UnfinalizeRequest(BaseModel):
    category: str
