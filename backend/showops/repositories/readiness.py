"""SQL readiness repository: collaborator counts, finalize flags, stored snapshot."""

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from showops.core.exceptions import ProjectNotFoundError
from showops.db.models import (
    Project,
    ProjectLocation,
    ProjectReadiness,
    ProjectRoleTemplate,
    TalentProjectAssignment,
    TeamAssignment,
)
from showops.domain.readiness import (
    CategoryStatus,
    OverallStatus,
    ReadinessCategory,
    ReadinessInputs,
    ReadinessSnapshot,
)
from showops.domain.timezones import ensure_utc
from showops.repositories.errors import unavailable_on_error

_COUNT_FIELDS = (
    "custom_location_count",
    "custom_role_count",
    "staff_assigned",
    "talent_assigned",
    "supervisor_count",
    "escort_count",
    "coordinator_count",
)


def _count(model, project_id: uuid.UUID, *criteria):
    return select(func.count()).select_from(model).where(model.project_id == project_id, *criteria)


async def _require_project(session: AsyncSession, project_id: uuid.UUID) -> None:
    if await session.get(Project, project_id) is None:
        raise ProjectNotFoundError(project_id)


async def _ensure_row(session: AsyncSession, project_id: uuid.UUID) -> ProjectReadiness:
    """Create the readiness row if missing, then load it inside the same transaction."""
    insert = sqlite_insert if session.get_bind().dialect.name == "sqlite" else pg_insert
    # Race-safe idempotent insert
    await session.execute(
        insert(ProjectReadiness).values(project_id=project_id).on_conflict_do_nothing(index_elements=["project_id"])
    )
    return await session.get(ProjectReadiness, project_id, populate_existing=True)


class SqlReadinessRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def fetch_inputs(self, project_id: uuid.UUID) -> ReadinessInputs:
        """Count custom locations/roles and assignments, and read the finalize flags."""
        with unavailable_on_error("readiness"):
            async with self.session_factory() as session:
                await _require_project(session, project_id)

                locations = await session.scalar(
                    _count(ProjectLocation, project_id, ProjectLocation.is_default.is_(False))
                )
                roles = await session.scalar(
                    _count(ProjectRoleTemplate, project_id, ProjectRoleTemplate.is_default.is_(False))
                )
                talent = await session.scalar(_count(TalentProjectAssignment, project_id))

                by_role = dict(
                    (
                        await session.execute(
                            select(TeamAssignment.role, func.count())
                            .where(TeamAssignment.project_id == project_id)
                            .group_by(TeamAssignment.role)
                        )
                    ).all()
                )
                flags = await session.get(ProjectReadiness, project_id)

        return ReadinessInputs(
            project_id=project_id,
            custom_location_count=locations or 0,
            custom_role_count=roles or 0,
            staff_assigned=sum(by_role.values()),
            talent_assigned=talent or 0,
            supervisor_count=by_role.get("supervisor", 0),
            escort_count=by_role.get("escort", 0),
            coordinator_count=by_role.get("coordinator", 0),
            locations_finalized=bool(flags and flags.locations_finalized),
            roles_finalized=bool(flags and flags.roles_finalized),
            team_finalized=bool(flags and flags.team_finalized),
            talent_finalized=bool(flags and flags.talent_finalized),
        )

    async def save_snapshot(self, snapshot: ReadinessSnapshot) -> None:
        with unavailable_on_error("readiness"):
            async with self.session_factory() as session:
                row = await _ensure_row(session, snapshot.project_id)
                for category in ReadinessCategory:
                    setattr(row, f"{category.value}_status", snapshot.status_of(category).value)
                row.overall_status = snapshot.overall.value
                for name in _COUNT_FIELDS:
                    setattr(row, name, getattr(snapshot, name))
                row.computed_at = snapshot.computed_at
                await session.commit()

    async def get_snapshot(self, project_id: uuid.UUID) -> ReadinessSnapshot | None:
        with unavailable_on_error("readiness"):
            async with self.session_factory() as session:
                row = await session.get(ProjectReadiness, project_id)
        if row is None or row.computed_at is None:
            return None
        return ReadinessSnapshot(
            project_id=row.project_id,
            locations=CategoryStatus(row.locations_status),
            roles=CategoryStatus(row.roles_status),
            team=CategoryStatus(row.team_status),
            talent=CategoryStatus(row.talent_status),
            overall=OverallStatus(row.overall_status),
            computed_at=ensure_utc(row.computed_at),
            **{name: getattr(row, name) for name in _COUNT_FIELDS},
        )

    async def set_finalized(
        self,
        project_id: uuid.UUID,
        category: ReadinessCategory,
        finalized: bool,
        actor: str | None,
        at: datetime,
    ) -> None:
        prefix = category.value
        with unavailable_on_error("readiness"):
            async with self.session_factory() as session:
                await _require_project(session, project_id)
                row = await _ensure_row(session, project_id)
                setattr(row, f"{prefix}_finalized", finalized)
                setattr(row, f"{prefix}_finalized_at", at if finalized else None)
                setattr(row, f"{prefix}_finalized_by", actor if finalized else None)
                await session.commit()
