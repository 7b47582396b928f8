"""SQL project repository: phase reads and the guarded phase write."""

import uuid
from datetime import datetime

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from showops.core.exceptions import ConcurrencyConflictError, ProjectNotFoundError
from showops.db.models import PhaseConfiguration as PhaseConfigurationRow
from showops.db.models import Project
from showops.domain.phases import Phase, ProjectState, TransitionRecord
from showops.domain.timezones import ensure_utc
from showops.repositories.audit import record_to_row
from showops.repositories.errors import unavailable_on_error

logger = structlog.get_logger(__name__)


def project_to_state(row: Project) -> ProjectState:
    return ProjectState(
        id=row.id,
        name=row.name,
        phase=Phase(row.phase),
        phase_updated_at=ensure_utc(row.phase_updated_at),
        timezone=row.timezone,
        rehearsal_start_date=row.rehearsal_start_date,
        show_end_date=row.show_end_date,
        auto_transitions_enabled=row.auto_transitions_enabled,
    )


class SqlProjectRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, project_id: uuid.UUID) -> ProjectState:
        with unavailable_on_error("projects"):
            async with self.session_factory() as session:
                row = await session.get(Project, project_id)
        if row is None:
            raise ProjectNotFoundError(project_id)
        return project_to_state(row)

    async def apply_transition(
        self,
        project_id: uuid.UUID,
        from_phase: Phase,
        expected_version: datetime,
        to_phase: Phase,
        new_version: datetime,
        record: TransitionRecord,
    ) -> None:
        """UPDATE ... WHERE phase_updated_at = :token, plus the audit insert, in one transaction."""
        stmt = (
            update(Project)
            .where(
                Project.id == project_id,
                Project.phase == from_phase.value,
                Project.phase_updated_at == expected_version,
            )
            .values(phase=to_phase.value, phase_updated_at=new_version, updated_at=new_version)
            .execution_options(synchronize_session=False)
        )
        with unavailable_on_error("projects"):
            async with self.session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    if result.rowcount != 1:
                        logger.debug("phase_guard_mismatch", project_id=str(project_id), from_phase=from_phase.value)
                        raise ConcurrencyConflictError(project_id, expected_version)
                    session.add(record_to_row(record))

    async def list_auto_transition_candidates(self) -> list[uuid.UUID]:
        enabled = func.coalesce(PhaseConfigurationRow.auto_transitions_enabled, Project.auto_transitions_enabled)
        stmt = (
            select(Project.id)
            .outerjoin(PhaseConfigurationRow, PhaseConfigurationRow.project_id == Project.id)
            .where(Project.phase != Phase.ARCHIVED.value, enabled.is_(True))
            .order_by(Project.created_at, Project.id)
        )
        with unavailable_on_error("projects"):
            async with self.session_factory() as session:
                return list((await session.execute(stmt)).scalars().all())
