"""SQL storage for per-project phase configuration overrides."""

import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from showops.db.models import PhaseConfiguration as PhaseConfigurationRow
from showops.domain.configuration import PhaseConfiguration
from showops.domain.timezones import ensure_utc
from showops.repositories.errors import unavailable_on_error


def _to_domain(row: PhaseConfigurationRow) -> PhaseConfiguration:
    return PhaseConfiguration(
        project_id=row.project_id,
        auto_transitions_enabled=row.auto_transitions_enabled,
        timezone=row.timezone,
        rehearsal_start_date=row.rehearsal_start_date,
        show_end_date=row.show_end_date,
        rehearsal_grace=timedelta(seconds=row.rehearsal_grace_seconds or 0),
        post_show_grace=timedelta(seconds=row.post_show_grace_seconds or 0),
        updated_at=ensure_utc(row.updated_at) if row.updated_at else None,
        updated_by=row.updated_by,
    )


class SqlConfigurationRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, project_id: uuid.UUID) -> PhaseConfiguration | None:
        with unavailable_on_error("configuration"):
            async with self.session_factory() as session:
                row = await session.get(PhaseConfigurationRow, project_id)
        return _to_domain(row) if row is not None else None

    async def put(self, config: PhaseConfiguration) -> PhaseConfiguration:
        """Insert or overwrite the override row. Graces are stored in whole seconds."""
        with unavailable_on_error("configuration"):
            async with self.session_factory() as session:
                row = await session.get(PhaseConfigurationRow, config.project_id)
                if row is None:
                    row = PhaseConfigurationRow(project_id=config.project_id)
                    session.add(row)
                row.auto_transitions_enabled = config.auto_transitions_enabled
                row.timezone = config.timezone
                row.rehearsal_start_date = config.rehearsal_start_date
                row.show_end_date = config.show_end_date
                row.rehearsal_grace_seconds = int(config.rehearsal_grace.total_seconds())
                row.post_show_grace_seconds = int(config.post_show_grace.total_seconds())
                row.updated_by = config.updated_by
                row.updated_at = config.updated_at or datetime.now(UTC)
                await session.commit()
                return _to_domain(row)
