"""ConfigurationStore: validated per-project phase configuration overrides."""

import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

import structlog

from showops.domain.configuration import PhaseConfiguration, validate_overrides
from showops.repositories.base import ConfigurationRepository, ProjectRepository

logger = structlog.get_logger(__name__)


class ConfigurationStore:
    def __init__(
        self,
        repository: ConfigurationRepository,
        projects: ProjectRepository,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repository = repository
        self.projects = projects
        self.clock = clock or (lambda: datetime.now(UTC))

    async def get(self, project_id: uuid.UUID) -> PhaseConfiguration | None:
        """Stored overrides, or None when the project has no override row."""
        return await self.repository.get(project_id)

    async def set(
        self,
        project_id: uuid.UUID,
        overrides: dict[str, Any],
        updated_by: str | None = None,
    ) -> PhaseConfiguration:
        """Validate ``overrides`` and merge them onto the stored row.

        Raises:
            ProjectNotFoundError: unknown project
            ConfigurationValidationError: any field invalid; nothing is written
        """
        await self.projects.get(project_id)
        existing = await self.repository.get(project_id)
        merged = validate_overrides(project_id, overrides, existing)
        saved = await self.repository.put(replace(merged, updated_at=self.clock(), updated_by=updated_by))

        logger.info(
            "phase_configuration_updated",
            project_id=str(project_id),
            fields=sorted(overrides),
            updated_by=updated_by,
        )
        return saved
