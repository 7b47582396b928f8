"""ReadinessAggregator: turns collaborator counts into readiness snapshots.

Knows nothing about phases. Every recompute replaces the stored snapshot
whole, so concurrent recomputes converge on the latest inputs.
"""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from showops.core.exceptions import InvalidReadinessCategoryError
from showops.domain.readiness import ReadinessCategory, ReadinessSnapshot, compute_snapshot
from showops.repositories.base import ReadinessRepository

logger = structlog.get_logger(__name__)


def parse_category(value: str | ReadinessCategory) -> ReadinessCategory:
    try:
        return ReadinessCategory(value)
    except ValueError:
        raise InvalidReadinessCategoryError(str(value)) from None


class ReadinessAggregator:
    def __init__(self, repository: ReadinessRepository, clock: Callable[[], datetime] | None = None):
        self.repository = repository
        self.clock = clock or (lambda: datetime.now(UTC))

    async def recompute(self, project_id: uuid.UUID) -> ReadinessSnapshot:
        """Read fresh inputs, derive and store the snapshot.

        Raises:
            ProjectNotFoundError: unknown project
            CollaboratorUnavailableError: counts could not be read or stored
        """
        inputs = await self.repository.fetch_inputs(project_id)
        snapshot = compute_snapshot(inputs, computed_at=self.clock())
        await self.repository.save_snapshot(snapshot)
        logger.debug("readiness_recomputed", project_id=str(project_id), overall=snapshot.overall.value)
        return snapshot

    async def get_snapshot(self, project_id: uuid.UUID) -> ReadinessSnapshot:
        """Stored snapshot, computed on first access."""
        snapshot = await self.repository.get_snapshot(project_id)
        if snapshot is None:
            return await self.recompute(project_id)
        return snapshot

    async def finalize(
        self, project_id: uuid.UUID, category: str | ReadinessCategory, finalized_by: str | None = None
    ) -> ReadinessSnapshot:
        """Explicitly mark a category finalized, then recompute."""
        category = parse_category(category)
        await self.repository.set_finalized(project_id, category, True, finalized_by, self.clock())
        logger.info(
            "readiness_category_finalized",
            project_id=str(project_id),
            category=category.value,
            finalized_by=finalized_by,
        )
        return await self.recompute(project_id)

    async def unfinalize(self, project_id: uuid.UUID, category: str | ReadinessCategory) -> ReadinessSnapshot:
        category = parse_category(category)
        await self.repository.set_finalized(project_id, category, False, None, self.clock())
        logger.info("readiness_category_unfinalized", project_id=str(project_id), category=category.value)
        return await self.recompute(project_id)
