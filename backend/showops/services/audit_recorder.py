"""AuditRecorder: append-only log of phase transition attempts."""

import uuid
from dataclasses import dataclass
from datetime import datetime

import structlog

from showops.domain.phases import TransitionMetrics, TransitionRecord
from showops.domain.timezones import ensure_utc
from showops.repositories.base import AuditRepository

logger = structlog.get_logger(__name__)

MAX_PAGE_SIZE = 100


@dataclass
class HistoryPage:
    records: list[TransitionRecord]
    total: int
    page: int
    page_size: int

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total


class AuditRecorder:
    """Thin service over AuditRepository. Records are never updated or deleted."""

    def __init__(self, repository: AuditRepository):
        self.repository = repository

    async def append(self, record: TransitionRecord) -> None:
        await self.repository.append(record)
        logger.debug(
            "transition_record_appended",
            project_id=str(record.project_id),
            outcome=record.outcome.value,
            triggered_by=record.triggered_by.value,
        )

    async def history(self, project_id: uuid.UUID, limit: int = 20, offset: int = 0) -> list[TransitionRecord]:
        """Newest-first records for one project."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        return await self.repository.history(project_id, limit=limit, offset=max(0, offset))

    async def count(self, project_id: uuid.UUID) -> int:
        return await self.repository.count(project_id)

    async def page(self, project_id: uuid.UUID, page: int = 1, page_size: int = 20) -> HistoryPage:
        """1-based pagination over ``history`` with a total count."""
        page = max(1, page)
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        records = await self.history(project_id, limit=page_size, offset=(page - 1) * page_size)
        total = await self.count(project_id)
        return HistoryPage(records=records, total=total, page=page, page_size=page_size)

    async def metrics(self, since: datetime, until: datetime) -> TransitionMetrics:
        """Counts across every project for records created in ``[since, until)``.

        Raises:
            ValueError: ``since`` is not before ``until``
        """
        since, until = ensure_utc(since), ensure_utc(until)
        if since >= until:
            raise ValueError("since must be before until")
        metrics = await self.repository.metrics(since, until)
        logger.debug("transition_metrics_computed", total=metrics.total, errors=metrics.errors)
        return metrics
