"""SQL audit trail: append-only phase transition records."""

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from showops.db.models import PhaseTransition
from showops.domain.phases import (
    Blocker,
    BlockerCode,
    Phase,
    TransitionMetrics,
    TransitionOutcome,
    TransitionRecord,
    TransitionTrigger,
)
from showops.domain.timezones import ensure_utc
from showops.repositories.errors import unavailable_on_error


def record_to_row(record: TransitionRecord) -> PhaseTransition:
    row = PhaseTransition(
        id=record.id,
        project_id=record.project_id,
        from_phase=record.from_phase.value,
        to_phase=record.to_phase.value if record.to_phase else None,
        triggered_by=record.triggered_by.value,
        outcome=record.outcome.value,
        blockers=[b.as_dict() for b in record.blockers],
        actor=record.actor,
        correlation_id=record.correlation_id,
    )
    if record.created_at is not None:
        row.created_at = record.created_at
    return row


def row_to_record(row: PhaseTransition) -> TransitionRecord:
    return TransitionRecord(
        id=row.id,
        project_id=row.project_id,
        from_phase=Phase(row.from_phase),
        to_phase=Phase(row.to_phase) if row.to_phase else None,
        triggered_by=TransitionTrigger(row.triggered_by),
        outcome=TransitionOutcome(row.outcome),
        blockers=tuple(Blocker(BlockerCode(b["code"]), b["message"]) for b in row.blockers or []),
        actor=row.actor,
        correlation_id=row.correlation_id,
        created_at=ensure_utc(row.created_at) if row.created_at else None,
    )


class SqlAuditRepository:
    """Reads and appends ``phase_transitions`` rows. No update or delete."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def append(self, record: TransitionRecord) -> None:
        with unavailable_on_error("audit"):
            async with self.session_factory() as session:
                session.add(record_to_row(record))
                await session.commit()

    async def history(self, project_id: uuid.UUID, limit: int, offset: int) -> list[TransitionRecord]:
        stmt = (
            select(PhaseTransition)
            .where(PhaseTransition.project_id == project_id)
            .order_by(PhaseTransition.created_at.desc(), PhaseTransition.seq.desc())
            .limit(limit)
            .offset(offset)
        )
        with unavailable_on_error("audit"):
            async with self.session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
        return [row_to_record(row) for row in rows]

    async def count(self, project_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(PhaseTransition).where(PhaseTransition.project_id == project_id)
        with unavailable_on_error("audit"):
            async with self.session_factory() as session:
                return (await session.execute(stmt)).scalar_one()

    async def metrics(self, since: datetime, until: datetime) -> TransitionMetrics:
        """Outcome and phase-step counts are grouped in SQL; blocker codes come from the JSON column."""
        window = (PhaseTransition.created_at >= since, PhaseTransition.created_at < until)
        metrics = TransitionMetrics(since=since, until=until)
        with unavailable_on_error("audit"):
            async with self.session_factory() as session:
                outcomes = await session.execute(
                    select(PhaseTransition.outcome, func.count()).where(*window).group_by(PhaseTransition.outcome)
                )
                steps = await session.execute(
                    select(PhaseTransition.from_phase, PhaseTransition.to_phase, func.count())
                    .where(*window, PhaseTransition.outcome == TransitionOutcome.APPLIED.value)
                    .group_by(PhaseTransition.from_phase, PhaseTransition.to_phase)
                )
                blocker_lists = await session.scalars(
                    select(PhaseTransition.blockers).where(
                        *window, PhaseTransition.outcome != TransitionOutcome.APPLIED.value
                    )
                )

                metrics.by_outcome = {outcome: count for outcome, count in outcomes.all()}
                for from_phase, to_phase, count in steps.all():
                    metrics.add_step(from_phase, to_phase, count)
                for blockers in blocker_lists.all():
                    for blocker in blockers or []:
                        metrics.by_blocker[blocker["code"]] = metrics.by_blocker.get(blocker["code"], 0) + 1
        return metrics
