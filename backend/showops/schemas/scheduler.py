"""Transition scheduler Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from showops.domain.phases import TransitionMetrics
from showops.services.transition_scheduler import BatchResult, SchedulerStatus


class RunRequest(BaseModel):
    deadline_seconds: float | None = Field(default=None, gt=0)


class ProjectRunResultResponse(BaseModel):
    project_id: uuid.UUID
    status: str
    previous_phase: str
    new_phase: str | None = None
    blockers: list[str]


class RunErrorResponse(BaseModel):
    project_id: uuid.UUID
    error: str
    error_type: str


class BatchResultResponse(BaseModel):
    run_id: str
    started_at: datetime
    finished_at: datetime | None = None
    total: int
    applied: int
    blocked: int
    results: list[ProjectRunResultResponse]
    errors: list[RunErrorResponse]
    not_evaluated: list[uuid.UUID]
    partial: bool
    skipped: bool

    @classmethod
    def from_domain(cls, result: BatchResult) -> "BatchResultResponse":
        return cls(
            run_id=result.run_id,
            started_at=result.started_at,
            finished_at=result.finished_at,
            total=result.total,
            applied=result.applied,
            blocked=result.blocked,
            results=[
                ProjectRunResultResponse(
                    project_id=r.project_id,
                    status=r.status.value,
                    previous_phase=r.previous_phase.value,
                    new_phase=r.new_phase.value if r.new_phase else None,
                    blockers=r.blockers,
                )
                for r in result.results
            ],
            errors=[RunErrorResponse(project_id=e.project_id, error=e.error, error_type=e.error_type) for e in result.errors],
            not_evaluated=result.not_evaluated,
            partial=result.partial,
            skipped=result.skipped,
        )


class SchedulerStatusResponse(BaseModel):
    enabled: bool
    running: bool
    last_run_at: datetime | None = None
    last_finished_at: datetime | None = None
    last_result: dict | None = None
    last_error: str | None = None
    consecutive_failures: int
    total_runs: int

    @classmethod
    def from_domain(cls, status: SchedulerStatus, enabled: bool) -> "SchedulerStatusResponse":
        return cls(
            enabled=enabled,
            running=status.running,
            last_run_at=status.last_run_at,
            last_finished_at=status.last_finished_at,
            last_result=status.last_result,
            last_error=status.last_error,
            consecutive_failures=status.consecutive_failures,
            total_runs=status.total_runs,
        )


class TransitionMetricsResponse(BaseModel):
    since: datetime
    until: datetime
    total: int
    applied: int
    blocked: int
    errors: int
    error_rate: float
    by_outcome: dict[str, int]
    by_phase: dict[str, int]
    by_blocker: dict[str, int]

    @classmethod
    def from_domain(cls, metrics: TransitionMetrics) -> "TransitionMetricsResponse":
        return cls(
            since=metrics.since,
            until=metrics.until,
            total=metrics.total,
            applied=metrics.applied,
            blocked=metrics.blocked,
            errors=metrics.errors,
            error_rate=round(metrics.error_rate, 4),
            by_outcome=metrics.by_outcome,
            by_phase=metrics.by_phase,
            by_blocker=metrics.by_blocker,
        )
