"""Automatic transition scheduler API routes.

``POST /run`` lets an external cron drive the scheduler when the in-process
loop is disabled.
"""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends, Query

from showops.api.deps import get_audit_recorder, get_phase_engine, get_transition_scheduler
from showops.core.config import get_settings
from showops.schemas.phase import UpcomingTransitionResponse
from showops.schemas.scheduler import (
    BatchResultResponse,
    RunRequest,
    SchedulerStatusResponse,
    TransitionMetricsResponse,
)
from showops.services.audit_recorder import AuditRecorder
from showops.services.phase_engine import PhaseEngine
from showops.services.transition_scheduler import TransitionScheduler

router = APIRouter()


@router.post("/run", response_model=BatchResultResponse)
async def run_scheduler(
    request: RunRequest | None = None,
    scheduler: TransitionScheduler = Depends(get_transition_scheduler),
):
    """Run one batch pass now. Deadline defaults to the configured one."""
    deadline = request.deadline_seconds if request and request.deadline_seconds else None
    if deadline is None:
        deadline = get_settings().scheduler_deadline_seconds
    result = await scheduler.run_once(deadline=deadline)
    return BatchResultResponse.from_domain(result)


@router.get("/status", response_model=SchedulerStatusResponse)
async def scheduler_status(scheduler: TransitionScheduler = Depends(get_transition_scheduler)):
    return SchedulerStatusResponse.from_domain(scheduler.status(), enabled=get_settings().scheduler_enabled)


@router.get("/upcoming", response_model=list[UpcomingTransitionResponse])
async def upcoming_transitions(
    hours: int = Query(default=24, ge=1, le=24 * 30),
    engine: PhaseEngine = Depends(get_phase_engine),
):
    """Projects whose date-driven transition falls within the next ``hours``."""
    upcoming = await engine.upcoming_transitions(timedelta(hours=hours))
    return [UpcomingTransitionResponse.from_domain(item) for item in upcoming]


@router.get("/metrics", response_model=TransitionMetricsResponse)
async def transition_metrics(
    hours: int = Query(default=24, ge=1, le=24 * 30),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """Transition attempts over the last ``hours``, all projects: by outcome, step and blocker code."""
    until = datetime.now(UTC)
    metrics = await recorder.metrics(until - timedelta(hours=hours), until)
    return TransitionMetricsResponse.from_domain(metrics)
