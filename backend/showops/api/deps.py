"""FastAPI dependencies wiring SQL repositories and services.

Each request gets services built over the shared session factory. The
transition scheduler is process-wide so its status survives across
requests. Override these in tests via ``app.dependency_overrides``.
"""

from showops.core.config import get_settings
from showops.core.locking import RunLease
from showops.db.base import get_session_factory
from showops.db.redis import get_redis, redis_initialized
from showops.repositories import (
    SqlAuditRepository,
    SqlConfigurationRepository,
    SqlProjectRepository,
    SqlReadinessRepository,
    SqlTimecardRepository,
)
from showops.services.audit_recorder import AuditRecorder
from showops.services.configuration_store import ConfigurationStore
from showops.services.phase_engine import PhaseEngine
from showops.services.readiness_aggregator import ReadinessAggregator
from showops.services.transition_scheduler import TransitionScheduler

SCHEDULER_LEASE_NAME = "phase-transition-scheduler"

_scheduler: TransitionScheduler | None = None


def build_phase_engine() -> PhaseEngine:
    session_factory = get_session_factory()
    projects = SqlProjectRepository(session_factory)
    return PhaseEngine(
        projects=projects,
        readiness=ReadinessAggregator(SqlReadinessRepository(session_factory)),
        timecards=SqlTimecardRepository(session_factory),
        audit=AuditRecorder(SqlAuditRepository(session_factory)),
        configuration=ConfigurationStore(SqlConfigurationRepository(session_factory), projects),
        default_timezone=get_settings().default_timezone,
    )


def get_phase_engine() -> PhaseEngine:
    return build_phase_engine()


def get_readiness_aggregator() -> ReadinessAggregator:
    return ReadinessAggregator(SqlReadinessRepository(get_session_factory()))


def get_audit_recorder() -> AuditRecorder:
    return AuditRecorder(SqlAuditRepository(get_session_factory()))


def get_transition_scheduler() -> TransitionScheduler:
    """Process-wide scheduler, built on first use.

    Takes the Redis run lease only when leasing is enabled and Redis was
    initialized at startup.
    """
    global _scheduler

    if _scheduler is None:
        settings = get_settings()
        lease = None
        if settings.scheduler_use_lease and redis_initialized():
            lease = RunLease(get_redis(), SCHEDULER_LEASE_NAME, ttl=settings.scheduler_lease_seconds)
        _scheduler = TransitionScheduler(
            engine=build_phase_engine(),
            projects=SqlProjectRepository(get_session_factory()),
            max_concurrency=settings.scheduler_max_concurrency,
            lease=lease,
        )
    return _scheduler


def reset_transition_scheduler() -> None:
    """Drop the cached scheduler (app shutdown, tests)."""
    global _scheduler
    _scheduler = None
