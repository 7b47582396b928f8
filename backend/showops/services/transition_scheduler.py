"""TransitionScheduler: periodic batch pass that advances eligible projects.

Each tick enumerates projects with automatic transitions enabled and calls
``PhaseEngine.transition(..., AUTOMATIC)`` for each, bounded by an
``asyncio.Semaphore``. The scheduler holds no business logic: eligibility,
the guarded write and the audit record all belong to the engine.

Failure isolation:
  - an exception for one project is collected in ``BatchResult.errors``;
    siblings keep running
  - ``data_unavailable``, lost races and write errors are reported as run
    errors too, alongside the per-project result
  - a deadline cancels outstanding evaluations; committed transitions stay
    committed and the result is marked ``partial``

Usage:
    scheduler = TransitionScheduler(engine, projects, max_concurrency=5)
    result = await scheduler.run_once(deadline=300)

    loop = SchedulerLoop(scheduler, interval_seconds=900)
    task = asyncio.create_task(loop.run())
    ...
    loop.stop()
"""

import asyncio
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from showops.core.locking import RunLease
from showops.domain.phases import BlockerCode, Phase, TransitionOutcome, TransitionTrigger
from showops.middleware.correlation import correlation_scope
from showops.repositories.base import ProjectRepository
from showops.services.phase_engine import PhaseEngine

logger = structlog.get_logger(__name__)

# Blocked outcomes that mean "could not decide", not "conditions unmet"
_ERROR_BLOCKERS = {
    BlockerCode.DATA_UNAVAILABLE: "DataUnavailable",
    BlockerCode.CONCURRENT_TRANSITION_LOST: "ConcurrentTransitionLost",
}


@dataclass
class ProjectRunResult:
    project_id: uuid.UUID
    status: TransitionOutcome
    previous_phase: Phase
    new_phase: Phase | None = None
    blockers: list[str] = field(default_factory=list)


@dataclass
class RunError:
    project_id: uuid.UUID
    error: str
    error_type: str


@dataclass
class BatchResult:
    run_id: str
    started_at: datetime
    finished_at: datetime | None = None
    total: int = 0
    results: list[ProjectRunResult] = field(default_factory=list)
    errors: list[RunError] = field(default_factory=list)
    not_evaluated: list[uuid.UUID] = field(default_factory=list)
    partial: bool = False
    skipped: bool = False  # another instance held the run lease

    @property
    def applied(self) -> int:
        return sum(1 for r in self.results if r.status == TransitionOutcome.APPLIED)

    @property
    def blocked(self) -> int:
        return sum(1 for r in self.results if r.status == TransitionOutcome.BLOCKED)

    def summary(self) -> dict:
        return {
            "run_id": self.run_id,
            "total": self.total,
            "applied": self.applied,
            "blocked": self.blocked,
            "errors": len(self.errors),
            "partial": self.partial,
            "skipped": self.skipped,
        }


@dataclass
class SchedulerStatus:
    running: bool = False
    last_run_at: datetime | None = None
    last_finished_at: datetime | None = None
    last_result: dict | None = None
    last_error: str | None = None
    consecutive_failures: int = 0
    total_runs: int = 0


class TransitionScheduler:
    def __init__(
        self,
        engine: PhaseEngine,
        projects: ProjectRepository,
        max_concurrency: int = 5,
        lease: RunLease | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.engine = engine
        self.projects = projects
        self.max_concurrency = max_concurrency
        self.lease = lease
        self.clock = clock or (lambda: datetime.now(UTC))
        self._status = SchedulerStatus()

    def status(self) -> SchedulerStatus:
        return self._status

    async def run_once(self, deadline: float | None = None) -> BatchResult:
        """Run one batch pass.

        Args:
            deadline: Seconds the whole pass may take; None for no limit

        Raises:
            Whatever enumerating candidates raises (the run itself failed)
        """
        run_id = uuid.uuid4().hex
        # Records written during the pass carry the run id unless a request id is active
        with correlation_scope(run_id):
            if self.lease is None:
                return await self._tracked(run_id, deadline)

            async with self.lease.hold(run_id) as acquired:
                if not acquired:
                    now = self.clock()
                    result = BatchResult(run_id=run_id, started_at=now, finished_at=now, skipped=True)
                    self._status.last_result = result.summary()
                    return result
                return await self._tracked(run_id, deadline)

    async def _tracked(self, run_id: str, deadline: float | None) -> BatchResult:
        status = self._status
        status.running = True
        status.last_run_at = self.clock()
        status.total_runs += 1
        try:
            result = await self._run(run_id, deadline)
        except Exception as exc:
            status.consecutive_failures += 1
            status.last_error = f"{type(exc).__name__}: {exc}"
            logger.error("scheduler_run_failed", run_id=run_id, error=str(exc), error_type=type(exc).__name__)
            raise
        finally:
            status.running = False
            status.last_finished_at = self.clock()

        status.consecutive_failures = 0
        status.last_error = None
        status.last_result = result.summary()
        return result

    async def _run(self, run_id: str, deadline: float | None) -> BatchResult:
        result = BatchResult(run_id=run_id, started_at=self.clock())
        candidates = await self.projects.list_auto_transition_candidates()
        result.total = len(candidates)
        logger.info("scheduler_run_started", run_id=run_id, candidates=result.total, deadline=deadline)

        semaphore = asyncio.Semaphore(self.max_concurrency)
        done: set[uuid.UUID] = set()

        async def advance(project_id: uuid.UUID) -> None:
            async with semaphore:
                try:
                    outcome = await self.engine.transition(project_id, TransitionTrigger.AUTOMATIC, actor="scheduler")
                except Exception as exc:
                    done.add(project_id)
                    result.errors.append(RunError(project_id, str(exc), type(exc).__name__))
                    logger.warning(
                        "scheduler_project_failed",
                        run_id=run_id,
                        project_id=str(project_id),
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                    return

            done.add(project_id)
            result.results.append(
                ProjectRunResult(
                    project_id=project_id,
                    status=outcome.status,
                    previous_phase=outcome.previous_phase,
                    new_phase=outcome.new_phase,
                    blockers=outcome.blocker_codes,
                )
            )
            if outcome.status == TransitionOutcome.ERROR:
                messages = "; ".join(b.message for b in outcome.blockers)
                result.errors.append(RunError(project_id, messages, "TransitionWriteFailed"))
                return
            for blocker in outcome.blockers:
                if blocker.code in _ERROR_BLOCKERS:
                    result.errors.append(RunError(project_id, blocker.message, _ERROR_BLOCKERS[blocker.code]))

        tasks = [asyncio.create_task(advance(project_id)) for project_id in candidates]
        try:
            async with asyncio.timeout(deadline):
                await asyncio.gather(*tasks)
        except TimeoutError:
            result.partial = True
            result.not_evaluated = [pid for pid in candidates if pid not in done]
            logger.warning(
                "scheduler_run_deadline_exceeded",
                run_id=run_id,
                deadline=deadline,
                not_evaluated=len(result.not_evaluated),
            )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        result.finished_at = self.clock()
        logger.info("scheduler_run_complete", **result.summary())
        return result


class SchedulerLoop:
    """Calls ``run_once`` every ``interval_seconds`` until ``stop()``.

    Intended to run as ``asyncio.create_task(loop.run())`` from the app
    lifespan. A failed tick is logged and the loop carries on.
    """

    def __init__(self, scheduler: TransitionScheduler, interval_seconds: float, deadline: float | None = None):
        self.scheduler = scheduler
        self.interval_seconds = interval_seconds
        self.deadline = deadline
        self.stop_event = asyncio.Event()

    def stop(self) -> None:
        self.stop_event.set()

    async def run(self) -> None:
        logger.info("scheduler_loop_started", interval_seconds=self.interval_seconds)
        while not self.stop_event.is_set():
            try:
                await self.scheduler.run_once(deadline=self.deadline)
            except Exception as exc:
                # Already recorded in scheduler status; keep ticking
                logger.warning("scheduler_tick_failed", error=str(exc), error_type=type(exc).__name__)

            try:
                await asyncio.wait_for(self.stop_event.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue
        logger.info("scheduler_loop_stopped")
