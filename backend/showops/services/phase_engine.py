"""PhaseEngine: the project lifecycle state machine.

Evaluation is pure (``showops.domain.transitions``); this service gathers the
inputs, performs the guarded write and keeps the audit trail. Transitions
are single forward steps; the write is a compare-and-set on
``phase_updated_at``, so a manual request racing a scheduler tick applies at
most once.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from showops.core.exceptions import CollaboratorUnavailableError, ConcurrencyConflictError, ProjectNotFoundError
from showops.domain.action_items import ActionItem, action_items_for
from showops.domain.configuration import EffectiveConfiguration, PhaseConfiguration, resolve_configuration
from showops.domain.phases import (
    Blocker,
    BlockerCode,
    Evaluation,
    Phase,
    ProjectState,
    TransitionOutcome,
    TransitionOutcomeResult,
    TransitionRecord,
    TransitionTrigger,
    next_phase,
)
from showops.domain.timezones import ensure_utc
from showops.domain.transitions import NEEDS_READINESS, NEEDS_TIMECARDS, evaluate_entry_conditions
from showops.middleware.correlation import get_correlation_id
from showops.repositories.base import ProjectRepository, TimecardRepository
from showops.services.audit_recorder import AuditRecorder
from showops.services.configuration_store import ConfigurationStore
from showops.services.readiness_aggregator import ReadinessAggregator

logger = structlog.get_logger(__name__)

_VERSION_STEP = timedelta(microseconds=1)


@dataclass
class UpcomingTransition:
    project_id: uuid.UUID
    current_phase: Phase
    target_phase: Phase
    scheduled_at: datetime


class PhaseEngine:
    """Evaluate and apply phase transitions for one project at a time.

    Holds no state between calls; safe to share across requests.
    """

    def __init__(
        self,
        projects: ProjectRepository,
        readiness: ReadinessAggregator,
        timecards: TimecardRepository,
        audit: AuditRecorder,
        configuration: ConfigurationStore,
        default_timezone: str = "UTC",
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize with dependency injection.

        Args:
            projects: Project reads and the guarded phase write
            readiness: Produces fresh readiness snapshots
            timecards: Timecard terminal-state signal
            audit: Transition log
            configuration: Per-project overrides
            default_timezone: Zone for projects with none set
            clock: Returns the current aware instant (tests pin it)
        """
        self.projects = projects
        self.readiness = readiness
        self.timecards = timecards
        self.audit = audit
        self.configuration = configuration
        self.default_timezone = default_timezone
        self.clock = clock or (lambda: datetime.now(UTC))

    # ------------------------------------------------------------------ reads

    async def get_current_phase(self, project_id: uuid.UUID) -> Phase:
        """Raises ProjectNotFoundError for an unknown id."""
        project = await self.projects.get(project_id)
        return project.phase

    async def get_project(self, project_id: uuid.UUID) -> ProjectState:
        return await self.projects.get(project_id)

    async def evaluate_transition(
        self,
        project_id: uuid.UUID,
        trigger: TransitionTrigger = TransitionTrigger.MANUAL,
    ) -> Evaluation:
        """Side-effect free check of the next phase's entry conditions."""
        project = await self.projects.get(project_id)
        return await self._evaluate(project, trigger, self.clock())

    async def get_phase_action_items(self, project_id: uuid.UUID) -> list[ActionItem]:
        evaluation = await self.evaluate_transition(project_id, TransitionTrigger.MANUAL)
        return action_items_for(evaluation)

    async def get_configuration(self, project_id: uuid.UUID) -> tuple[PhaseConfiguration | None, EffectiveConfiguration]:
        """Stored overrides (if any) and the effective values the rules read."""
        project = await self.projects.get(project_id)
        stored = await self.configuration.get(project_id)
        return stored, resolve_configuration(project, stored)

    async def set_configuration(
        self,
        project_id: uuid.UUID,
        overrides: dict[str, Any],
        updated_by: str | None = None,
    ) -> PhaseConfiguration:
        """Validate and store overrides. Does not evaluate or transition."""
        return await self.configuration.set(project_id, overrides, updated_by=updated_by)

    async def upcoming_transitions(
        self,
        within: timedelta,
        project_ids: list[uuid.UUID] | None = None,
    ) -> list[UpcomingTransition]:
        """Automatic candidates whose pending temporal step falls inside ``within``.

        Projects that cannot be evaluated are skipped (and logged).
        """
        now = self.clock()
        horizon = now + within
        ids = project_ids if project_ids is not None else await self.projects.list_auto_transition_candidates()

        upcoming: list[UpcomingTransition] = []
        for project_id in ids:
            try:
                project = await self.projects.get(project_id)
            except (ProjectNotFoundError, CollaboratorUnavailableError) as exc:
                logger.warning("upcoming_transition_skipped", project_id=str(project_id), error=str(exc))
                continue
            evaluation = await self._evaluate(project, TransitionTrigger.AUTOMATIC, now)
            if evaluation.scheduled_at is None or evaluation.scheduled_at > horizon:
                continue
            upcoming.append(
                UpcomingTransition(
                    project_id=project.id,
                    current_phase=project.phase,
                    target_phase=next_phase(project.phase),
                    scheduled_at=evaluation.scheduled_at,
                )
            )
        upcoming.sort(key=lambda item: item.scheduled_at)
        return upcoming

    # ----------------------------------------------------------------- writes

    async def transition(
        self,
        project_id: uuid.UUID,
        requested_by: TransitionTrigger = TransitionTrigger.MANUAL,
        actor: str | None = None,
        target_phase: Phase | None = None,
    ) -> TransitionOutcomeResult:
        """Re-evaluate and, if allowed, advance exactly one phase.

        When ``target_phase`` is given the step only applies if it leads to
        that phase; a resubmitted request whose step already happened is
        blocked with ``target_phase_mismatch`` instead of advancing again.

        The phase write and the ``applied`` audit record commit together.
        Blocked attempts append a ``blocked`` record and leave the project
        untouched. A lost compare-and-set is reported as the
        ``concurrent_transition_lost`` blocker, never retried.

        Raises:
            ProjectNotFoundError: unknown project
            CollaboratorUnavailableError: the project itself could not be read
        """
        now = ensure_utc(self.clock())
        project = await self.projects.get(project_id)
        if target_phase is not None and next_phase(project.phase) != target_phase:
            return await self._target_mismatch(project, target_phase, requested_by, actor, now)

        evaluation = await self._evaluate(project, requested_by, now)
        correlation_id = get_correlation_id()

        if not evaluation.can_transition:
            await self.audit.append(
                self._record(project, None, requested_by, TransitionOutcome.BLOCKED, evaluation.blockers, actor, now)
            )
            logger.info(
                "phase_transition_blocked",
                project_id=str(project.id),
                phase=project.phase.value,
                triggered_by=requested_by.value,
                blockers=evaluation.blocker_codes,
            )
            return TransitionOutcomeResult(
                project_id=project.id,
                applied=False,
                status=TransitionOutcome.BLOCKED,
                previous_phase=project.phase,
                current_phase=project.phase,
                blockers=evaluation.blockers,
            )

        target = evaluation.target_phase
        # Version token must strictly change even when the clock has not moved
        new_version = max(now, ensure_utc(project.phase_updated_at) + _VERSION_STEP)
        record = TransitionRecord(
            project_id=project.id,
            from_phase=project.phase,
            to_phase=target,
            triggered_by=requested_by,
            outcome=TransitionOutcome.APPLIED,
            actor=actor,
            correlation_id=correlation_id,
            created_at=now,
        )

        try:
            await self.projects.apply_transition(
                project.id, project.phase, project.phase_updated_at, target, new_version, record
            )
        except ConcurrencyConflictError:
            return await self._race_lost(project, requested_by, actor, now)
        except CollaboratorUnavailableError as exc:
            return await self._write_failed(project, requested_by, actor, now, exc)

        logger.info(
            "phase_transition_applied",
            project_id=str(project.id),
            from_phase=project.phase.value,
            to_phase=target.value,
            triggered_by=requested_by.value,
            actor=actor,
        )
        return TransitionOutcomeResult(
            project_id=project.id,
            applied=True,
            status=TransitionOutcome.APPLIED,
            previous_phase=project.phase,
            current_phase=target,
            new_phase=target,
        )

    # -------------------------------------------------------------- internals

    async def _evaluate(self, project: ProjectState, trigger: TransitionTrigger, now: datetime) -> Evaluation:
        """Gather the inputs the current phase needs, then run the pure rules.

        Collaborator failures fail closed with ``data_unavailable``.
        """
        try:
            stored = await self.configuration.get(project.id)
        except CollaboratorUnavailableError as exc:
            return self._unavailable(project, exc)
        config = resolve_configuration(project, stored)

        readiness = None
        timecards_terminal = None
        gated = project.phase == Phase.ARCHIVED or (
            trigger == TransitionTrigger.AUTOMATIC and not config.auto_transitions_enabled
        )
        if not gated:
            try:
                if project.phase in NEEDS_READINESS:
                    readiness = await self.readiness.recompute(project.id)
                if project.phase in NEEDS_TIMECARDS:
                    timecards_terminal = await self.timecards.all_terminal(project.id)
            except CollaboratorUnavailableError as exc:
                return self._unavailable(project, exc)

        return evaluate_entry_conditions(
            project,
            config,
            trigger,
            now,
            readiness=readiness,
            timecards_terminal=timecards_terminal,
            default_timezone=self.default_timezone,
        )

    def _unavailable(self, project: ProjectState, exc: CollaboratorUnavailableError) -> Evaluation:
        logger.warning(
            "phase_evaluation_data_unavailable",
            project_id=str(project.id),
            phase=project.phase.value,
            collaborator=exc.collaborator,
            error=str(exc),
        )
        return Evaluation.blocked(
            project.id,
            project.phase,
            [Blocker(BlockerCode.DATA_UNAVAILABLE, f"Could not read {exc.collaborator}; try again later")],
        )

    def _record(
        self,
        project: ProjectState,
        to_phase: Phase | None,
        trigger: TransitionTrigger,
        outcome: TransitionOutcome,
        blockers: list[Blocker],
        actor: str | None,
        now: datetime,
    ) -> TransitionRecord:
        return TransitionRecord(
            project_id=project.id,
            from_phase=project.phase,
            to_phase=to_phase,
            triggered_by=trigger,
            outcome=outcome,
            blockers=tuple(blockers),
            actor=actor,
            correlation_id=get_correlation_id(),
            created_at=now,
        )

    async def _target_mismatch(
        self, project: ProjectState, target_phase: Phase, trigger: TransitionTrigger, actor: str | None, now: datetime
    ) -> TransitionOutcomeResult:
        blockers = [
            Blocker(
                BlockerCode.TARGET_PHASE_MISMATCH,
                f"Requested '{target_phase.value}' but the project is in '{project.phase.value}'",
            )
        ]
        logger.info(
            "phase_transition_target_mismatch",
            project_id=str(project.id),
            phase=project.phase.value,
            target_phase=target_phase.value,
            triggered_by=trigger.value,
        )
        await self.audit.append(self._record(project, None, trigger, TransitionOutcome.BLOCKED, blockers, actor, now))
        return TransitionOutcomeResult(
            project_id=project.id,
            applied=False,
            status=TransitionOutcome.BLOCKED,
            previous_phase=project.phase,
            current_phase=project.phase,
            blockers=blockers,
        )

    async def _race_lost(
        self, project: ProjectState, trigger: TransitionTrigger, actor: str | None, now: datetime
    ) -> TransitionOutcomeResult:
        current = await self.projects.get(project.id)
        blockers = [
            Blocker(
                BlockerCode.CONCURRENT_TRANSITION_LOST,
                f"Phase changed to '{current.phase.value}' by a concurrent transition",
            )
        ]
        logger.warning(
            "phase_transition_race_lost",
            project_id=str(project.id),
            expected_phase=project.phase.value,
            current_phase=current.phase.value,
            triggered_by=trigger.value,
        )
        await self.audit.append(self._record(project, None, trigger, TransitionOutcome.BLOCKED, blockers, actor, now))
        return TransitionOutcomeResult(
            project_id=project.id,
            applied=False,
            status=TransitionOutcome.BLOCKED,
            previous_phase=project.phase,
            current_phase=current.phase,
            blockers=blockers,
        )

    async def _write_failed(
        self,
        project: ProjectState,
        trigger: TransitionTrigger,
        actor: str | None,
        now: datetime,
        exc: CollaboratorUnavailableError,
    ) -> TransitionOutcomeResult:
        """The guarded write itself failed: report ``error`` and log it to the trail when possible."""
        blockers = [Blocker(BlockerCode.INTERNAL_ERROR, "Phase could not be saved; try again")]
        logger.error(
            "phase_transition_write_failed",
            project_id=str(project.id),
            phase=project.phase.value,
            error=str(exc),
            error_type=type(exc.cause or exc).__name__,
        )
        try:
            await self.audit.append(self._record(project, None, trigger, TransitionOutcome.ERROR, blockers, actor, now))
        except CollaboratorUnavailableError as audit_exc:
            logger.error("transition_error_record_failed", project_id=str(project.id), error=str(audit_exc))
        return TransitionOutcomeResult(
            project_id=project.id,
            applied=False,
            status=TransitionOutcome.ERROR,
            previous_phase=project.phase,
            current_phase=project.phase,
            blockers=blockers,
        )
