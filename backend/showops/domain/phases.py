"""Phase enums, ordering and the value types the engine passes around.

Pure domain logic with no external dependencies.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum


class Phase(StrEnum):
    """Project lifecycle phase. Declaration order is the lifecycle order."""

    PREP = "prep"
    STAFFING = "staffing"
    PRE_SHOW = "pre_show"
    ACTIVE = "active"
    POST_SHOW = "post_show"
    COMPLETE = "complete"
    ARCHIVED = "archived"  # Terminal


PHASE_ORDER: tuple[Phase, ...] = tuple(Phase)


def phase_index(phase: Phase) -> int:
    """Ordinal position of a phase (prep == 0)."""
    return PHASE_ORDER.index(phase)


def next_phase(phase: Phase) -> Phase | None:
    """Return the phase immediately after ``phase``, or None for the terminal phase."""
    idx = phase_index(phase)
    if idx + 1 >= len(PHASE_ORDER):
        return None
    return PHASE_ORDER[idx + 1]


def is_forward_step(from_phase: Phase, to_phase: Phase) -> bool:
    """True only for a single step forward (no skipping, no moving back)."""
    return phase_index(to_phase) == phase_index(from_phase) + 1


class TransitionTrigger(StrEnum):
    """Who asked for a transition."""

    MANUAL = "manual"
    AUTOMATIC = "automatic"


class TransitionOutcome(StrEnum):
    APPLIED = "applied"
    BLOCKED = "blocked"
    ERROR = "error"


class BlockerCode(StrEnum):
    """Stable machine-readable reasons a transition cannot proceed."""

    ALREADY_ARCHIVED = "already_archived"
    AUTOMATION_DISABLED = "automation_disabled"
    ROLES_NOT_FINALIZED = "roles_not_finalized"
    LOCATIONS_NOT_FINALIZED = "locations_not_finalized"
    TEAM_NOT_FINALIZED = "team_not_finalized"
    TALENT_NOT_FINALIZED = "talent_not_finalized"
    REHEARSAL_START_DATE_MISSING = "rehearsal_start_date_missing"
    REHEARSAL_NOT_STARTED = "rehearsal_not_started"
    SHOW_END_DATE_MISSING = "show_end_date_missing"
    SHOW_NOT_ENDED = "show_not_ended"
    TIMECARDS_PENDING = "timecards_pending"
    MANUAL_ARCHIVE_REQUIRED = "manual_archive_required"
    INVALID_TIMEZONE = "invalid_timezone"
    DATE_OUT_OF_RANGE = "date_out_of_range"
    DATA_UNAVAILABLE = "data_unavailable"
    CONCURRENT_TRANSITION_LOST = "concurrent_transition_lost"
    TARGET_PHASE_MISMATCH = "target_phase_mismatch"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class Blocker:
    """One reason a transition is blocked: a stable code plus a readable message."""

    code: BlockerCode
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "message": self.message}


@dataclass(frozen=True)
class ProjectState:
    """The phase-related fields of a project row."""

    id: uuid.UUID
    phase: Phase
    phase_updated_at: datetime
    timezone: str | None = None
    rehearsal_start_date: date | None = None
    show_end_date: date | None = None
    auto_transitions_enabled: bool = True
    name: str = ""


@dataclass
class Evaluation:
    """Result of evaluating the next phase's entry conditions.

    ``target_phase`` is the immediate next phase when ``can_transition`` is
    True, otherwise None. ``scheduled_at`` is set when the only thing missing
    is time passing (UTC instant at which the condition becomes true).
    """

    project_id: uuid.UUID
    current_phase: Phase
    can_transition: bool
    target_phase: Phase | None = None
    blockers: list[Blocker] = field(default_factory=list)
    scheduled_at: datetime | None = None

    @property
    def blocker_codes(self) -> list[str]:
        return [b.code.value for b in self.blockers]

    @classmethod
    def blocked(
        cls,
        project_id: uuid.UUID,
        current_phase: Phase,
        blockers: list[Blocker],
        scheduled_at: datetime | None = None,
    ) -> "Evaluation":
        return cls(
            project_id=project_id,
            current_phase=current_phase,
            can_transition=False,
            target_phase=None,
            blockers=blockers,
            scheduled_at=scheduled_at,
        )


@dataclass(frozen=True)
class TransitionRecord:
    """Immutable audit entry for one transition attempt."""

    project_id: uuid.UUID
    from_phase: Phase
    to_phase: Phase | None
    triggered_by: TransitionTrigger
    outcome: TransitionOutcome
    blockers: tuple[Blocker, ...] = ()
    actor: str | None = None
    correlation_id: str | None = None
    created_at: datetime | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class TransitionMetrics:
    """Aggregate counts over transition records created in ``[since, until)``.

    ``by_phase`` keys applied steps as ``"prep->staffing"``; ``by_blocker``
    counts every blocker code across blocked and error attempts.
    """

    since: datetime
    until: datetime
    by_outcome: dict[str, int] = field(default_factory=dict)
    by_phase: dict[str, int] = field(default_factory=dict)
    by_blocker: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.by_outcome.values())

    @property
    def applied(self) -> int:
        return self.by_outcome.get(TransitionOutcome.APPLIED.value, 0)

    @property
    def blocked(self) -> int:
        return self.by_outcome.get(TransitionOutcome.BLOCKED.value, 0)

    @property
    def errors(self) -> int:
        return self.by_outcome.get(TransitionOutcome.ERROR.value, 0)

    @property
    def error_rate(self) -> float:
        return self.errors / self.total if self.total else 0.0

    def add(self, record: TransitionRecord) -> None:
        outcome = record.outcome.value
        self.by_outcome[outcome] = self.by_outcome.get(outcome, 0) + 1
        if record.outcome == TransitionOutcome.APPLIED and record.to_phase is not None:
            self.add_step(record.from_phase.value, record.to_phase.value)
        for blocker in record.blockers:
            self.by_blocker[blocker.code.value] = self.by_blocker.get(blocker.code.value, 0) + 1

    def add_step(self, from_phase: str, to_phase: str, count: int = 1) -> None:
        key = f"{from_phase}->{to_phase}"
        self.by_phase[key] = self.by_phase.get(key, 0) + count


@dataclass
class TransitionOutcomeResult:
    """What ``PhaseEngine.transition`` returns to callers.

    ``current_phase`` is the phase after the call: ``new_phase`` when
    applied, otherwise whatever the project holds now (re-read after a lost
    race).
    """

    project_id: uuid.UUID
    applied: bool
    status: TransitionOutcome
    previous_phase: Phase
    current_phase: Phase
    new_phase: Phase | None = None
    blockers: list[Blocker] = field(default_factory=list)

    @property
    def blocker_codes(self) -> list[str]:
        return [b.code.value for b in self.blockers]
