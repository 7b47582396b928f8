"""Entry conditions for each phase step.

Pure function -- no side effects, no DB access. The caller gathers the
inputs (readiness snapshot, timecard signal) that the current phase needs
and passes ``now`` explicitly.
"""

from datetime import date, datetime

from showops.domain.configuration import EffectiveConfiguration
from showops.domain.phases import (
    Blocker,
    BlockerCode,
    Evaluation,
    Phase,
    ProjectState,
    TransitionTrigger,
    next_phase,
)
from showops.domain.readiness import ReadinessCategory, ReadinessSnapshot
from showops.domain.timezones import (
    UnknownTimezoneError,
    end_of_local_day,
    ensure_utc,
    format_local,
    resolve_zone,
    start_of_local_day,
)

# Readiness categories each phase needs finalized before moving on, in report order.
READINESS_REQUIREMENTS: dict[Phase, tuple[tuple[ReadinessCategory, BlockerCode, str], ...]] = {
    Phase.PREP: (
        (ReadinessCategory.ROLES, BlockerCode.ROLES_NOT_FINALIZED, "Project roles must be finalized"),
        (ReadinessCategory.LOCATIONS, BlockerCode.LOCATIONS_NOT_FINALIZED, "Project locations must be finalized"),
    ),
    Phase.STAFFING: (
        (ReadinessCategory.TEAM, BlockerCode.TEAM_NOT_FINALIZED, "Team assignments must be finalized"),
        (ReadinessCategory.TALENT, BlockerCode.TALENT_NOT_FINALIZED, "Talent roster must be finalized"),
    ),
}

# Phases whose next step depends on the collaborators below.
NEEDS_READINESS = frozenset(READINESS_REQUIREMENTS)
NEEDS_TIMECARDS = frozenset({Phase.POST_SHOW})


def evaluate_entry_conditions(
    project: ProjectState,
    config: EffectiveConfiguration,
    trigger: TransitionTrigger,
    now: datetime,
    readiness: ReadinessSnapshot | None = None,
    timecards_terminal: bool | None = None,
    default_timezone: str = "UTC",
) -> Evaluation:
    """Decide whether ``project`` may move to its next phase.

    Args:
        project: Current project row
        config: Project fields with per-project overrides applied
        trigger: MANUAL or AUTOMATIC caller
        now: Current instant (aware; naive is treated as UTC)
        readiness: Required when the current phase is prep or staffing
        timecards_terminal: Required when the current phase is post_show
        default_timezone: Zone used when the project has none

    Returns:
        Evaluation; ``target_phase`` is the immediate next phase when allowed

    Rules:
        - archived is terminal: never transitions
        - AUTOMATIC callers are blocked when automation is disabled
        - complete -> archived is manual only, whatever the automation flag
        - all conditions for the next phase are reported, not just the first
    """
    current = project.phase
    target = next_phase(current)

    if target is None:
        return Evaluation.blocked(
            project.id, current, [Blocker(BlockerCode.ALREADY_ARCHIVED, "Project is already archived")]
        )

    if trigger == TransitionTrigger.AUTOMATIC and not config.auto_transitions_enabled:
        return Evaluation.blocked(
            project.id,
            current,
            [Blocker(BlockerCode.AUTOMATION_DISABLED, "Automatic transitions are disabled for this project")],
        )

    now = ensure_utc(now)
    blockers: list[Blocker] = []
    scheduled_at: datetime | None = None

    if current in READINESS_REQUIREMENTS:
        if readiness is None:
            raise ValueError(f"readiness snapshot required to leave {current.value}")
        for category, code, message in READINESS_REQUIREMENTS[current]:
            if not readiness.is_finalized(category):
                blockers.append(Blocker(code, message))

    elif current == Phase.PRE_SHOW:
        blockers, scheduled_at = _rehearsal_started(config, now, default_timezone)

    elif current == Phase.ACTIVE:
        blockers, scheduled_at = _show_ended(config, now, default_timezone)

    elif current == Phase.POST_SHOW:
        if timecards_terminal is None:
            raise ValueError("timecard signal required to leave post_show")
        if not timecards_terminal:
            blockers.append(
                Blocker(BlockerCode.TIMECARDS_PENDING, "All timecards must be approved or rejected")
            )

    elif current == Phase.COMPLETE:
        if trigger != TransitionTrigger.MANUAL:
            blockers.append(
                Blocker(BlockerCode.MANUAL_ARCHIVE_REQUIRED, "Archiving requires an explicit manual action")
            )

    if blockers:
        return Evaluation.blocked(project.id, current, blockers, scheduled_at=scheduled_at)

    return Evaluation(
        project_id=project.id,
        current_phase=current,
        can_transition=True,
        target_phase=target,
    )


def _invalid_zone(exc: UnknownTimezoneError) -> Blocker:
    return Blocker(BlockerCode.INVALID_TIMEZONE, f"Timezone '{exc.name}' is not a recognized zone identifier")


def _out_of_range(label: str, day: date) -> Blocker:
    return Blocker(BlockerCode.DATE_OUT_OF_RANGE, f"{label} {day.isoformat()} is outside the supported range")


def _rehearsal_started(
    config: EffectiveConfiguration, now: datetime, default_timezone: str
) -> tuple[list[Blocker], datetime | None]:
    """pre_show -> active: local time has reached the start of the rehearsal date."""
    if config.rehearsal_start_date is None:
        return [Blocker(BlockerCode.REHEARSAL_START_DATE_MISSING, "Rehearsal start date must be set")], None

    try:
        zone = resolve_zone(config.timezone, default_timezone)
    except UnknownTimezoneError as exc:
        return [_invalid_zone(exc)], None

    try:
        opens_at = start_of_local_day(config.rehearsal_start_date, zone) + config.rehearsal_grace
    except OverflowError:
        return [_out_of_range("Rehearsal start date", config.rehearsal_start_date)], None
    if now >= opens_at:
        return [], None

    return [
        Blocker(BlockerCode.REHEARSAL_NOT_STARTED, f"Scheduled to activate at {format_local(opens_at, zone)}")
    ], opens_at


def _show_ended(
    config: EffectiveConfiguration, now: datetime, default_timezone: str
) -> tuple[list[Blocker], datetime | None]:
    """active -> post_show: local time is past the end of the show end date."""
    if config.show_end_date is None:
        return [Blocker(BlockerCode.SHOW_END_DATE_MISSING, "Show end date must be set")], None

    try:
        zone = resolve_zone(config.timezone, default_timezone)
    except UnknownTimezoneError as exc:
        return [_invalid_zone(exc)], None

    try:
        closes_at = end_of_local_day(config.show_end_date, zone) + config.post_show_grace
    except OverflowError:
        return [_out_of_range("Show end date", config.show_end_date)], None
    if now > closes_at:
        return [], None

    return [
        Blocker(BlockerCode.SHOW_NOT_ENDED, f"Scheduled to move to post-show after {format_local(closes_at, zone)}")
    ], closes_at
