"""Operator-facing action items derived from transition blockers."""

from dataclasses import dataclass
from typing import Literal

from showops.domain.phases import BlockerCode, Evaluation, Phase


@dataclass
class ActionItem:
    """One thing an operator can do (or wait for) to unblock the next phase."""

    code: str
    title: str
    description: str
    category: str
    priority: Literal["high", "medium", "low"]
    required_for_transition: bool = True


# code -> (title, category, priority)
ACTION_ITEM_TEMPLATES: dict[BlockerCode, tuple[str, str, Literal["high", "medium", "low"]]] = {
    BlockerCode.ROLES_NOT_FINALIZED: ("Finalize Project Roles", "setup", "high"),
    BlockerCode.LOCATIONS_NOT_FINALIZED: ("Finalize Location Setup", "setup", "high"),
    BlockerCode.TEAM_NOT_FINALIZED: ("Finalize Team Assignments", "staffing", "high"),
    BlockerCode.TALENT_NOT_FINALIZED: ("Finalize Talent Roster", "staffing", "high"),
    BlockerCode.REHEARSAL_START_DATE_MISSING: ("Set Rehearsal Start Date", "schedule", "high"),
    BlockerCode.REHEARSAL_NOT_STARTED: ("Waiting for Rehearsal Start", "schedule", "low"),
    BlockerCode.SHOW_END_DATE_MISSING: ("Set Show End Date", "schedule", "high"),
    BlockerCode.SHOW_NOT_ENDED: ("Waiting for Show End", "schedule", "low"),
    BlockerCode.TIMECARDS_PENDING: ("Resolve Pending Timecards", "payroll", "high"),
    BlockerCode.MANUAL_ARCHIVE_REQUIRED: ("Archive Project", "wrap-up", "medium"),
    BlockerCode.AUTOMATION_DISABLED: ("Automatic Transitions Disabled", "configuration", "low"),
    BlockerCode.INVALID_TIMEZONE: ("Fix Project Timezone", "configuration", "high"),
    BlockerCode.DATE_OUT_OF_RANGE: ("Fix Out-of-Range Date", "schedule", "high"),
    BlockerCode.DATA_UNAVAILABLE: ("Readiness Data Unavailable", "system", "medium"),
    BlockerCode.ALREADY_ARCHIVED: ("Project Archived", "wrap-up", "low"),
    BlockerCode.CONCURRENT_TRANSITION_LOST: ("Phase Changed Concurrently", "system", "low"),
    BlockerCode.TARGET_PHASE_MISMATCH: ("Phase Already Advanced", "system", "low"),
    BlockerCode.INTERNAL_ERROR: ("Evaluation Failed", "system", "medium"),
}

# Blockers that clear on their own with time or retries; nothing for the operator to fix.
_INFORMATIONAL = frozenset(
    {
        BlockerCode.ALREADY_ARCHIVED,
        BlockerCode.CONCURRENT_TRANSITION_LOST,
        BlockerCode.DATA_UNAVAILABLE,
        BlockerCode.TARGET_PHASE_MISMATCH,
    }
)


def action_items_for(evaluation: Evaluation) -> list[ActionItem]:
    """Map each blocker of ``evaluation`` to an action item, preserving order.

    A project free to archive gets one optional wrap-up item so the manual
    archive step stays visible.
    """
    if evaluation.can_transition and evaluation.target_phase == Phase.ARCHIVED:
        title, category, priority = ACTION_ITEM_TEMPLATES[BlockerCode.MANUAL_ARCHIVE_REQUIRED]
        return [
            ActionItem(
                code=BlockerCode.MANUAL_ARCHIVE_REQUIRED.value,
                title=title,
                description="All work is complete; archive the project when wrap-up is done",
                category=category,
                priority=priority,
                required_for_transition=False,
            )
        ]

    items: list[ActionItem] = []
    for blocker in evaluation.blockers:
        title, category, priority = ACTION_ITEM_TEMPLATES[blocker.code]
        items.append(
            ActionItem(
                code=blocker.code.value,
                title=title,
                description=blocker.message,
                category=category,
                priority=priority,
                required_for_transition=blocker.code not in _INFORMATIONAL,
            )
        )
    return items
