"""Tests for blocker -> action item mapping."""

import uuid

from showops.domain.action_items import ACTION_ITEM_TEMPLATES, action_items_for
from showops.domain.phases import Blocker, BlockerCode, Evaluation, Phase


def _evaluation(*codes: BlockerCode) -> Evaluation:
    return Evaluation.blocked(uuid.uuid4(), Phase.PREP, [Blocker(code, f"{code.value} message") for code in codes])


def test_every_blocker_code_has_a_template():
    assert set(ACTION_ITEM_TEMPLATES) == set(BlockerCode)


def test_items_follow_blocker_order():
    items = action_items_for(_evaluation(BlockerCode.ROLES_NOT_FINALIZED, BlockerCode.LOCATIONS_NOT_FINALIZED))

    assert [item.code for item in items] == ["roles_not_finalized", "locations_not_finalized"]
    assert items[0].title == "Finalize Project Roles"
    assert items[0].description == "roles_not_finalized message"
    assert items[0].priority == "high"
    assert items[0].required_for_transition is True


def test_transient_blockers_are_not_required_actions():
    items = action_items_for(_evaluation(BlockerCode.DATA_UNAVAILABLE))

    assert items[0].required_for_transition is False
    assert items[0].category == "system"


def test_no_blockers_no_items():
    evaluation = Evaluation(project_id=uuid.uuid4(), current_phase=Phase.PREP, can_transition=True, target_phase=Phase.STAFFING)

    assert action_items_for(evaluation) == []


def test_complete_project_offers_optional_archive_item():
    evaluation = Evaluation(
        project_id=uuid.uuid4(), current_phase=Phase.COMPLETE, can_transition=True, target_phase=Phase.ARCHIVED
    )

    [item] = action_items_for(evaluation)

    assert item.code == "manual_archive_required"
    assert item.title == "Archive Project"
    assert item.category == "wrap-up"
    assert item.required_for_transition is False
