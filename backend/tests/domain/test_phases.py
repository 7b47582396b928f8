"""Tests for phase ordering helpers."""

import pytest

from showops.domain.phases import PHASE_ORDER, Blocker, BlockerCode, Phase, is_forward_step, next_phase, phase_index


class TestPhaseOrder:
    def test_lifecycle_order(self):
        assert [p.value for p in PHASE_ORDER] == [
            "prep",
            "staffing",
            "pre_show",
            "active",
            "post_show",
            "complete",
            "archived",
        ]

    def test_phase_index(self):
        assert phase_index(Phase.PREP) == 0
        assert phase_index(Phase.ARCHIVED) == 6

    @pytest.mark.parametrize("current,expected", list(zip(PHASE_ORDER, PHASE_ORDER[1:])))
    def test_next_phase_is_immediate_successor(self, current, expected):
        assert next_phase(current) == expected

    def test_archived_has_no_next_phase(self):
        assert next_phase(Phase.ARCHIVED) is None


class TestForwardStep:
    def test_single_step_forward(self):
        assert is_forward_step(Phase.PREP, Phase.STAFFING) is True

    def test_skipping_is_not_a_step(self):
        assert is_forward_step(Phase.PREP, Phase.PRE_SHOW) is False

    def test_backwards_is_not_a_step(self):
        assert is_forward_step(Phase.ACTIVE, Phase.PRE_SHOW) is False

    def test_same_phase_is_not_a_step(self):
        assert is_forward_step(Phase.ACTIVE, Phase.ACTIVE) is False


def test_blocker_as_dict():
    blocker = Blocker(BlockerCode.ROLES_NOT_FINALIZED, "Project roles must be finalized")
    assert blocker.as_dict() == {"code": "roles_not_finalized", "message": "Project roles must be finalized"}
