"""
Unit tests for workflow state machines.
"""

import pytest

from issuebot.core.constants import FeatureStage, WorkflowStatus
from issuebot.orchestration.state_machine import (
    StateTransitionError,
    create_feature_state_machine,
    create_prd_state_machine,
    create_subtask_state_machine,
)


class TestStateMachine:
    """Tests for transition tables."""

    def test_start(self) -> None:
        state = create_prd_state_machine().start("wf_1", "need_prd")

        assert state.current_state == "init"
        assert state.status == WorkflowStatus.RUNNING
        assert [entry.state for entry in state.history] == ["init"]

    def test_advance_records_history(self) -> None:
        sm = create_subtask_state_machine()
        state = sm.start("wf_1", "need_sub_task")

        sm.advance(state, "loading_prd")
        sm.advance(state, "skipped", {"reason": "no prd"})

        assert state.current_state == "skipped"
        assert sm.is_final("skipped")
        assert state.history[-1].data == {"reason": "no prd"}

    def test_invalid_transition(self) -> None:
        sm = create_prd_state_machine()
        state = sm.start("wf_1", "need_prd")

        with pytest.raises(StateTransitionError):
            sm.advance(state, "publishing")

    def test_feature_stages_are_strictly_forward(self) -> None:
        sm = create_feature_state_machine()

        assert sm.get_next_states(FeatureStage.CLONED.value) == [
            FeatureStage.BRANCHED.value,
            FeatureStage.FAILED.value,
        ]
        assert not sm.can_transition(FeatureStage.PATCHED.value, FeatureStage.CLONED.value)
        assert not sm.can_transition(FeatureStage.CLONED.value, FeatureStage.PATCHED.value)
        assert sm.get_next_states(FeatureStage.FAILED.value) == []

    def test_every_feature_stage_can_fail(self) -> None:
        sm = create_feature_state_machine()

        for stage in FeatureStage:
            if stage in (FeatureStage.FAILED, FeatureStage.PULL_REQUEST_OPENED):
                continue
            assert sm.can_transition(stage.value, FeatureStage.FAILED.value)

    def test_set_error(self) -> None:
        sm = create_prd_state_machine()
        state = sm.start("wf_1", "need_prd")

        sm.advance(state, "checking_existing")
        state.set_error("boom")

        assert state.status == WorkflowStatus.FAILED
        assert state.history[-1].error == "boom"
