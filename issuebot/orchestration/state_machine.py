"""
State machine for workflow execution.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from issuebot.core.constants import FeatureStage, WorkflowStatus
from issuebot.core.logging import get_logger

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StateTransitionError(Exception):
    """Invalid state transition."""
    pass


@dataclass
class StateData:
    """Data associated with a state."""

    state: str
    entered_at: datetime = field(default_factory=_now)
    data: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


@dataclass
class WorkflowState:
    """Complete workflow state."""

    workflow_id: str
    workflow_type: str
    current_state: str
    status: WorkflowStatus = WorkflowStatus.PENDING

    history: list[StateData] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def add_to_history(self, state: str, data: Optional[dict] = None) -> None:
        """Add state to history."""
        self.history.append(StateData(state=state, data=data or {}))
        self.updated_at = _now()

    def set_error(self, error: str) -> None:
        """Set error state."""
        self.status = WorkflowStatus.FAILED
        if self.history:
            self.history[-1].error = error
        self.updated_at = _now()


class StateMachine:
    """
    Generic state machine for workflow orchestration.
    """

    def __init__(
        self,
        states: list[str],
        initial_state: str,
        final_states: list[str],
        transitions: dict[str, list[str]],
    ) -> None:
        """
        Initialize the state machine.

        Args:
            states: List of valid states
            initial_state: Starting state
            final_states: Terminal states
            transitions: Valid transitions {from_state: [to_states]}
        """
        self.states = set(states)
        self.initial_state = initial_state
        self.final_states = set(final_states)
        self.transitions = transitions

        # Validate
        if initial_state not in self.states:
            raise ValueError(f"Initial state '{initial_state}' not in states")
        for final in final_states:
            if final not in self.states:
                raise ValueError(f"Final state '{final}' not in states")

    def can_transition(self, from_state: str, to_state: str) -> bool:
        """Check if transition is valid."""
        if from_state not in self.transitions:
            return False
        return to_state in self.transitions[from_state]

    def get_next_states(self, current_state: str) -> list[str]:
        """Get valid next states from current state."""
        return self.transitions.get(current_state, [])

    def is_final(self, state: str) -> bool:
        """Check if state is a final state."""
        return state in self.final_states

    def start(self, workflow_id: str, workflow_type: str) -> WorkflowState:
        """Create a running WorkflowState positioned at the initial state."""
        state = WorkflowState(
            workflow_id=workflow_id,
            workflow_type=workflow_type,
            current_state=self.initial_state,
            status=WorkflowStatus.RUNNING,
        )
        state.add_to_history(self.initial_state)
        return state

    def advance(self, state: WorkflowState, to_state: str, data: Optional[dict] = None) -> None:
        """
        Move ``state`` to ``to_state``.

        Raises:
            StateTransitionError: If the transition is not in the table
        """
        if not self.can_transition(state.current_state, to_state):
            raise StateTransitionError(
                f"Cannot move from '{state.current_state}' to '{to_state}'"
            )
        state.current_state = to_state
        state.add_to_history(to_state, data)
        logger.debug("Workflow state changed", workflow_id=state.workflow_id, state=to_state)


# Predefined state machines for workflows

PRD_WORKFLOW_STATES = [
    "init",
    "checking_existing",
    "loading_readme",
    "generating_draft",
    "detecting_language",
    "translating",
    "publishing",
    "completed",
    "skipped",
    "failed",
]

PRD_WORKFLOW_TRANSITIONS = {
    "init": ["checking_existing"],
    "checking_existing": ["loading_readme", "skipped", "failed"],
    "loading_readme": ["generating_draft", "failed"],
    "generating_draft": ["detecting_language", "failed"],
    "detecting_language": ["translating", "failed"],
    "translating": ["publishing", "failed"],
    "publishing": ["completed", "failed"],
    "completed": [],
    "skipped": [],
    "failed": [],
}

SUBTASK_WORKFLOW_STATES = [
    "init",
    "loading_prd",
    "generating_items",
    "publishing",
    "completed",
    "skipped",
    "failed",
]

SUBTASK_WORKFLOW_TRANSITIONS = {
    "init": ["loading_prd"],
    "loading_prd": ["generating_items", "skipped", "failed"],
    "generating_items": ["publishing", "failed"],
    "publishing": ["completed", "failed"],
    "completed": [],
    "skipped": [],
    "failed": [],
}

# Strictly forward; every non-terminal stage may only fail or advance one step
_FEATURE_ORDER = [
    FeatureStage.PARSED,
    FeatureStage.ACKNOWLEDGED,
    FeatureStage.WORKSPACE_READY,
    FeatureStage.CLONED,
    FeatureStage.BRANCHED,
    FeatureStage.PATCHED,
    FeatureStage.COMMITTED,
    FeatureStage.PUSHED,
    FeatureStage.PULL_REQUEST_OPENED,
]

FEATURE_WORKFLOW_STATES = ["init", *(s.value for s in _FEATURE_ORDER), FeatureStage.FAILED.value]

FEATURE_WORKFLOW_TRANSITIONS = {
    "init": [FeatureStage.PARSED.value, FeatureStage.FAILED.value],
    **{
        current.value: [following.value, FeatureStage.FAILED.value]
        for current, following in zip(_FEATURE_ORDER, _FEATURE_ORDER[1:])
    },
    FeatureStage.PULL_REQUEST_OPENED.value: [],
    FeatureStage.FAILED.value: [],
}


def create_prd_state_machine() -> StateMachine:
    """Create state machine for PRD workflow."""
    return StateMachine(
        states=PRD_WORKFLOW_STATES,
        initial_state="init",
        final_states=["completed", "skipped", "failed"],
        transitions=PRD_WORKFLOW_TRANSITIONS,
    )


def create_subtask_state_machine() -> StateMachine:
    """Create state machine for sub-task workflow."""
    return StateMachine(
        states=SUBTASK_WORKFLOW_STATES,
        initial_state="init",
        final_states=["completed", "skipped", "failed"],
        transitions=SUBTASK_WORKFLOW_TRANSITIONS,
    )


def create_feature_state_machine() -> StateMachine:
    """Create state machine for feature implementation workflow."""
    return StateMachine(
        states=FEATURE_WORKFLOW_STATES,
        initial_state="init",
        final_states=[FeatureStage.PULL_REQUEST_OPENED.value, FeatureStage.FAILED.value],
        transitions=FEATURE_WORKFLOW_TRANSITIONS,
    )
