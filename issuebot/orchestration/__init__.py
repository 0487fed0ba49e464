"""
Orchestration module for command routing and workflow management.
"""

from issuebot.orchestration.dispatcher import Dispatcher
from issuebot.orchestration.router import CommandRouter
from issuebot.orchestration.state_machine import (
    StateData,
    StateMachine,
    StateTransitionError,
    WorkflowState,
    create_feature_state_machine,
    create_prd_state_machine,
    create_subtask_state_machine,
)
from issuebot.orchestration.workflow_engine import BaseWorkflow, WorkflowContext, WorkflowResult
from issuebot.orchestration.workflows import FeatureWorkflow, PRDWorkflow, SubtaskWorkflow

__all__ = [
    "CommandRouter",
    "Dispatcher",
    "StateMachine",
    "StateData",
    "StateTransitionError",
    "WorkflowState",
    "create_prd_state_machine",
    "create_subtask_state_machine",
    "create_feature_state_machine",
    "BaseWorkflow",
    "WorkflowContext",
    "WorkflowResult",
    "PRDWorkflow",
    "SubtaskWorkflow",
    "FeatureWorkflow",
]
