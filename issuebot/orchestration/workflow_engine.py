"""
Workflow base classes shared by every command handler.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from issuebot.core.constants import Command, WorkflowStatus
from issuebot.core.logging import get_logger
from issuebot.domain.trigger import BaseTrigger
from issuebot.github.base import IssueTrackerGateway
from issuebot.orchestration.state_machine import StateMachine, WorkflowState

logger = get_logger(__name__)


@dataclass
class WorkflowContext:
    """Context for workflow execution."""

    trigger: BaseTrigger
    gateway: IssueTrackerGateway

    @property
    def issue_number(self) -> int:
        return self.trigger.issue.number


@dataclass
class WorkflowResult:
    """Result of workflow execution."""

    workflow_id: str
    workflow_type: str
    status: WorkflowStatus
    stage: Optional[str] = None
    comment: Optional[str] = None
    artifacts: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    history: list[str] = field(default_factory=list)


class BaseWorkflow(ABC):
    """
    Abstract base class for workflows.
    """

    @property
    @abstractmethod
    def command(self) -> Command:
        """Command this workflow answers."""
        ...

    @property
    def workflow_type(self) -> str:
        """Return workflow type identifier."""
        return self.command.value

    @property
    @abstractmethod
    def state_machine(self) -> StateMachine:
        """Return the state machine for this workflow."""
        ...

    @abstractmethod
    async def execute(self, context: WorkflowContext) -> WorkflowResult:
        """
        Execute the workflow.

        Implementations contain their own failures and report them through
        the returned result rather than raising.
        """
        ...

    def _generate_workflow_id(self) -> str:
        """Generate a unique workflow ID."""
        return f"wf_{self.workflow_type}_{uuid.uuid4().hex[:12]}"

    def _start(self) -> WorkflowState:
        return self.state_machine.start(self._generate_workflow_id(), self.workflow_type)

    def _result(
        self,
        state: WorkflowState,
        status: WorkflowStatus,
        **kwargs: Any,
    ) -> WorkflowResult:
        """Build the result for a run that ended in ``state``."""
        state.status = status
        return WorkflowResult(
            workflow_id=state.workflow_id,
            workflow_type=self.workflow_type,
            status=status,
            history=[entry.state for entry in state.history],
            **kwargs,
        )

    async def _post(self, context: WorkflowContext, body: str) -> bool:
        """Post a comment, logging instead of raising on failure."""
        try:
            await context.gateway.create_comment(context.issue_number, body)
            return True
        except Exception as e:
            logger.error(
                "Failed to post comment",
                workflow=self.workflow_type,
                issue=context.issue_number,
                error=str(e),
            )
            return False
