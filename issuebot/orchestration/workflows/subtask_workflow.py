"""
Sub-task checklist generation workflow.
"""

from typing import Optional, Sequence

from issuebot.core.constants import Command, WorkflowStatus
from issuebot.core.logging import get_logger
from issuebot.domain.artifacts import ChecklistArtifact, PRDArtifact, find_prd_comment
from issuebot.domain.trigger import Comment
from issuebot.generation import prompts
from issuebot.generation.base import ContentGenerator
from issuebot.orchestration.state_machine import StateMachine, create_subtask_state_machine
from issuebot.orchestration.workflow_engine import BaseWorkflow, WorkflowContext, WorkflowResult

logger = get_logger(__name__)


class SubtaskWorkflow(BaseWorkflow):
    """
    Breaks the issue's latest PRD comment into a Markdown checklist.

    States:
        init -> loading_prd -> generating_items -> publishing -> completed

    A missing PRD is a normal outcome: the user is asked to run need_prd.
    """

    def __init__(self, generator: ContentGenerator, mention: str) -> None:
        self.generator = generator
        self.mention = mention
        self._state_machine = create_subtask_state_machine()

    @property
    def command(self) -> Command:
        return Command.NEED_SUB_TASK

    @property
    def state_machine(self) -> StateMachine:
        return self._state_machine

    @property
    def no_prd_message(self) -> str:
        return (
            "I couldn't find a PRD to generate sub-tasks from. "
            f"Please run `{self.mention} {Command.NEED_PRD.value}` first."
        )

    async def generate(self, comments: Sequence[Comment]) -> Optional[ChecklistArtifact]:
        """
        Generate a checklist from the newest PRD among ``comments``.

        Returns:
            The checklist, or None if no comment carries the PRD marker
        """
        prd_comment = find_prd_comment(comments)
        if prd_comment is None:
            return None

        parsed = PRDArtifact.parse(prd_comment.body)
        logger.info(
            "Generating sub-tasks from PRD",
            comment_id=prd_comment.id,
            language=parsed.language if parsed else None,
        )
        items = await self.generator.generate(prompts.build_subtask_prompt(prd_comment.body))
        return ChecklistArtifact(items=items)

    async def execute(self, context: WorkflowContext) -> WorkflowResult:
        """Execute the sub-task workflow."""
        issue_number = context.issue_number
        state = self._start()
        sm = self.state_machine

        try:
            sm.advance(state, "loading_prd")
            comments = await context.gateway.list_comments(issue_number)

            if find_prd_comment(comments) is None:
                logger.info("No PRD comment found, asking for need_prd first", issue=issue_number)
                sm.advance(state, "skipped")
                await self._post(context, self.no_prd_message)
                return self._result(
                    state,
                    WorkflowStatus.SKIPPED,
                    stage="loading_prd",
                    comment=self.no_prd_message,
                )

            sm.advance(state, "generating_items")
            checklist = await self.generate(comments)

            sm.advance(state, "publishing")
            body = checklist.render()
            await context.gateway.create_comment(issue_number, body)

        except Exception as e:
            failed_stage = state.current_state
            logger.exception("Sub-task workflow failed", issue=issue_number, stage=failed_stage, error=str(e))
            sm.advance(state, "failed")
            state.set_error(str(e))
            if failed_stage != "publishing":
                reason = (
                    "Could not read the issue comments"
                    if failed_stage == "loading_prd"
                    else "The sub-tasks could not be generated"
                )
                await self._post(
                    context,
                    f"I couldn't generate sub-tasks for issue #{issue_number}. **Reason:** {reason}.",
                )
            return self._result(state, WorkflowStatus.FAILED, stage=failed_stage, error=str(e))

        sm.advance(state, "completed")
        return self._result(
            state,
            WorkflowStatus.COMPLETED,
            stage="publishing",
            comment=body,
            artifacts={"checklist": checklist},
        )
