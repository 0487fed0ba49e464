"""
Autonomous feature implementation workflow.

Clones the repository into a private workspace, lets the patch agent edit
the requested files, then commits, pushes and opens a pull request.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

from issuebot.agents.patch_agent import PatchAgent
from issuebot.core.config import GitHubSettings
from issuebot.core.constants import (
    BRANCH_TEMPLATE,
    MAX_OUTPUT_IN_COMMENT,
    WORKSPACE_PREFIX,
    Command,
    FeatureStage,
    WorkflowStatus,
)
from issuebot.core.exceptions import CommandError, IssueBotError, WorkflowError
from issuebot.core.logging import get_logger
from issuebot.core.security import redact
from issuebot.domain.artifacts import FeatureRequest
from issuebot.generation import prompts
from issuebot.github.auth import InstallationAuthenticator
from issuebot.orchestration.state_machine import StateMachine, WorkflowState, create_feature_state_machine
from issuebot.orchestration.workflow_engine import BaseWorkflow, WorkflowContext, WorkflowResult
from issuebot.services.git_client import GitClient, authenticated_url
from issuebot.services.workspace import Workspace

logger = get_logger(__name__)


@dataclass
class _Step:
    """Reason reported to the user if the current stage fails."""

    reason: Optional[str] = None


class FeatureWorkflow(BaseWorkflow):
    """
    Workflow that turns an issue into a pull request.

    States:
        init -> parsed -> acknowledged -> workspace_ready -> cloned -> branched
             -> patched -> committed -> pushed -> pull_request_opened

    Any stage may move to ``failed`` instead. There are no retries. Every
    run ends with one closing comment (the PR link or a diagnostic naming
    the failed stage), and the workspace is removed on every exit path.
    """

    def __init__(
        self,
        authenticator: InstallationAuthenticator,
        git: GitClient,
        patch_agent: PatchAgent,
        github_settings: GitHubSettings,
        workspace_root: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.authenticator = authenticator
        self.git = git
        self.patch_agent = patch_agent
        self.app_name = github_settings.app_name
        self.web_url = github_settings.web_url
        self.workspace_root = workspace_root
        self._clock = clock
        self._state_machine = create_feature_state_machine()

    @property
    def command(self) -> Command:
        return Command.IMPLEMENT_FEATURE

    @property
    def state_machine(self) -> StateMachine:
        return self._state_machine

    @asynccontextmanager
    async def _stage(
        self,
        state: WorkflowState,
        stage: FeatureStage,
        reason: Optional[str] = None,
    ) -> AsyncIterator[_Step]:
        """Run one stage; advance on success, raise WorkflowError on failure."""
        step = _Step(reason=reason)
        state.context["stage"] = stage.value
        try:
            yield step
        except Exception as e:
            message = step.reason or (e.message if isinstance(e, IssueBotError) else str(e))
            raise WorkflowError(self.workflow_type, step=stage.value, message=message) from e
        self.state_machine.advance(state, stage.value)

    async def execute(self, context: WorkflowContext) -> WorkflowResult:
        """Execute the feature workflow."""
        trigger = context.trigger
        issue = trigger.issue
        repo = trigger.repository
        state = self._start()
        workspace = Workspace(
            prefix=WORKSPACE_PREFIX.format(issue_number=issue.number),
            root=self.workspace_root,
        )

        logger.info("Starting feature implementation", issue=issue.number, repository=repo.full_name)

        try:
            async with self._stage(state, FeatureStage.PARSED):
                request = FeatureRequest.parse(issue.body)

            async with self._stage(state, FeatureStage.ACKNOWLEDGED, "Could not post a status comment"):
                await context.gateway.create_comment(
                    issue.number,
                    f"Alright, I'm on it! I will try to implement the feature for issue "
                    f"#{issue.number}. Give me a few minutes...",
                )

            try:
                async with self._stage(state, FeatureStage.WORKSPACE_READY, "Could not create temporary directory"):
                    path = workspace.create()

                async with self._stage(state, FeatureStage.CLONED) as step:
                    step.reason = "Could not get installation token"
                    token = await self.authenticator.token_for(trigger.installation_id)
                    step.reason = "Could not clone repository"
                    await self.git.clone(
                        authenticated_url(self.web_url, repo.owner, repo.name, token.token),
                        path,
                        token=token.token,
                    )
                    # Keep the credential out of .git/config
                    await self.git.set_remote_url(path, authenticated_url(self.web_url, repo.owner, repo.name))

                async with self._stage(state, FeatureStage.BRANCHED, "Could not create new branch"):
                    branch = BRANCH_TEMPLATE.format(issue_number=issue.number, timestamp=int(self._clock()))
                    await self.git.create_branch(path, branch)

                async with self._stage(state, FeatureStage.PATCHED, "The patch agent failed to modify the files"):
                    instruction = prompts.build_feature_instruction(issue.title, issue.body, request.files)
                    await self.patch_agent.apply_patch(instruction, request.files, path)

                async with self._stage(state, FeatureStage.COMMITTED) as step:
                    await self._commit(path, issue.number, step)

                async with self._stage(state, FeatureStage.PUSHED, "Could not push changes to remote"):
                    await self.git.push(
                        path,
                        authenticated_url(self.web_url, repo.owner, repo.name, token.token),
                        branch,
                        token=token.token,
                    )
            finally:
                workspace.cleanup()

            async with self._stage(state, FeatureStage.PULL_REQUEST_OPENED, "Could not create Pull Request"):
                pr_url = await context.gateway.create_pull_request(
                    head=branch,
                    base=repo.default_branch,
                    title=f"Implement Feature: {issue.title}",
                    body=(
                        f"This PR implements the feature requested in #{issue.number}. "
                        f"It was automatically generated by @{self.app_name}."
                    ),
                )

        except WorkflowError as e:
            return await self._fail(context, state, e)
        except asyncio.CancelledError:
            await self._interrupted(context, state)
            raise

        message = f"I've created a Pull Request for issue #{issue.number}. You can review it here: {pr_url}"
        await self._post(context, message)
        state.status = WorkflowStatus.COMPLETED
        logger.info("Feature implementation finished", issue=issue.number, pull_request=pr_url)
        return self._result(
            state,
            WorkflowStatus.COMPLETED,
            stage=FeatureStage.PULL_REQUEST_OPENED.value,
            comment=message,
            artifacts={"branch": branch, "pull_request_url": pr_url, "files": request.files},
        )

    async def _commit(self, path: Path, issue_number: int, step: _Step) -> None:
        step.reason = "Could not set git identity"
        await self.git.configure_identity(
            path,
            name=self.app_name,
            email=f"{self.app_name}@users.noreply.github.com",
        )
        step.reason = "Could not add files to git"
        await self.git.add_all(path)
        step.reason = "Could not commit changes"
        await self.git.commit(
            path,
            f"feat: Implement feature for #{issue_number}\n\n"
            f"This commit was automatically generated by {self.app_name} based on the issue.",
        )

    async def _fail(self, context: WorkflowContext, state: WorkflowState, error: WorkflowError) -> WorkflowResult:
        cause = error.__cause__
        stage = error.step or state.current_state
        logger.error(
            "Feature implementation failed",
            issue=context.issue_number,
            stage=stage,
            reason=error.message,
            cause=redact(str(cause)) if cause else None,
        )
        self.state_machine.advance(state, FeatureStage.FAILED.value, {"stage": stage})
        state.set_error(error.message)

        message = self.failure_message(context.issue_number, stage, error.message, cause)
        await self._post(context, message)
        return self._result(
            state,
            WorkflowStatus.FAILED,
            stage=stage,
            comment=message,
            error=error.message,
        )

    async def _interrupted(self, context: WorkflowContext, state: WorkflowState) -> None:
        """Report a cancelled run; the caller re-raises the cancellation."""
        stage = state.context.get("stage", state.current_state)
        reason = "The run was interrupted by a service shutdown"
        logger.warning("Feature implementation interrupted", issue=context.issue_number, stage=stage)
        self.state_machine.advance(state, FeatureStage.FAILED.value, {"stage": stage})
        state.set_error(reason)

        message = self.failure_message(context.issue_number, stage, reason)
        # The post itself must survive a second cancel
        await asyncio.shield(self._post(context, message))

    @staticmethod
    def failure_message(
        issue_number: int,
        stage: str,
        reason: str,
        cause: Optional[BaseException] = None,
    ) -> str:
        """Diagnostic comment naming the failed stage and its cause."""
        lines = [
            f"I failed to implement the feature for issue #{issue_number}. **Reason:** {reason.rstrip('.')}.",
            "",
            f"**Stage:** `{stage}`",
        ]

        if cause is not None:
            detail = redact(cause.message if isinstance(cause, IssueBotError) else str(cause))
            if detail and detail != reason:
                lines.append(f"**Cause:** {detail}")

        output = redact(cause.output) if isinstance(cause, CommandError) else ""
        if output:
            if len(output) > MAX_OUTPUT_IN_COMMENT:
                output = "...\n" + output[-MAX_OUTPUT_IN_COMMENT:]
            lines.extend([
                "",
                "<details><summary>Output</summary>",
                "",
                "```",
                output,
                "```",
                "",
                "</details>",
            ])

        return "\n".join(lines)
