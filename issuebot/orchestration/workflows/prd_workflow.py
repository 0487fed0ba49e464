"""
PRD (Product Requirements Document) generation workflow.
"""

from typing import Optional

from issuebot.core.constants import LANGUAGE_FALLBACK, README_PATH, Command, WorkflowStatus
from issuebot.core.exceptions import GitHubAPIError
from issuebot.core.logging import get_logger
from issuebot.domain.artifacts import PRDArtifact, find_prd_comment
from issuebot.generation import prompts
from issuebot.generation.base import ContentGenerator
from issuebot.orchestration.state_machine import StateMachine, WorkflowState, create_prd_state_machine
from issuebot.orchestration.workflow_engine import BaseWorkflow, WorkflowContext, WorkflowResult

logger = get_logger(__name__)


class PRDWorkflow(BaseWorkflow):
    """
    Workflow for generating a bilingual PRD comment from an issue.

    States:
        init -> checking_existing -> loading_readme -> generating_draft
             -> detecting_language -> translating -> publishing -> completed

    Only the draft is essential. Language detection falls back to a literal
    phrase and translation falls back to an English-only PRD.
    """

    def __init__(self, generator: ContentGenerator) -> None:
        self.generator = generator
        self._state_machine = create_prd_state_machine()

    @property
    def command(self) -> Command:
        return Command.NEED_PRD

    @property
    def state_machine(self) -> StateMachine:
        return self._state_machine

    async def execute(self, context: WorkflowContext) -> WorkflowResult:
        """Execute the PRD generation workflow."""
        issue = context.trigger.issue
        state = self._start()
        sm = self.state_machine

        try:
            sm.advance(state, "checking_existing")
            comments = await context.gateway.list_comments(issue.number)
            existing = find_prd_comment(comments)
            if existing is not None:
                logger.info("PRD already exists, skipping generation", issue=issue.number, comment_id=existing.id)
                sm.advance(state, "skipped")
                return self._result(state, WorkflowStatus.SKIPPED, stage="checking_existing")

            sm.advance(state, "loading_readme")
            readme = await self._load_readme(context)

            artifact = await self.generate(issue.title, issue.body, readme, state)

            sm.advance(state, "publishing")
            body = artifact.render()
            await context.gateway.create_comment(issue.number, body)

        except Exception as e:
            failed_stage = state.current_state
            logger.exception("PRD workflow failed", issue=issue.number, stage=failed_stage, error=str(e))
            sm.advance(state, "failed")
            state.set_error(str(e))
            # A failed post cannot be reported by posting again
            if failed_stage != "publishing":
                await self._post(
                    context,
                    f"I couldn't generate a PRD for issue #{issue.number}. "
                    f"**Reason:** {_describe(failed_stage)}.",
                )
            return self._result(state, WorkflowStatus.FAILED, stage=failed_stage, error=str(e))

        sm.advance(state, "completed")
        return self._result(
            state,
            WorkflowStatus.COMPLETED,
            stage="publishing",
            comment=body,
            artifacts={"prd": artifact},
        )

    async def generate(
        self,
        title: str,
        body: str,
        readme_text: str,
        state: Optional[WorkflowState] = None,
    ) -> PRDArtifact:
        """
        Run draft, language detection and translation.

        Raises:
            GenerationError: If the English draft cannot be produced
        """

        def enter(stage: str) -> None:
            if state is not None:
                self.state_machine.advance(state, stage)

        enter("generating_draft")
        english = await self.generator.generate(prompts.build_prd_prompt(title, body, readme_text))

        enter("detecting_language")
        language = await self._detect_language(body)

        enter("translating")
        try:
            translated = await self.generator.generate(prompts.build_translation_prompt(language, english))
        except Exception as e:
            logger.warning("Translation failed, falling back to English only", language=language, error=str(e))
            return PRDArtifact(english=english, language=language)

        return PRDArtifact(english=english, language=language, translated=translated)

    async def _detect_language(self, text: str) -> str:
        try:
            detected = (await self.generator.generate(prompts.build_language_detection_prompt(text))).strip()
        except Exception as e:
            logger.warning("Language detection failed, using fallback", error=str(e))
            return LANGUAGE_FALLBACK
        return detected or LANGUAGE_FALLBACK

    async def _load_readme(self, context: WorkflowContext) -> str:
        try:
            raw = await context.gateway.get_repository_file(README_PATH)
        except GitHubAPIError as e:
            if not e.is_not_found:
                raise
            logger.info("Repository has no README, continuing without it", repository=context.trigger.repository.full_name)
            return ""
        return raw.decode("utf-8", errors="replace")


_STAGE_DESCRIPTIONS: dict[str, str] = {
    "checking_existing": "Could not read the issue comments",
    "loading_readme": "Could not read the repository README",
    "generating_draft": "The PRD draft could not be generated",
}


def _describe(stage: str) -> str:
    return _STAGE_DESCRIPTIONS.get(stage, f"Unexpected failure while {stage.replace('_', ' ')}")
