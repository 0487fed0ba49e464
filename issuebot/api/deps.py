"""
API dependencies for dependency injection.
"""

from typing import Optional

from fastapi import Request

from issuebot.agents.patch_agent import CLIPatchAgent
from issuebot.core.config import Settings
from issuebot.generation.gemini_client import GeminiContentGenerator
from issuebot.github.auth import InstallationAuthenticator
from issuebot.github.client import GitHubGatewayFactory
from issuebot.orchestration.dispatcher import Dispatcher
from issuebot.orchestration.router import CommandRouter
from issuebot.orchestration.workflows import FeatureWorkflow, PRDWorkflow, SubtaskWorkflow
from issuebot.services.git_client import GitClient


class ServiceContainer:
    """
    Container for all application services.
    Builds each collaborator once from the settings it is given.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._initialized = False

    def initialize(self) -> None:
        """Initialize all services."""
        if self._initialized:
            return

        github = self.settings.github
        gemini = self.settings.gemini
        workflow = self.settings.workflow

        # GitHub access
        self._authenticator = InstallationAuthenticator(github)
        self._gateway_factory = GitHubGatewayFactory(self._authenticator, github)

        # Generation and local tooling
        self._generator = GeminiContentGenerator(gemini)
        self._git_client = GitClient(timeout=workflow.command_timeout)
        self._patch_agent = CLIPatchAgent(
            command=workflow.patch_agent_command,
            args=workflow.patch_agent_args,
            api_key=gemini.api_key,
            timeout=workflow.command_timeout,
        )

        # Routing and workflows
        self._router = CommandRouter(
            github,
            enable_label_triggers=workflow.enable_label_triggers,
        )
        self._dispatcher = Dispatcher(
            router=self._router,
            gateway_factory=self._gateway_factory,
            workflows=[
                PRDWorkflow(self._generator),
                SubtaskWorkflow(self._generator, mention=github.mention),
                FeatureWorkflow(
                    authenticator=self._authenticator,
                    git=self._git_client,
                    patch_agent=self._patch_agent,
                    github_settings=github,
                    workspace_root=workflow.workspace_root,
                ),
            ],
            max_concurrent_tasks=workflow.max_concurrent_tasks,
        )

        self._initialized = True

    @property
    def router(self) -> CommandRouter:
        """Get the command router."""
        self.initialize()
        return self._router

    @property
    def dispatcher(self) -> Dispatcher:
        """Get the dispatcher."""
        self.initialize()
        return self._dispatcher

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """Wait for running workflows, then release HTTP clients."""
        if not self._initialized:
            return
        await self._dispatcher.drain(timeout=timeout)
        await self._generator.close()


# Dependency functions for FastAPI
def get_container(request: Request) -> ServiceContainer:
    """Get the service container attached to the running app."""
    return request.app.state.container


def get_settings_dep(request: Request) -> Settings:
    """Get the settings the app was created with."""
    return request.app.state.settings
