"""
Pytest configuration and fixtures.
"""

from typing import AsyncGenerator, Optional, Union

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient

from issuebot.api.deps import ServiceContainer
from issuebot.core.config import GeminiSettings, GitHubSettings, Settings, WorkflowSettings
from issuebot.core.exceptions import GitHubAPIError
from issuebot.domain.trigger import Comment, CommentCreated, Issue, IssueOpened, Repository
from issuebot.generation.base import ContentGenerator
from issuebot.github.base import IssueTrackerGateway
from issuebot.main import create_app

APP_NAME = "issuebot-app"
WEBHOOK_SECRET = "webhook-secret"


class FakeGateway(IssueTrackerGateway):
    """In-memory issue tracker recording every write."""

    def __init__(self) -> None:
        self.comments: list[Comment] = []
        self.files: dict[str, bytes] = {}
        self.posted: list[str] = []
        self.comment_attempts = 0
        self.pull_requests: list[dict[str, str]] = []
        self.fail_on: dict[str, Exception] = {}
        self.closed = False

    def add_comment(self, body: str, author: str = "octocat") -> Comment:
        comment = Comment(id=len(self.comments) + 1, body=body, author=author)
        self.comments.append(comment)
        return comment

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail_on:
            raise self.fail_on[method]

    async def get_repository_file(self, path: str) -> bytes:
        self._maybe_fail("get_repository_file")
        if path not in self.files:
            raise GitHubAPIError("HTTP 404: Not Found", upstream_status=404, endpoint=path)
        return self.files[path]

    async def list_comments(self, issue_number: int) -> list[Comment]:
        self._maybe_fail("list_comments")
        return list(self.comments)

    async def create_comment(self, issue_number: int, body: str) -> None:
        self.comment_attempts += 1
        self._maybe_fail("create_comment")
        self.posted.append(body)
        self.add_comment(body, author=f"{APP_NAME}[bot]")

    async def create_pull_request(self, head: str, base: str, title: str, body: str) -> str:
        self._maybe_fail("create_pull_request")
        self.pull_requests.append({"head": head, "base": base, "title": title, "body": body})
        return f"https://github.com/octo/app/pull/{len(self.pull_requests)}"

    async def close(self) -> None:
        self.closed = True


class FakeGenerator(ContentGenerator):
    """Returns queued responses in order; exceptions in the queue are raised."""

    def __init__(self, responses: Optional[list[Union[str, Exception]]] = None) -> None:
        self.responses = list(responses or [])
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            return "generated text"
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    """A throwaway RSA key for signing app JWTs."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def github_settings(private_key_pem: str) -> GitHubSettings:
    return GitHubSettings(
        app_id=12345,
        app_private_key=private_key_pem,
        app_name=APP_NAME,
        webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture
def settings(github_settings: GitHubSettings, tmp_path) -> Settings:
    """Complete settings without touching the environment."""
    return Settings(
        app_env="staging",
        github=github_settings,
        gemini=GeminiSettings(api_key="gemini-test-key"),
        workflow=WorkflowSettings(workspace_root=str(tmp_path / "workspaces")),
    )


@pytest.fixture
def repository() -> Repository:
    return Repository(owner="octo", name="app", default_branch="main")


@pytest.fixture
def issue() -> Issue:
    return Issue(
        number=42,
        title="Add dark mode",
        body="Files: ui/theme.ts\nPlease add a dark theme toggle.",
    )


@pytest.fixture
def opened_trigger(issue: Issue, repository: Repository) -> IssueOpened:
    return IssueOpened(issue=issue, repository=repository, installation_id=7)


@pytest.fixture
def make_comment_trigger(issue: Issue, repository: Repository):
    """Factory for comment triggers on the sample issue."""

    def _make(body: str, issue_number: Optional[int] = None) -> CommentCreated:
        target = issue if issue_number is None else Issue(number=issue_number, title=issue.title, body=issue.body)
        return CommentCreated(issue=target, repository=repository, installation_id=7, comment_body=body)

    return _make


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def container(settings: Settings) -> ServiceContainer:
    """A fully wired container; nothing in it talks to the network at build time."""
    container = ServiceContainer(settings)
    container.initialize()
    return container


@pytest.fixture
async def async_client(settings: Settings, container: ServiceContainer) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    app = create_app(settings=settings, container=container)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
