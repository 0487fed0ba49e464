"""
Issue tracker capability surface used by the workflows.
"""

from abc import ABC, abstractmethod
from typing import Any

from issuebot.domain.trigger import Comment


class IssueTrackerGateway(ABC):
    """
    Narrow capability set over one repository of the issue tracker.

    A gateway is built per workflow run and bound to that run's repository
    and installation credential.
    """

    @abstractmethod
    async def get_repository_file(self, path: str) -> bytes:
        """Fetch a file from the repository's default branch."""
        ...

    @abstractmethod
    async def list_comments(self, issue_number: int) -> list[Comment]:
        """List every comment on an issue, oldest first."""
        ...

    @abstractmethod
    async def create_comment(self, issue_number: int, body: str) -> None:
        """Post a comment on an issue."""
        ...

    @abstractmethod
    async def create_pull_request(self, head: str, base: str, title: str, body: str) -> str:
        """Open a pull request and return its HTML URL."""
        ...

    async def close(self) -> None:
        """Release any held connections."""

    async def __aenter__(self) -> "IssueTrackerGateway":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
