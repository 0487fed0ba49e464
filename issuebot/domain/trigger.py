"""
Normalized issue-tracker entities and the triggers built from webhook events.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Repository(BaseModel):
    """Repository an event belongs to."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    default_branch: str = Field(default="main")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class Issue(BaseModel):
    """Issue an event belongs to."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str = ""
    body: str = ""

    @field_validator("title", "body", mode="before")
    @classmethod
    def none_to_empty(cls, v: Optional[str]) -> str:
        return v or ""


class Comment(BaseModel):
    """An issue comment as returned by the tracker."""

    model_config = ConfigDict(frozen=True)

    id: int
    body: str = ""
    author: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("body", mode="before")
    @classmethod
    def none_to_empty(cls, v: Optional[str]) -> str:
        return v or ""


class BaseTrigger(BaseModel):
    """Fields shared by every trigger variant."""

    model_config = ConfigDict(frozen=True)

    issue: Issue
    repository: Repository
    installation_id: int

    @property
    def issue_key(self) -> str:
        """Identity used to serialize work on one issue."""
        return f"{self.repository.full_name}#{self.issue.number}"


class IssueOpened(BaseTrigger):
    """A new issue was opened."""


class CommentCreated(BaseTrigger):
    """A comment was posted on an issue."""

    comment_body: str = ""


class IssueLabeled(BaseTrigger):
    """A label was added to an issue (legacy label-driven front end)."""

    label: str


Trigger = Union[IssueOpened, CommentCreated, IssueLabeled]
