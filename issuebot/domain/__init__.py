"""
Domain models: triggers and the artifacts the bot publishes.
"""

from issuebot.domain.artifacts import ChecklistArtifact, FeatureRequest, PRDArtifact, find_prd_comment
from issuebot.domain.trigger import (
    BaseTrigger,
    Comment,
    CommentCreated,
    Issue,
    IssueLabeled,
    IssueOpened,
    Repository,
    Trigger,
)

__all__ = [
    "BaseTrigger",
    "ChecklistArtifact",
    "Comment",
    "CommentCreated",
    "FeatureRequest",
    "Issue",
    "IssueLabeled",
    "IssueOpened",
    "PRDArtifact",
    "Repository",
    "Trigger",
    "find_prd_comment",
]
