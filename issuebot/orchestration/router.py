"""
Command routing: webhook events to triggers, triggers to commands.
"""

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from issuebot.core.config import GitHubSettings
from issuebot.core.constants import Command
from issuebot.core.exceptions import InvalidEventError
from issuebot.core.logging import get_logger
from issuebot.domain.trigger import (
    CommentCreated,
    Issue,
    IssueLabeled,
    IssueOpened,
    Repository,
    Trigger,
)

logger = get_logger(__name__)


def _lookup(name: str) -> Optional[Command]:
    try:
        return Command(name)
    except ValueError:
        return None


class CommandRouter:
    """
    Maps GitHub webhook events onto triggers and triggers onto commands.

    Comments address the bot by its exact mention, ``@<app_name> <command>``.
    Anything after the command token is ignored.
    """

    def __init__(self, github: GitHubSettings, enable_label_triggers: bool = False) -> None:
        self.mention = github.mention
        self.bot_login = github.bot_login
        self.enable_label_triggers = enable_label_triggers

    def parse_event(self, event_name: str, payload: dict[str, Any]) -> Optional[Trigger]:
        """
        Build a trigger from a webhook delivery.

        Returns:
            The trigger, or None for events the bot does not act on

        Raises:
            InvalidEventError: If a relevant event lacks issue, repository
                or installation data
        """
        action = payload.get("action") if isinstance(payload, dict) else None

        if event_name == "issues" and action == "opened":
            return IssueOpened(**self._common(event_name, payload))

        if event_name == "issues" and action == "labeled":
            if not self.enable_label_triggers:
                logger.debug("Label triggers disabled, ignoring event")
                return None
            label = (payload.get("label") or {}).get("name")
            if not label:
                raise InvalidEventError("Labeled event has no label name", event=event_name)
            return IssueLabeled(label=label, **self._common(event_name, payload))

        if event_name == "issue_comment" and action == "created":
            comment = payload.get("comment")
            if not isinstance(comment, dict):
                raise InvalidEventError("Comment event has no comment", event=event_name)
            author = (comment.get("user") or {}).get("login")
            if author == self.bot_login:
                logger.debug("Ignoring comment posted by the bot itself")
                return None
            return CommentCreated(
                comment_body=comment.get("body") or "",
                **self._common(event_name, payload),
            )

        return None

    def _common(self, event_name: str, payload: dict[str, Any]) -> dict[str, Any]:
        issue = payload.get("issue")
        repository = payload.get("repository")
        installation = payload.get("installation")
        if not isinstance(issue, dict) or not isinstance(repository, dict) or not isinstance(installation, dict):
            raise InvalidEventError("Event is missing issue, repository or installation", event=event_name)

        try:
            return {
                "issue": Issue(
                    number=issue.get("number"),
                    title=issue.get("title"),
                    body=issue.get("body"),
                ),
                "repository": Repository(
                    owner=(repository.get("owner") or {}).get("login"),
                    name=repository.get("name"),
                    default_branch=repository.get("default_branch") or "main",
                ),
                "installation_id": installation.get("id"),
            }
        except PydanticValidationError as e:
            raise InvalidEventError(f"Malformed event payload: {e.error_count()} invalid field(s)", event=event_name) from e

    def parse(self, trigger: Trigger) -> Optional[Command]:
        """Resolve the command a trigger asks for, or None."""
        if isinstance(trigger, IssueOpened):
            return Command.NEED_PRD

        if isinstance(trigger, IssueLabeled):
            return _lookup(trigger.label)

        if isinstance(trigger, CommentCreated):
            tokens = trigger.comment_body.strip().split()
            if len(tokens) < 2 or tokens[0] != self.mention:
                return None
            return _lookup(tokens[1])

        return None
