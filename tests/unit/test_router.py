"""
Unit tests for the command router.
"""

from typing import Any

import pytest

from issuebot.core.config import GitHubSettings
from issuebot.core.constants import Command
from issuebot.core.exceptions import InvalidEventError
from issuebot.domain.trigger import CommentCreated, IssueLabeled, IssueOpened
from issuebot.orchestration.router import CommandRouter


def _payload(action: str, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "action": action,
        "issue": {"number": 42, "title": "Add dark mode", "body": None},
        "repository": {"name": "app", "owner": {"login": "octo"}, "default_branch": "develop"},
        "installation": {"id": 7},
    }
    payload.update(extra)
    return payload


@pytest.fixture
def router(github_settings: GitHubSettings) -> CommandRouter:
    return CommandRouter(github_settings)


class TestParseEvent:
    """Tests for turning webhook deliveries into triggers."""

    def test_issue_opened(self, router: CommandRouter) -> None:
        trigger = router.parse_event("issues", _payload("opened"))

        assert isinstance(trigger, IssueOpened)
        assert trigger.issue.number == 42
        assert trigger.issue.body == ""
        assert trigger.repository.full_name == "octo/app"
        assert trigger.repository.default_branch == "develop"
        assert trigger.installation_id == 7
        assert trigger.issue_key == "octo/app#42"

    def test_comment_created(self, router: CommandRouter) -> None:
        payload = _payload("created", comment={"body": "@issuebot-app need_prd", "user": {"login": "alice"}})

        trigger = router.parse_event("issue_comment", payload)

        assert isinstance(trigger, CommentCreated)
        assert trigger.comment_body == "@issuebot-app need_prd"

    def test_ignores_own_comments(self, router: CommandRouter) -> None:
        payload = _payload(
            "created",
            comment={"body": "@issuebot-app need_prd", "user": {"login": "issuebot-app[bot]"}},
        )

        assert router.parse_event("issue_comment", payload) is None

    @pytest.mark.parametrize(
        "event,action",
        [("issues", "closed"), ("issue_comment", "edited"), ("push", None), ("pull_request", "opened")],
    )
    def test_irrelevant_events(self, router: CommandRouter, event: str, action: str) -> None:
        assert router.parse_event(event, _payload(action)) is None

    def test_labels_ignored_by_default(self, router: CommandRouter) -> None:
        payload = _payload("labeled", label={"name": "need_prd"})

        assert router.parse_event("issues", payload) is None

    def test_labels_when_enabled(self, github_settings: GitHubSettings) -> None:
        router = CommandRouter(github_settings, enable_label_triggers=True)

        trigger = router.parse_event("issues", _payload("labeled", label={"name": "need_sub_task"}))

        assert isinstance(trigger, IssueLabeled)
        assert trigger.label == "need_sub_task"

    def test_missing_installation(self, router: CommandRouter) -> None:
        payload = _payload("opened")
        del payload["installation"]

        with pytest.raises(InvalidEventError):
            router.parse_event("issues", payload)

    def test_malformed_issue(self, router: CommandRouter) -> None:
        payload = _payload("opened", issue={"title": "no number"})

        with pytest.raises(InvalidEventError) as exc_info:
            router.parse_event("issues", payload)
        assert exc_info.value.status_code == 400


class TestParse:
    """Tests for resolving commands from triggers."""

    def test_issue_opened_always_needs_prd(self, router: CommandRouter, opened_trigger: IssueOpened) -> None:
        assert router.parse(opened_trigger) == Command.NEED_PRD

    @pytest.mark.parametrize(
        "body,expected",
        [
            ("@issuebot-app need_prd", Command.NEED_PRD),
            ("  @issuebot-app   need_sub_task  ", Command.NEED_SUB_TASK),
            ("@issuebot-app implement_feature please", Command.IMPLEMENT_FEATURE),
            ("@issuebot-app need_prd extra text", Command.NEED_PRD),
            ("@issuebot-app", None),
            ("@issuebot-app do_something", None),
            ("@IssueBot-App need_prd", None),
            ("@other-bot need_prd", None),
            ("please @issuebot-app need_prd", None),
            ("", None),
        ],
    )
    def test_comment_commands(self, router: CommandRouter, make_comment_trigger, body: str, expected) -> None:
        assert router.parse(make_comment_trigger(body)) == expected

    def test_label_commands(self, router: CommandRouter, opened_trigger: IssueOpened) -> None:
        labeled = IssueLabeled(
            issue=opened_trigger.issue,
            repository=opened_trigger.repository,
            installation_id=7,
            label="implement_feature",
        )
        unrelated = labeled.model_copy(update={"label": "bug"})

        assert router.parse(labeled) == Command.IMPLEMENT_FEATURE
        assert router.parse(unrelated) is None

    def test_mention_comes_from_settings(self, make_comment_trigger) -> None:
        github = GitHubSettings(app_id=1, app_private_key="key", app_name="@other-bot", webhook_secret="s")
        router = CommandRouter(github)

        assert router.mention == "@other-bot"
        assert router.bot_login == "other-bot[bot]"
        assert router.parse(make_comment_trigger("@other-bot need_prd")) == Command.NEED_PRD
        assert router.parse(make_comment_trigger("@issuebot-app need_prd")) is None
