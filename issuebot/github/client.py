"""
GitHub REST implementation of the issue tracker gateway.
"""

import base64
from typing import Any, Optional

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from issuebot.core.config import GitHubSettings
from issuebot.core.constants import COMMENTS_PAGE_SIZE, GITHUB_API_VERSION
from issuebot.core.exceptions import GitHubAPIError
from issuebot.core.logging import get_logger
from issuebot.domain.trigger import BaseTrigger, Comment, Repository
from issuebot.github.auth import InstallationAuthenticator
from issuebot.github.base import IssueTrackerGateway

logger = get_logger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, GitHubAPIError) and exc.retryable


class GitHubClient(IssueTrackerGateway):
    """
    Gateway bound to one repository and one installation token.

    Only reads are retried; comment and pull request creation are not
    idempotent and fail fast.
    """

    def __init__(
        self,
        repository: Repository,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the GitHub client.

        Args:
            repository: Repository all calls are scoped to
            token: Installation access token
            api_url: REST API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.repository = repository
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
        )

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.repository.owner}/{self.repository.name}"

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """
        Make an HTTP request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails or returns an error status
        """
        try:
            response = await self._client.request(
                method=method,
                url=endpoint,
                json=data,
                params=params,
            )
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            logger.error(
                "GitHub request failed",
                method=method,
                endpoint=endpoint,
                status_code=e.response.status_code,
            )
            raise GitHubAPIError(
                message=f"HTTP {e.response.status_code}: {e.response.text}",
                upstream_status=e.response.status_code,
                endpoint=endpoint,
            ) from e

        except httpx.RequestError as e:
            logger.error(
                "GitHub request error",
                method=method,
                endpoint=endpoint,
                error=str(e),
            )
            raise GitHubAPIError(
                message=f"Request failed: {str(e)}",
                endpoint=endpoint,
            ) from e

    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _get(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        """Make a GET request."""
        return await self._request("GET", endpoint, params=params)

    async def _post(self, endpoint: str, data: dict[str, Any]) -> httpx.Response:
        """Make a POST request."""
        return await self._request("POST", endpoint, data=data)

    async def get_repository_file(self, path: str) -> bytes:
        response = await self._get(f"{self._repo_path}/contents/{path.lstrip('/')}")
        payload = response.json()
        if isinstance(payload, list) or payload.get("type") != "file":
            raise GitHubAPIError(message=f"'{path}' is not a file", endpoint=path)
        if payload.get("encoding") == "base64":
            return base64.b64decode(payload.get("content", ""))
        return (payload.get("content") or "").encode("utf-8")

    async def list_comments(self, issue_number: int) -> list[Comment]:
        endpoint = f"{self._repo_path}/issues/{issue_number}/comments"
        comments: list[Comment] = []
        page = 1
        while True:
            response = await self._get(endpoint, params={"per_page": COMMENTS_PAGE_SIZE, "page": page})
            batch = response.json()
            for item in batch:
                comments.append(
                    Comment(
                        id=item["id"],
                        body=item.get("body"),
                        author=(item.get("user") or {}).get("login"),
                        created_at=item.get("created_at"),
                    )
                )
            if len(batch) < COMMENTS_PAGE_SIZE:
                break
            page += 1

        logger.debug("Listed comments", issue=issue_number, count=len(comments))
        return comments

    async def create_comment(self, issue_number: int, body: str) -> None:
        logger.info("Posting comment", issue=issue_number)
        await self._post(f"{self._repo_path}/issues/{issue_number}/comments", {"body": body})
        logger.info("Comment posted", issue=issue_number)

    async def create_pull_request(self, head: str, base: str, title: str, body: str) -> str:
        response = await self._post(
            f"{self._repo_path}/pulls",
            {"title": title, "head": head, "base": base, "body": body},
        )
        url = response.json()["html_url"]
        logger.info("Pull request opened", head=head, base=base, url=url)
        return url


class GitHubGatewayFactory:
    """Builds a gateway for a trigger using a freshly exchanged token."""

    def __init__(
        self,
        authenticator: InstallationAuthenticator,
        settings: GitHubSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.authenticator = authenticator
        self.settings = settings
        self._transport = transport

    async def for_trigger(self, trigger: BaseTrigger) -> GitHubClient:
        token = await self.authenticator.token_for(trigger.installation_id)
        return GitHubClient(
            repository=trigger.repository,
            token=token.token,
            api_url=self.settings.api_url,
            timeout=self.settings.timeout,
            transport=self._transport,
        )
