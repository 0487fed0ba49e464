"""Git operations client for the feature workflow."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from issuebot.core.logging import get_logger
from issuebot.services.process import CommandResult, run_command

logger = get_logger(__name__)


def authenticated_url(web_url: str, owner: str, name: str, token: Optional[str] = None) -> str:
    """Build an HTTPS clone URL, embedding an installation token if given."""
    scheme, _, host = web_url.rstrip("/").partition("://")
    if token:
        host = f"x-access-token:{token}@{host}"
    return f"{scheme}://{host}/{owner}/{name}.git"


class GitClient:
    """Git operations client using subprocess.

    Every method raises CommandError when git exits non-zero.
    """

    def __init__(self, timeout: int = 600):
        """Initialize Git client.

        Args:
            timeout: Timeout for each git invocation in seconds.
        """
        self.timeout = timeout

    async def _run_git(self, *args: str, cwd: Path, secret: Optional[str] = None) -> CommandResult:
        return await run_command(
            ["git", *args],
            cwd=cwd,
            timeout=self.timeout,
            secrets=(secret,) if secret else (),
        )

    async def clone(self, url: str, destination: Path, token: Optional[str] = None) -> None:
        """Clone ``url`` into ``destination`` (which must already exist)."""
        await self._run_git("clone", url, ".", cwd=destination, secret=token)
        logger.info("Cloned repository", destination=str(destination))

    async def set_remote_url(self, repo_path: Path, url: str, remote: str = "origin") -> None:
        await self._run_git("remote", "set-url", remote, url, cwd=repo_path)

    async def create_branch(self, repo_path: Path, branch: str) -> None:
        await self._run_git("checkout", "-b", branch, cwd=repo_path)

    async def configure_identity(self, repo_path: Path, name: str, email: str) -> None:
        await self._run_git("config", "user.name", name, cwd=repo_path)
        await self._run_git("config", "user.email", email, cwd=repo_path)

    async def add_all(self, repo_path: Path) -> None:
        await self._run_git("add", ".", cwd=repo_path)

    async def commit(self, repo_path: Path, message: str) -> None:
        await self._run_git("commit", "-m", message, cwd=repo_path)

    async def push(self, repo_path: Path, url: str, branch: str, token: Optional[str] = None) -> None:
        """Push ``branch`` to ``url`` without storing the URL as a remote."""
        await self._run_git("push", url, f"{branch}:{branch}", cwd=repo_path, secret=token)
        logger.info("Pushed branch", branch=branch)
