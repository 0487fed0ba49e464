"""
Patch agents: opaque collaborators that edit files in a working tree.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from issuebot.core.exceptions import CommandError, PatchAgentError
from issuebot.core.logging import get_logger
from issuebot.services.process import run_command

logger = get_logger(__name__)


@dataclass
class PatchResult:
    """What the agent reported back."""

    output: str


class PatchAgent(ABC):
    """Applies an instruction to ``allowed_files`` inside ``working_directory``."""

    @abstractmethod
    async def apply_patch(
        self,
        instruction: str,
        allowed_files: Sequence[str],
        working_directory: Path,
    ) -> PatchResult:
        """
        Raises:
            PatchAgentError: If the agent reports failure
        """
        ...


class CLIPatchAgent(PatchAgent):
    """
    Runs a coding CLI as a subprocess:
    ``<command> <instruction> <args...> <files...>``.

    With the defaults this is ``gemini "<instruction>" -y -a file1 file2``.
    Only the exit status and the combined output are interpreted.
    """

    def __init__(
        self,
        command: str = "gemini",
        args: Sequence[str] = ("-y", "-a"),
        api_key: Optional[str] = None,
        timeout: int = 600,
    ) -> None:
        self.command = command
        self.args = list(args)
        self.timeout = timeout
        self._api_key = api_key

    async def apply_patch(
        self,
        instruction: str,
        allowed_files: Sequence[str],
        working_directory: Path,
    ) -> PatchResult:
        argv = [self.command, instruction, *self.args, *allowed_files]
        env = {"GEMINI_API_KEY": self._api_key} if self._api_key else None

        logger.info("Running patch agent", agent=self.command, files=list(allowed_files))
        try:
            result = await run_command(
                argv,
                cwd=working_directory,
                env=env,
                timeout=self.timeout,
                secrets=(self._api_key,) if self._api_key else (),
            )
        except CommandError as e:
            raise PatchAgentError([self.command], e.returncode, e.output, message=e.message) from e

        return PatchResult(output=result.output)
