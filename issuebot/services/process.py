"""
Async subprocess execution with combined output capture.
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from issuebot.core.exceptions import CommandError
from issuebot.core.logging import get_logger
from issuebot.core.security import redact

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of a finished process."""

    args: list[str]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command(
    args: Sequence[str],
    cwd: Optional[Path] = None,
    env: Optional[dict[str, str]] = None,
    timeout: int = 600,
    secrets: Sequence[str] = (),
    check: bool = True,
) -> CommandResult:
    """
    Run a process to completion, stdout and stderr interleaved.

    Args:
        args: Program and arguments
        cwd: Working directory
        env: Extra environment variables, merged over the current environment
        timeout: Seconds before the process is killed
        secrets: Values scrubbed from logged command lines and output
        check: Raise on non-zero exit

    Returns:
        CommandResult with the decoded, redacted output

    Raises:
        CommandError: On non-zero exit (when check is set), timeout, or
            when the program cannot be started
    """
    argv = list(args)
    display = redact(" ".join(argv), *secrets)

    run_env = os.environ.copy()
    if env:
        run_env.update(env)
    # Never block on a credential prompt
    run_env["GIT_TERMINAL_PROMPT"] = "0"

    logger.info("Executing command", command=display, cwd=str(cwd) if cwd else None)

    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=cwd,
            env=run_env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.error("Command could not be started", command=display, error=str(e))
        raise CommandError(argv[:1], None, str(e), message=f"Could not start '{argv[0]}': {e}") from e

    chunks: list[bytes] = []

    async def _collect() -> None:
        while True:
            chunk = await process.stdout.read(65536)
            if not chunk:
                break
            chunks.append(chunk)
        await process.wait()

    try:
        await asyncio.wait_for(_collect(), timeout=timeout)
    except asyncio.TimeoutError as e:
        partial = _decode(chunks, secrets)
        logger.error("Command timed out", command=display, timeout=timeout, output=partial)
        raise CommandError(
            argv[:1], None, partial, message=f"'{argv[0]}' timed out after {timeout}s"
        ) from e
    finally:
        # Also reached on cancellation; the child must not outlive the caller
        if process.returncode is None:
            process.kill()
            await process.wait()

    output = _decode(chunks, secrets)
    result = CommandResult(args=argv, returncode=process.returncode, output=output)

    if not result.ok:
        logger.warning(
            "Command failed",
            command=display,
            returncode=result.returncode,
            output=output,
        )
        if check:
            raise CommandError(argv[:1], result.returncode, output)
    else:
        logger.debug("Command succeeded", command=display, output=output)

    return result


def _decode(chunks: Sequence[bytes], secrets: Sequence[str]) -> str:
    return redact(b"".join(chunks).decode("utf-8", errors="replace").strip(), *secrets)
