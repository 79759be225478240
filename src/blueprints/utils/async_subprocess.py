"""Async subprocess utilities for non-blocking command execution.

Helm and kubectl calls go through :func:`run_command` so that readiness
gates and concurrently running units keep making progress while a CLI
is busy.
"""

import asyncio
import logging
from dataclasses import dataclass

from blueprints.utils.errors import CommandTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of a finished command.

    Mirrors the attributes of subprocess.CompletedProcess that callers use.
    """

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """True when the command exited with status 0."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Best error text: stderr, falling back to stdout."""
        return (self.stderr or self.stdout).strip()


async def run_command(
    cmd: list[str],
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run a command without blocking the event loop.

    Args:
        cmd: Command and arguments as a list
        env: Optional environment for the child process
        timeout: Optional timeout in seconds

    Returns:
        CommandResult with returncode, stdout and stderr

    Raises:
        CommandTimeoutError: If the command does not finish within timeout
        FileNotFoundError: If the executable does not exist
    """
    logger.debug(f"Running command: {' '.join(cmd)}")

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=env,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError as e:
        process.kill()
        await process.wait()
        logger.error(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        raise CommandTimeoutError(f"{cmd[0]} timed out after {timeout} seconds") from e

    result = CommandResult(
        args=list(cmd),
        returncode=process.returncode or 0,
        stdout=stdout_bytes.decode("utf-8") if stdout_bytes else "",
        stderr=stderr_bytes.decode("utf-8") if stderr_bytes else "",
    )
    logger.debug(f"Command completed: returncode={result.returncode}")
    return result
