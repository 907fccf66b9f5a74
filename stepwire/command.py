"""Runs external commands for actions that shell out (docker, system tools)."""

import subprocess
from typing import Optional

from stepwire import config
from stepwire.context import ExecutionContext
from stepwire.exceptions import CommandError, TaskCancelledError
from stepwire.logging_config import get_logger

logger = get_logger("command")


class CommandRunner:
    """Executes a command and returns its trimmed combined output.

    Actions take a runner as a dependency so tests can substitute a mock.
    """

    def run_command(
        self,
        command: str,
        *args: str,
        working_dir: Optional[str] = None,
        ctx: Optional[ExecutionContext] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Raises:
            TaskCancelledError: If ``ctx`` is already cancelled
            CommandError: On non-zero exit, timeout, or missing executable
        """
        if ctx is not None and ctx.cancelled:
            raise TaskCancelledError(f"not running '{command}': context cancelled")
        if timeout is None:
            timeout = config.command_timeout()

        cmd = [command, *args]
        logger.debug(
            f"Running command: {' '.join(cmd)}",
            extra={"command": command, "working_dir": working_dir},
        )
        try:
            completed = subprocess.run(
                cmd,
                cwd=working_dir or None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            output = e.output if isinstance(e.output, str) else ""
            raise CommandError(
                f"command '{command}' timed out after {timeout}s", output=output
            ) from e
        except OSError as e:
            raise CommandError(f"command '{command}' could not be started: {e}") from e

        output = completed.stdout or ""
        if completed.returncode != 0:
            raise CommandError(
                f"command '{' '.join(cmd)}' exited with status {completed.returncode}",
                returncode=completed.returncode,
                output=output,
            )
        return output.strip()
