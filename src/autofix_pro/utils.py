"""
Process execution utilities for Python Autofix Pro.
"""

import asyncio
import functools
import shlex
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .config import settings
from .exceptions import CommandFailedError
from .logger_config import get_logger
from .security_utils import redact_command

logger = get_logger(__name__)

T = TypeVar("T")

# Return code reported when the executable itself cannot be found
COMMAND_NOT_FOUND = 127


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str
    stderr: str
    returncode: int

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


class CommandExecutor:
    """Utility class for executing commands with consistent error handling.

    A non-zero exit is reported through :class:`CommandResult` and never
    raised unless the caller passes ``check=True``.
    """

    @staticmethod
    def default_timeout(cmd: List[str]) -> int:
        program = cmd[0] if cmd else ""
        if program == "git":
            return settings.git_timeout
        return settings.command_timeout

    @classmethod
    def run_command(
        cls,
        cmd: List[str],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
        check: bool = False,
    ) -> CommandResult:
        """Run a command and capture its exit code, stdout and stderr."""
        if timeout is None:
            timeout = cls.default_timeout(cmd)

        command_display = shlex.join(redact_command(cmd)) if cmd else ""
        logger.debug(f"Executing command (timeout={timeout}s): {command_display}")

        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=cwd,
                env=env,
            )
            result = CommandResult(
                success=completed.returncode == 0,
                stdout=completed.stdout or "",
                stderr=completed.stderr or "",
                returncode=completed.returncode,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out after {timeout}s: {command_display}")
            result = CommandResult(
                success=False,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
                returncode=-1,
            )
        except FileNotFoundError:
            logger.debug(f"Executable not found: {command_display}")
            result = CommandResult(
                success=False,
                stdout="",
                stderr=f"{cmd[0]}: command not found",
                returncode=COMMAND_NOT_FOUND,
            )

        if check and not result.success:
            raise CommandFailedError(command_display, result)
        return result

    @classmethod
    async def run_command_async(
        cls,
        cmd: List[str],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
        check: bool = False,
    ) -> CommandResult:
        """Run :meth:`run_command` on the default executor."""
        loop = asyncio.get_running_loop()
        call = functools.partial(cls.run_command, cmd, cwd=cwd, env=env, timeout=timeout, check=check)
        return await loop.run_in_executor(None, call)


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking call (PyGithub, filesystem) on the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))
