"""
Custom exceptions used across Python Autofix Pro.

Component-level operations raise these typed failures; only the event
orchestrator catches broadly and turns them into user-visible output.
"""

from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from .utils import CommandResult


class AutofixProError(Exception):
    """Base class for all Python Autofix Pro failures."""

    pass


class ConfigurationError(AutofixProError):
    """Raised when required settings are missing or invalid."""

    pass


class InvalidPayloadError(AutofixProError):
    """Raised when an inbound payload lacks required pull request fields."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Payload missing required fields: {', '.join(self.missing)}")


class CommandFailedError(AutofixProError):
    """Raised by the command executor when a checked command exits non-zero."""

    def __init__(self, command_display: str, result: "CommandResult"):
        self.command_display = command_display
        self.result = result
        super().__init__(f"Command failed: {command_display}.")


class ToolUnavailableError(AutofixProError):
    """Raised when the formatter/linter cannot be resolved on this host."""

    pass


class FormatFailedError(AutofixProError):
    """Raised when ``ruff format`` exits non-zero (usually a syntax error)."""

    def __init__(self, message: str = "ruff format failed."):
        super().__init__(message)


class CheckRunSetupError(AutofixProError):
    """Raised when a check run could not be opened."""

    def __init__(self, name: str, status: Optional[int] = None, detail: str = ""):
        self.name = name
        self.status = status
        self.detail = detail
        message = f"Failed to create check run {name}"
        if status is not None:
            message += f" (status {status})"
        super().__init__(message)


class AutofixError(AutofixProError):
    """Raised by the autofix pipeline when a fatal stage fails.

    Carries the log lines gathered so far and the stage that failed.
    """

    def __init__(self, message: str, logs: List[str], stage: str):
        super().__init__(message)
        self.logs = logs
        self.stage = stage
