"""
Classification of failures caught at the orchestrator boundary.

Every failure becomes a fixed, user-facing reason plus a remediation hint.
Underlying messages are only ever shown after credential redaction.
"""

from dataclasses import dataclass
from typing import Optional

from .exceptions import AutofixError, CheckRunSetupError, FormatFailedError, ToolUnavailableError
from .security_utils import redact_string

GENERIC_REASON = "Autofix failed unexpectedly."

STATUS_REASONS = {
    403: (
        "GitHub App lacks permission for this operation.",
        "Grant the app Checks, Contents, Issues and Pull requests write access, then re-run.",
    ),
    404: (
        "Repository or pull request not found (or not accessible to this installation).",
        "Make sure the app is installed on this repository and the head branch still exists.",
    ),
    422: (
        "GitHub rejected the request as invalid.",
        "The head commit or branch may have changed while autofix was running; push again to retry.",
    ),
}


@dataclass(frozen=True)
class ErrorClassification:
    reason: str
    hint: str
    details: str
    status: Optional[int] = None

    @property
    def message(self) -> str:
        return f"{self.reason} {self.hint}"


def _status_of(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def _root_cause(exc: BaseException) -> BaseException:
    # AutofixError wraps the stage failure that actually matters
    if isinstance(exc, AutofixError) and exc.__cause__ is not None:
        return exc.__cause__
    return exc


def classify_error(exc: BaseException, troubleshooting_url: str) -> ErrorClassification:
    """Map a failure to a reason string and remediation hint."""
    cause = _root_cause(exc)
    details = redact_string(str(exc)) or type(exc).__name__
    if isinstance(exc, AutofixError) and exc.logs:
        details = redact_string("\n".join(exc.logs))

    if isinstance(cause, CheckRunSetupError):
        return ErrorClassification(
            reason="Could not create check runs.",
            hint=f"See {troubleshooting_url} for required app permissions.",
            details=details,
            status=cause.status,
        )

    status = _status_of(cause)
    if status in STATUS_REASONS:
        reason, hint = STATUS_REASONS[status]
        return ErrorClassification(reason=reason, hint=hint, details=details, status=status)

    if isinstance(cause, ToolUnavailableError):
        return ErrorClassification(
            reason="ruff is not available on the autofix server.",
            hint="This is a server configuration problem; no changes were made to your branch.",
            details=details,
        )

    if isinstance(cause, FormatFailedError):
        return ErrorClassification(
            reason="ruff format failed.",
            hint="This usually means a file in the pull request has a syntax error.",
            details=details,
        )

    return ErrorClassification(
        reason=GENERIC_REASON,
        hint=f"See {troubleshooting_url} for troubleshooting.",
        details=details,
    )
