"""
Security utilities for Python Autofix Pro.

Tokens end up in remote URLs and in error messages raised by git; everything
that is logged or shown to users passes through :func:`redact_string` first.
"""

import re
from typing import List

# Patterns for sensitive data redaction
REDACTION_PATTERNS = [
    r"gh[pousr]_[a-zA-Z0-9]+",  # GitHub tokens
    r"github_pat_[a-zA-Z0-9_]+",  # GitHub PATs
    r"v1\.[0-9a-f]{40}",  # Legacy installation tokens
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----[\s\S]*?-----END [A-Z ]*PRIVATE KEY-----",  # App private keys
]

# Credentials embedded in clone URLs: https://x-access-token:<token>@github.com/...
_URL_CREDENTIALS = re.compile(r"(https?://)[^/\s:@]+:[^/\s@]+@")


def redact_string(text: str) -> str:
    """
    Redact sensitive information from a string.

    Args:
        text: String to redact

    Returns:
        Redacted string
    """
    if not text:
        return text

    redacted = _URL_CREDENTIALS.sub(r"\1[REDACTED]@", text)
    for pattern in REDACTION_PATTERNS:
        redacted = re.sub(pattern, "[REDACTED]", redacted)
    return redacted


def redact_command(cmd: List[str]) -> List[str]:
    """Return a copy of ``cmd`` with every argument redacted."""
    return [redact_string(part) for part in cmd]
