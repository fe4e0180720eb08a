"""Pull request comments and their per-head-commit deduplication."""

import threading
from typing import Dict, Optional

from .models import CHECK_TITLE, PullRequestContext


class CommentLedger:
    """Remembers the last head commit a comment was posted for, per pull request.

    In-memory and per process only.  Constructed once at startup and injected
    into the orchestrator.
    """

    def __init__(self) -> None:
        self._last_commented: Dict[str, str] = {}
        self._lock = threading.Lock()

    def claim(self, context: PullRequestContext) -> bool:
        """Reserve the (pull request, head commit) pair.

        Returns False when a comment was already claimed for this pair.
        """
        with self._lock:
            if self._last_commented.get(context.dedup_key) == context.head_sha:
                return False
            self._last_commented[context.dedup_key] = context.head_sha
            return True

    def release(self, context: PullRequestContext) -> None:
        """Drop a claim whose comment could not be posted."""
        with self._lock:
            if self._last_commented.get(context.dedup_key) == context.head_sha:
                del self._last_commented[context.dedup_key]


def _docs_line(docs_url: Optional[str]) -> str:
    return f"\n\nDocs: {docs_url}" if docs_url else ""


def build_result_comment(summary: str, html_url: str, docs_url: Optional[str] = None) -> str:
    return f"### {CHECK_TITLE}\n\n{summary}\n\nPR: {html_url}{_docs_line(docs_url)}"


def build_error_comment(message: str, docs_url: Optional[str] = None) -> str:
    return f"### {CHECK_TITLE}\n\n{message}{_docs_line(docs_url)}"
