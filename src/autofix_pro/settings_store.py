"""
Repository settings stored in a title-matched issue.

The settings record is JSON text in the body of the single open issue titled
``Python Autofix Pro Settings``.  Anything that cannot be parsed falls back to
the all-disabled defaults.  The body is rewritten only to backfill who enabled
unsafe fixes; the enable flag itself is never changed here.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .github_client import GitHubClient
from .logger_config import get_logger
from .models import EnablerAttribution, RepoSettings
from .utils import run_blocking

logger = get_logger(__name__)

SETTINGS_ISSUE_TITLE = "Python Autofix Pro Settings"


@dataclass
class SettingsRecord:
    """Parsed settings together with the issue they were read from."""

    settings: RepoSettings
    issue_number: Optional[int] = None
    issue_author: Optional[EnablerAttribution] = None
    raw: Dict[str, Any] = field(default_factory=dict)


def _parse_enabler(value: Any) -> Optional[EnablerAttribution]:
    if not isinstance(value, dict):
        return None
    login = value.get("login")
    user_id = value.get("id")
    # bool is an int subclass; reject it explicitly
    if not isinstance(login, str) or not login or not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    return EnablerAttribution(login=login, id=user_id)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_settings_body(body: Optional[str]) -> Tuple[RepoSettings, Dict[str, Any]]:
    """Parse an issue body into settings plus the raw JSON object.

    Malformed or absent bodies yield the all-disabled defaults.
    """
    if not body or not body.strip():
        return RepoSettings(), {}
    try:
        parsed = json.loads(body.strip())
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse settings issue JSON; defaulting to disabled: {e}")
        return RepoSettings(), {}
    if not isinstance(parsed, dict):
        logger.warning("Settings issue JSON is not an object; defaulting to disabled")
        return RepoSettings(), {}

    enabled = parsed.get("enableUnsafeFixes")
    return (
        RepoSettings(
            enable_unsafe_fixes=enabled if isinstance(enabled, bool) else False,
            unsafe_fixes_enabled_by=_parse_enabler(parsed.get("unsafeFixesEnabledBy")),
            unsafe_fixes_enabled_at=_parse_timestamp(parsed.get("unsafeFixesEnabledAt")),
        ),
        parsed,
    )


class SettingsStore:
    """Reads and backfills the settings issue of a repository."""

    def __init__(self, client: GitHubClient):
        self.client = client

    async def load(self, owner: str, repo: str) -> SettingsRecord:
        """Read the settings record; failures to read yield the defaults."""
        try:
            issues = await run_blocking(self.client.list_open_issues, owner, repo)
        except Exception as e:
            logger.warning(f"Failed to read settings issue for {owner}/{repo}; defaulting to disabled: {e}")
            return SettingsRecord(settings=RepoSettings())

        issue = next((item for item in issues if item.title == SETTINGS_ISSUE_TITLE), None)
        if issue is None:
            logger.debug(f"No settings issue in {owner}/{repo}")
            return SettingsRecord(settings=RepoSettings())

        repo_settings, raw = parse_settings_body(issue.body)
        author = None
        if issue.user is not None and issue.user.login:
            author = EnablerAttribution(login=issue.user.login, id=issue.user.id)
        return SettingsRecord(settings=repo_settings, issue_number=issue.number, issue_author=author, raw=raw)

    async def backfill_attribution(self, owner: str, repo: str, record: SettingsRecord) -> bool:
        """Record the settings issue author as the enabler of unsafe fixes.

        Only applies when unsafe fixes are enabled, no enabler is recorded and
        the issue author is known.  Unknown keys in the body are preserved.
        Returns True when the issue body was rewritten.
        """
        current = record.settings
        if not current.enable_unsafe_fixes or current.unsafe_fixes_enabled_by is not None:
            return False
        if record.issue_number is None or record.issue_author is None:
            return False

        enabled_at = current.unsafe_fixes_enabled_at or datetime.now(timezone.utc)
        body = dict(record.raw)
        body["unsafeFixesEnabledBy"] = record.issue_author.to_dict()
        body["unsafeFixesEnabledAt"] = enabled_at.isoformat().replace("+00:00", "Z")

        try:
            await run_blocking(self.client.update_issue_body, owner, repo, record.issue_number, json.dumps(body, indent=2))
        except Exception as e:
            logger.warning(f"Failed to backfill unsafe-fix attribution in {owner}/{repo}: {e}")
            return False

        logger.info(f"Backfilled unsafe-fix attribution for {owner}/{repo} to {record.issue_author.login}")
        return True
