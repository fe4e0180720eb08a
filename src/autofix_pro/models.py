"""Data model shared by the autofix components."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

CHECK_TITLE = "Python Autofix Pro"
TARGET_SUFFIX = ".py"


class CheckRunName(str, Enum):
    """The two check runs opened for every processed event."""

    PRIMARY = "CI/check"
    AUTOFIX = "CI/autofix"


class InstallationPlan(str, Enum):
    FREE = "free"
    PRO = "pro"


@dataclass(frozen=True)
class PullRequestContext:
    """Immutable snapshot of the pull request an event refers to."""

    owner: str
    repo: str
    pull_number: int
    head_sha: str
    head_ref: str
    head_repo_full_name: str
    html_url: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def dedup_key(self) -> str:
        return f"{self.owner}/{self.repo}#{self.pull_number}"


@dataclass(frozen=True)
class CheckOutput:
    title: str
    summary: str
    text: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "summary": self.summary, "text": self.text}


@dataclass(frozen=True)
class EnablerAttribution:
    """The user recorded as having enabled unsafe fixes."""

    login: str
    id: int

    def to_dict(self) -> Dict[str, Any]:
        return {"login": self.login, "id": self.id}


@dataclass(frozen=True)
class RepoSettings:
    """Repository settings stored as JSON in the settings issue body."""

    enable_unsafe_fixes: bool = False
    unsafe_fixes_enabled_by: Optional[EnablerAttribution] = None
    unsafe_fixes_enabled_at: Optional[datetime] = None


@dataclass(frozen=True)
class UnsafeFixDecision:
    """Outcome of the authorization check for one repository."""

    requested: bool
    admin_verified: bool = False
    skip_reason: Optional[str] = None


@dataclass(frozen=True)
class AutofixResult:
    check_conclusion: str
    autofix_conclusion: str
    summary: str
    details: str
    applied_fixes: bool
    unsafe_fixes_used: bool = False
    hidden_fixes_available: bool = False


@dataclass
class UsageRecord:
    """One usage record per inbound event, emitted however the event ended."""

    action: str
    repo: Optional[str] = None
    pull_number: Optional[int] = None
    head_sha: Optional[str] = None
    installation_id: Optional[int] = None
    plan: Optional[str] = None
    outcome: str = "received"
    unsafe_fixes_used: bool = False
    applied_fixes: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)
