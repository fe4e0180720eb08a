"""Inbound webhook events.

Events are parsed once at the boundary into a closed set of models; business
logic only ever sees :class:`PullRequestContext`, never the raw payload.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import InvalidPayloadError
from .models import PullRequestContext

SUPPORTED_PULL_REQUEST_ACTIONS = frozenset({"opened", "synchronize", "reopened", "ready_for_review"})


class _PayloadModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Account(_PayloadModel):
    login: Optional[str] = None
    id: Optional[int] = None


class RepositoryRef(_PayloadModel):
    name: Optional[str] = None
    full_name: Optional[str] = None
    owner: Optional[Account] = None


class HeadRef(_PayloadModel):
    sha: Optional[str] = None
    ref: Optional[str] = None
    repo: Optional[RepositoryRef] = None


class PullRequestRef(_PayloadModel):
    number: Optional[int] = None
    html_url: Optional[str] = None
    head: Optional[HeadRef] = None


class Installation(_PayloadModel):
    id: Optional[int] = None


class PullRequestEvent(_PayloadModel):
    kind: Literal["pull_request"] = "pull_request"
    action: Optional[str] = None
    repository: Optional[RepositoryRef] = None
    pull_request: Optional[PullRequestRef] = None
    installation: Optional[Installation] = None

    @property
    def installation_id(self) -> Optional[int]:
        return self.installation.id if self.installation else None


class CheckSuiteEvent(_PayloadModel):
    kind: Literal["check_suite"] = "check_suite"
    action: Optional[str] = None
    repository: Optional[RepositoryRef] = None
    installation: Optional[Installation] = None
    check_suite: Optional[Dict[str, Any]] = None


class UnsupportedEvent(_PayloadModel):
    kind: str
    action: Optional[str] = None


WebhookEvent = Union[PullRequestEvent, CheckSuiteEvent, UnsupportedEvent]


def parse_event(event_type: Optional[str], payload: Dict[str, Any]) -> WebhookEvent:
    """Parse a validated webhook delivery into one of the known event kinds.

    Raises:
        InvalidPayloadError: If a known event kind has fields of the wrong type.
    """
    model: Any
    if event_type == "pull_request":
        model = PullRequestEvent
    elif event_type == "check_suite":
        model = CheckSuiteEvent
    else:
        action = payload.get("action") if isinstance(payload, dict) else None
        return UnsupportedEvent(kind=event_type or "unknown", action=action if isinstance(action, str) else None)

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        locations = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
        raise InvalidPayloadError(locations) from e


def extract_pull_request_context(event: PullRequestEvent) -> PullRequestContext:
    """Build the immutable context for a pull request event.

    Raises:
        InvalidPayloadError: Listing every required field that is absent.
    """
    repository = event.repository or RepositoryRef()
    owner = repository.owner.login if repository.owner else None
    pull_request = event.pull_request or PullRequestRef()
    head = pull_request.head or HeadRef()
    head_repo_full_name = head.repo.full_name if head.repo else None

    fields = {
        "repository.owner.login": owner,
        "repository.name": repository.name,
        "pull_request.number": pull_request.number,
        "pull_request.head.sha": head.sha,
        "pull_request.head.ref": head.ref,
        "pull_request.head.repo.full_name": head_repo_full_name,
        "pull_request.html_url": pull_request.html_url,
    }
    missing: List[str] = [name for name, value in fields.items() if not value]
    if missing:
        raise InvalidPayloadError(missing)

    return PullRequestContext(
        owner=owner,  # type: ignore[arg-type]
        repo=repository.name,  # type: ignore[arg-type]
        pull_number=pull_request.number,  # type: ignore[arg-type]
        head_sha=head.sha,  # type: ignore[arg-type]
        head_ref=head.ref,  # type: ignore[arg-type]
        head_repo_full_name=head_repo_full_name,  # type: ignore[arg-type]
        html_url=pull_request.html_url,  # type: ignore[arg-type]
    )


def contains_target_changes(files: List[str], suffix: str = ".py") -> bool:
    """Return True when any changed file has the target-language suffix."""
    return any(name.endswith(suffix) for name in files)
