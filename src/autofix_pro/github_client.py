"""
GitHub API client for Python Autofix Pro.

Thin wrapper over PyGithub covering exactly the REST operations the autofix
service needs.  All methods are synchronous; async callers run them on the
default executor.
"""

from typing import Any, Dict, List, Optional

from github import Auth, Github, GithubIntegration
from github.GithubException import GithubException
from github.Issue import Issue
from github.Repository import Repository

from .logger_config import get_logger

logger = get_logger(__name__)


class GitHubAppAuth:
    """GitHub App credentials used to mint installation-scoped tokens."""

    def __init__(self, app_id: int, private_key: str, base_url: str = "https://api.github.com"):
        self.app_id = app_id
        self.integration = GithubIntegration(auth=Auth.AppAuth(app_id, private_key), base_url=base_url)

    def get_installation_token(self, installation_id: int) -> str:
        """Create a short-lived access token for one installation."""
        try:
            authorization = self.integration.get_access_token(installation_id)
            logger.debug(f"Created installation token for installation {installation_id}")
            return authorization.token
        except GithubException as e:
            logger.error(f"Failed to create installation token for installation {installation_id}: status={e.status}")
            raise


class GitHubClient:
    """GitHub REST client bound to one installation token."""

    def __init__(self, token: str, base_url: str = "https://api.github.com"):
        """Initialize GitHub client with an installation access token.

        Args:
            token: Installation access token
            base_url: REST API root
        """
        self.token = token
        self.github = Github(auth=Auth.Token(token), base_url=base_url)

    def get_repository(self, owner: str, repo: str) -> Repository:
        """Get repository object by owner and name."""
        try:
            return self.github.get_repo(f"{owner}/{repo}")
        except GithubException as e:
            logger.error(f"Failed to get repository {owner}/{repo}: status={e.status}")
            raise

    def create_check_run(
        self,
        owner: str,
        repo: str,
        name: str,
        head_sha: str,
        status: str,
        output: Dict[str, str],
        conclusion: Optional[str] = None,
    ) -> int:
        """Create a check run and return its id."""
        kwargs: Dict[str, Any] = {"status": status, "output": output}
        if conclusion is not None:
            kwargs["conclusion"] = conclusion
        try:
            check_run = self.get_repository(owner, repo).create_check_run(name=name, head_sha=head_sha, **kwargs)
            logger.info(f"Created check run {name} ({check_run.id}) for {head_sha[:8]}")
            return check_run.id
        except GithubException as e:
            logger.error(f"Failed to create check run {name} for {head_sha[:8]}: status={e.status} data={e.data}")
            raise

    def update_check_run(self, owner: str, repo: str, check_run_id: int, conclusion: str, output: Dict[str, str]) -> None:
        """Complete a check run with the given conclusion."""
        try:
            check_run = self.get_repository(owner, repo).get_check_run(check_run_id)
            check_run.edit(status="completed", conclusion=conclusion, output=output)
            logger.info(f"Completed check run {check_run_id} with conclusion {conclusion}")
        except GithubException as e:
            logger.error(f"Failed to complete check run {check_run_id}: status={e.status}")
            raise

    def list_pull_request_files(self, owner: str, repo: str, pull_number: int) -> List[str]:
        """Return the file names changed by a pull request (all pages)."""
        try:
            pr = self.get_repository(owner, repo).get_pull(pull_number)
            return [f.filename for f in pr.get_files()]
        except GithubException as e:
            logger.error(f"Failed to list files for PR #{pull_number}: status={e.status}")
            raise

    def list_open_issues(self, owner: str, repo: str) -> List[Issue]:
        """Return open issues, excluding pull requests."""
        try:
            issues = self.get_repository(owner, repo).get_issues(state="open")
            return [issue for issue in issues if issue.pull_request is None]
        except GithubException as e:
            logger.error(f"Failed to list issues for {owner}/{repo}: status={e.status}")
            raise

    def update_issue_body(self, owner: str, repo: str, issue_number: int, body: str) -> None:
        try:
            issue = self.get_repository(owner, repo).get_issue(issue_number)
            issue.edit(body=body)
            logger.info(f"Updated body of issue #{issue_number}")
        except GithubException as e:
            logger.error(f"Failed to update issue #{issue_number}: status={e.status}")
            raise

    def create_pr_comment(self, owner: str, repo: str, pull_number: int, body: str) -> None:
        """Add a comment to the pull request's issue thread."""
        try:
            issue = self.get_repository(owner, repo).get_issue(pull_number)
            issue.create_comment(body)
            logger.info(f"Added comment to PR #{pull_number}")
        except GithubException as e:
            logger.error(f"Failed to add comment to PR #{pull_number}: status={e.status}")
            raise

    def get_permission_level(self, owner: str, repo: str, login: str) -> str:
        """Return ``admin``, ``write``, ``read`` or ``none`` for a user."""
        try:
            return self.get_repository(owner, repo).get_collaborator_permission(login)
        except GithubException as e:
            logger.warning(f"Failed to look up permission for {login} on {owner}/{repo}: status={e.status}")
            raise
