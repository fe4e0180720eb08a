"""Check-run lifecycle for one event: open both checks, then finalize them."""

import asyncio
from typing import Dict

from github.GithubException import GithubException

from .exceptions import CheckRunSetupError
from .github_client import GitHubClient
from .logger_config import get_logger
from .models import CHECK_TITLE, CheckOutput, CheckRunName, PullRequestContext
from .utils import run_blocking

logger = get_logger(__name__)

IN_PROGRESS_OUTPUT = CheckOutput(title=CHECK_TITLE, summary="Autofix started.")


class CheckRunLifecycle:
    """Tracks the ids of the check runs opened for one event.

    Opening stops at the first failure.  Finalizing a name that was never
    opened is a logged no-op.
    """

    def __init__(self, client: GitHubClient, context: PullRequestContext):
        self.client = client
        self.context = context
        self.run_ids: Dict[CheckRunName, int] = {}

    async def open(self, name: CheckRunName) -> int:
        try:
            run_id = await run_blocking(
                self.client.create_check_run,
                self.context.owner,
                self.context.repo,
                name.value,
                self.context.head_sha,
                "in_progress",
                IN_PROGRESS_OUTPUT.to_dict(),
            )
        except GithubException as e:
            raise CheckRunSetupError(name.value, status=e.status, detail=str(e.data)) from e
        except Exception as e:
            raise CheckRunSetupError(name.value, detail=str(e)) from e

        self.run_ids[name] = run_id
        return run_id

    async def open_all(self) -> None:
        """Open the primary and autofix checks in order, aborting on the first failure."""
        for name in CheckRunName:
            await self.open(name)

    async def finalize(self, name: CheckRunName, conclusion: str, output: CheckOutput) -> None:
        run_id = self.run_ids.get(name)
        if run_id is None:
            logger.warning(f"No check run id for {name.value} on {self.context.dedup_key}; skipping finalize")
            return
        await run_blocking(
            self.client.update_check_run,
            self.context.owner,
            self.context.repo,
            run_id,
            conclusion,
            output.to_dict(),
        )

    async def finalize_all(self, conclusions: Dict[CheckRunName, str], output: CheckOutput) -> None:
        """Finalize both tracked checks concurrently with the same output."""
        await asyncio.gather(*(self.finalize(name, conclusions[name], output) for name in CheckRunName))
